class ClusterError(Exception):
    """Base class for every failure raised while building a cluster."""


class ClusterValidationError(ClusterError, ValueError):
    """The cluster request is invalid. Raised before any resource is registered."""


class ProviderError(ClusterError):
    """A provider resource resolved to something the cluster cannot use."""

    def __init__(self, node: str, message: str):
        super().__init__(f"{node}: {message}")
        self.node = node


class CompositionError(ClusterError):
    """A function applied to an AsyncValue failed."""

    def __init__(self, label: str, cause: BaseException):
        super().__init__(f"failed to compute {label!r}: {cause}")
        self.label = label
        self.cause = cause
