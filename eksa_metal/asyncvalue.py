from __future__ import annotations

from typing import Any, Callable, Generic, Iterable, TypeVar

import pulumi

from .errors import ClusterError, CompositionError

T = TypeVar("T")
U = TypeVar("U")


class AsyncValue(Generic[T]):
    """
    A write-once value that is only known once some resource has resolved.

    Wraps a pulumi.Output so resource dependencies, secrecy and preview
    unknowns keep flowing through. `sources` names the graph nodes this
    value was derived from; it only ever grows through map/join_all, so a
    value can never depend on itself.
    """

    __slots__ = ("_output", "label", "sources")

    def __init__(
        self,
        output: pulumi.Output[T],
        *,
        label: str,
        sources: Iterable[str] = (),
    ):
        self._output = output
        self.label = label
        self.sources: frozenset[str] = frozenset(sources)

    def __repr__(self) -> str:
        return f"AsyncValue({self.label!r}, sources={sorted(self.sources)})"

    @property
    def output(self) -> pulumi.Output[T]:
        return self._output

    @classmethod
    def of(cls, value: pulumi.Input[T], *, label: str) -> "AsyncValue[T]":
        """Lift a plain value (or an existing Output) that is not owned by a graph node."""
        return cls(pulumi.Output.from_input(value), label=label)

    @classmethod
    def from_node(cls, node: str, output: pulumi.Output[T], *, attr: str) -> "AsyncValue[T]":
        return cls(output, label=f"{node}.{attr}", sources=(node,))

    def map(self, fn: Callable[[T], U], *, label: str | None = None) -> "AsyncValue[U]":
        name = label or f"{self.label}|map"

        def run(value: T) -> U:
            try:
                return fn(value)
            except ClusterError:
                raise
            except Exception as e:
                raise CompositionError(name, e) from e

        return AsyncValue(self._output.apply(run), label=name, sources=self.sources)

    @staticmethod
    def join_all(*values: "AsyncValue[Any]", label: str | None = None) -> "AsyncValue[tuple[Any, ...]]":
        """
        Resolve once every input has resolved, as a tuple in input order.

        The first failing input fails the result; no partial tuple is produced.
        """
        if not values:
            raise ValueError("join_all needs at least one value")

        name = label or "join(" + ", ".join(v.label for v in values) + ")"
        sources: set[str] = set()
        for v in values:
            sources |= v.sources

        joined = pulumi.Output.all(*[v.output for v in values]).apply(tuple)
        return AsyncValue(joined, label=name, sources=sources)
