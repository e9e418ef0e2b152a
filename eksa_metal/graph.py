from __future__ import annotations

from typing import Any, Callable, Iterable, TypeVar

import pulumi

from .asyncvalue import AsyncValue
from .errors import ClusterValidationError

R = TypeVar("R", bound=pulumi.Resource)


class ResourceGraph:
    """
    The named resources of one cluster and the edges between them.

    Passed explicitly to every builder instead of relying on ambient state.
    A node may only depend on nodes that already exist, so the graph is
    acyclic by construction.

    Edges come from two places:
      - depends_on: explicit ordering, handed to Pulumi as ResourceOptions.depends_on
      - inputs: AsyncValues the resource consumes; their sources become edges
        (Pulumi tracks these through the Outputs themselves)
    """

    def __init__(self, parent: pulumi.Resource):
        self.parent = parent
        self._nodes: dict[str, pulumi.Resource] = {}
        self._edges: dict[str, frozenset[str]] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def names(self) -> list[str]:
        return list(self._nodes)

    def resource(self, name: str) -> pulumi.Resource:
        return self._nodes[name]

    def add(
        self,
        name: str,
        factory: Callable[[pulumi.ResourceOptions], R],
        *,
        inputs: Iterable[AsyncValue[Any]] = (),
        depends_on: Iterable[str] = (),
    ) -> R:
        if name in self._nodes:
            raise ClusterValidationError(f"Duplicate graph node {name!r}")

        explicit = list(depends_on)
        deps = set(explicit)
        for value in inputs:
            deps |= value.sources

        missing = sorted(d for d in deps if d not in self._nodes)
        if missing:
            raise ClusterValidationError(f"Node {name!r} depends on unknown nodes {missing}")

        opts = pulumi.ResourceOptions(
            parent=self.parent,
            depends_on=[self._nodes[d] for d in explicit] or None,
        )
        resource = factory(opts)

        self._nodes[name] = resource
        self._edges[name] = frozenset(deps)
        pulumi.log.debug(f"graph: {name} <- {sorted(deps)}", resource=self.parent)
        return resource

    def value(self, name: str, output: pulumi.Output[Any], *, attr: str) -> AsyncValue[Any]:
        """Expose one output of a node as an AsyncValue sourced from that node."""
        if name not in self._nodes:
            raise ClusterValidationError(f"Unknown graph node {name!r}")
        return AsyncValue.from_node(name, output, attr=attr)

    def dependencies(self, name: str) -> frozenset[str]:
        return self._edges[name]

    def depends_on(self, name: str, other: str) -> bool:
        """True when `name` reaches `other` through any chain of edges."""
        seen: set[str] = set()
        stack = list(self._edges[name])
        while stack:
            current = stack.pop()
            if current == other:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self._edges[current])
        return False
