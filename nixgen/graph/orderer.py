"""Closure discovery and emission ordering for composite types."""

from __future__ import annotations

from collections import deque
from enum import Enum
from typing import Dict, List, Sequence

from ..logging import get_logger
from ..models import EmissionPlan, SchemaError, TypeGraph
from .collector import TypeGraphCollector

_VISITING = 1
_DONE = 2


class UnresolvedTypeError(SchemaError):
    """Raised when a field references a type that is not declared in the model."""


class DependencyCycleError(SchemaError):
    """Raised when composites reference each other and cycles are configured as errors."""

    def __init__(self, cycle: Sequence[str]) -> None:
        super().__init__(f"Dependency cycle between types: {' -> '.join(cycle)}")
        self.cycle = list(cycle)


class DiscoveryMode(Enum):
    TRANSITIVE = "transitive"
    DIRECT = "direct"


class CyclePolicy(Enum):
    WARN = "warn"
    ERROR = "error"


class DependencyOrderer:
    """Computes the closure of types reachable from the root and their order.

    Dependencies come before their dependents and the root comes last. With
    ``DiscoveryMode.DIRECT`` only the root's own fields are inspected.
    """

    def __init__(
        self,
        collector: TypeGraphCollector | None = None,
        *,
        mode: DiscoveryMode = DiscoveryMode.TRANSITIVE,
        cycles: CyclePolicy = CyclePolicy.WARN,
    ) -> None:
        self.collector = collector or TypeGraphCollector()
        self.mode = mode
        self.cycles = cycles
        self.logger = get_logger("graph")

    def discover(self, graph: TypeGraph) -> Dict[str, List[str]]:
        """Return reference edges for every reachable type, in discovery order."""
        edges: Dict[str, List[str]] = {}
        pending = deque([graph.root])
        while pending:
            name = pending.popleft()
            if name in edges:
                continue
            if self.mode is DiscoveryMode.DIRECT and name != graph.root:
                edges[name] = []
                continue
            references = self.collector.collect(graph[name])
            for reference in references:
                if reference not in graph:
                    raise UnresolvedTypeError(
                        f"Type '{reference}' referenced by '{name}' is not declared"
                    )
            edges[name] = references
            pending.extend(ref for ref in references if ref not in edges)
        self.logger.debug(
            "Discovered %d type(s) reachable from %s", len(edges), graph.root
        )
        return edges

    def order(self, graph: TypeGraph) -> EmissionPlan:
        """Return the emission plan for ``graph``: dependencies first, root last."""
        edges = self.discover(graph)
        state: Dict[str, int] = {}
        path: List[str] = []
        ordered: List[str] = []

        def visit(name: str) -> None:
            state[name] = _VISITING
            path.append(name)
            for dependency in edges[name]:
                if dependency == name:
                    continue
                seen = state.get(dependency)
                if seen == _DONE:
                    continue
                if seen == _VISITING:
                    self._handle_cycle(path[path.index(dependency):] + [dependency])
                    continue
                visit(dependency)
            path.pop()
            state[name] = _DONE
            ordered.append(name)

        visit(graph.root)
        return EmissionPlan(tuple(ordered))

    def _handle_cycle(self, cycle: List[str]) -> None:
        if self.cycles is CyclePolicy.ERROR:
            raise DependencyCycleError(cycle)
        self.logger.warning(
            "Types reference each other (%s); declaring them in discovery order",
            " -> ".join(cycle),
        )


__all__ = [
    "CyclePolicy",
    "DependencyCycleError",
    "DependencyOrderer",
    "DiscoveryMode",
    "UnresolvedTypeError",
]
