"""Package dependency graph and graph algorithms.

Builds a directed graph from the lock: one *installed* node per lock entry
with an edge for every dependency it declares, and one *implied* node per
dependency that no lock entry provides yet. Implied nodes are leaves;
they become installed nodes once their package registers itself in the
lock.

All iteration follows insertion order, so the implied nodes returned by
``init`` and the order returned by ``sort`` are deterministic for a given
lock.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Union

from packlock.core.lock.models import LockEntry
from packlock.exceptions import CycleError, GraphConstructionError


# ---------------------------------------------------------------------------
# Graph nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ImpliedNode:
    """A dependency that is declared but not installed.

    Attributes:
        package: Image reference of the missing package (its identifier).
        type: Dependency kind as declared (``"Configuration"``/``"Provider"``).
        constraints: Version constraint of the first declaration seen.
    """

    package: str
    type: str
    constraints: str

    def identifier(self) -> str:
        return self.package

    def neighbors(self) -> list[ImpliedNode]:
        return []


@dataclass(frozen=True)
class InstalledNode:
    """A package recorded in the lock."""

    entry: LockEntry

    def identifier(self) -> str:
        return self.entry.identifier()

    def neighbors(self) -> list[ImpliedNode]:
        """Return one node per declared dependency, in declaration order."""
        return [
            ImpliedNode(package=d.package, type=d.type, constraints=d.constraints)
            for d in self.entry.dependencies
        ]


GraphNode = Union[InstalledNode, ImpliedNode]


def to_nodes(entries: Iterable[LockEntry]) -> list[InstalledNode]:
    """Wrap lock entries as installed graph nodes, preserving order."""
    return [InstalledNode(entry) for entry in entries]


# ---------------------------------------------------------------------------
# DependencyGraph
# ---------------------------------------------------------------------------


class DependencyGraph:
    """Directed graph of installed packages and their dependencies.

    Edges point from a dependent to its dependency. The graph supports:

    - Bulk construction from installed nodes with implied-node synthesis
    - Topological sorting with cycle detection
    - Transitive dependency tracing (BFS)

    Thread safety: This class is NOT thread-safe. Each reconciliation pass
    builds its own graph.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, GraphNode] = {}
        self._edges: dict[str, list[str]] = {}

    # -- Construction --------------------------------------------------------

    def init(self, nodes: Iterable[InstalledNode]) -> list[ImpliedNode]:
        """Build the graph from installed nodes.

        Every installed node is added before any edge so that a dependency
        on a package listed later in the lock is not mistaken for a
        missing one.

        Args:
            nodes: Installed nodes in lock order.

        Returns:
            The implied nodes synthesized for missing dependencies, in the
            order they were first declared.

        Raises:
            GraphConstructionError: On a duplicate identifier or a
                dependency without an identifier.
        """
        nodes = list(nodes)
        self.add_nodes(*nodes)
        implied: list[ImpliedNode] = []
        for node in nodes:
            for dep in node.neighbors():
                if self.add_edge(node.identifier(), dep):
                    implied.append(dep)
        return implied

    def add_node(self, node: GraphNode) -> None:
        """Add a node.

        Raises:
            GraphConstructionError: If a node with the same identifier exists.
        """
        ident = node.identifier()
        if not ident:
            raise GraphConstructionError("node has an empty identifier")
        if ident in self._nodes:
            raise GraphConstructionError(f"node {ident!r} already exists")
        self._nodes[ident] = node
        self._edges[ident] = []

    def add_nodes(self, *nodes: GraphNode) -> None:
        for node in nodes:
            self.add_node(node)

    def add_edge(self, from_id: str, to: GraphNode) -> bool:
        """Add an edge from the node *from_id* to *to*.

        If *to* is not in the graph yet it is added as well.

        Returns:
            True if *to* was newly added to the graph.

        Raises:
            GraphConstructionError: If *from_id* is unknown or *to* has an
                empty identifier.
        """
        if from_id not in self._nodes:
            raise GraphConstructionError(f"node {from_id!r} does not exist")
        to_id = to.identifier()
        if not to_id:
            raise GraphConstructionError(
                f"node {from_id!r} declares a dependency without a package"
            )
        added = False
        if to_id not in self._nodes:
            self._nodes[to_id] = to
            self._edges[to_id] = []
            added = True
        if to_id not in self._edges[from_id]:
            self._edges[from_id].append(to_id)
        return added

    # -- Queries -------------------------------------------------------------

    @property
    def nodes(self) -> list[GraphNode]:
        """Return all nodes in insertion order."""
        return list(self._nodes.values())

    @property
    def implied(self) -> list[ImpliedNode]:
        """Return the implied nodes currently in the graph."""
        return [n for n in self._nodes.values() if isinstance(n, ImpliedNode)]

    def node_exists(self, identifier: str) -> bool:
        return identifier in self._nodes

    def get_node(self, identifier: str) -> GraphNode | None:
        return self._nodes.get(identifier)

    def neighbors(self, identifier: str) -> list[GraphNode]:
        """Return the direct dependencies of a node, in declaration order."""
        return [self._nodes[i] for i in self._edges.get(identifier, [])]

    def trace(self, identifier: str) -> set[str]:
        """Compute the transitive dependencies of a node via BFS.

        Returns:
            Identifiers reachable from *identifier*, not including itself.
        """
        seen: set[str] = set()
        queue: deque[str] = deque(self._edges.get(identifier, []))
        while queue:
            cur = queue.popleft()
            if cur in seen:
                continue
            seen.add(cur)
            queue.extend(self._edges.get(cur, []))
        seen.discard(identifier)
        return seen

    # -- Sorting -------------------------------------------------------------

    def sort(self) -> list[str]:
        """Topologically sort the graph, dependencies before dependents.

        Uses iterative DFS coloring so deep dependency chains do not hit
        the recursion limit.

        Returns:
            Every node identifier, each after all of its dependencies.

        Raises:
            CycleError: If any cycle exists. The error carries the cycle path.
        """
        WHITE, GRAY, BLACK = 0, 1, 2
        color: dict[str, int] = {ident: WHITE for ident in self._nodes}
        order: list[str] = []

        for root in self._nodes:
            if color[root] != WHITE:
                continue
            color[root] = GRAY
            path = [root]
            stack = [iter(self._edges[root])]
            while stack:
                child = next(stack[-1], None)
                if child is None:
                    stack.pop()
                    done = path.pop()
                    color[done] = BLACK
                    order.append(done)
                    continue
                if color[child] == GRAY:
                    # Back edge: the cycle is the path suffix from child.
                    raise CycleError(path[path.index(child):] + [child])
                if color[child] == WHITE:
                    color[child] = GRAY
                    path.append(child)
                    stack.append(iter(self._edges[child]))

        return order
