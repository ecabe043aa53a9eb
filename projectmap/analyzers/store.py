"""Graph store: idempotent node and edge bookkeeping for one build.

All table mutations happen under a lock that is never held across an
await, so concurrent sweeps can discover the same file at the same time
and still end up with exactly one node.
"""

import threading

from projectmap.models.graph import (
    CHILD_KINDS,
    ProjectGraph,
    ResourceKind,
    ResourceNode,
)


class GraphStore:
    """Mutating access to a :class:`ProjectGraph`."""

    def __init__(self, graph: ProjectGraph):
        self.graph = graph
        self._lock = threading.Lock()

    def _get_or_create(self, kind: ResourceKind, path: str) -> tuple[ResourceNode, bool]:
        table = self.graph.tables[kind]
        node = table.get(path)
        if node is not None:
            return node, False
        node = ResourceNode(path=path, kind=kind)
        table[path] = node
        return node, True

    def _link(self, parent: ResourceNode, child: ResourceNode) -> bool:
        if child.kind not in CHILD_KINDS[parent.kind]:
            raise ValueError(
                f"{parent.kind} nodes cannot reference {child.kind} nodes "
                f"({parent.path} -> {child.path})"
            )
        siblings = parent.children[child.kind]
        if siblings.get(child.path) is child:
            return False
        siblings[child.path] = child
        child.parents[parent.path] = parent
        return True

    def get_or_create(self, kind: ResourceKind, path: str) -> tuple[ResourceNode, bool]:
        """Return the node for ``path``, creating it if needed.

        Returns:
            Tuple of (node, created).
        """
        with self._lock:
            return self._get_or_create(kind, path)

    def link(self, parent: ResourceNode, child: ResourceNode) -> bool:
        """Record a parent -> child edge in both directions.

        Returns:
            True if the edge is new, False if it was already recorded.

        Raises:
            ValueError: For an edge the map does not allow (e.g. style -> script).
        """
        with self._lock:
            return self._link(parent, child)

    def discover(
        self,
        parent: ResourceNode,
        kind: ResourceKind,
        path: str,
    ) -> tuple[ResourceNode, bool]:
        """Get-or-create the child at ``path`` and link it under ``parent`` atomically.

        Returns:
            Tuple of (child node, created).
        """
        with self._lock:
            child, created = self._get_or_create(kind, path)
            self._link(parent, child)
            return child, created

    def mark_processed(self, node: ResourceNode) -> bool:
        """Claim a node for scanning.

        Returns:
            True for the single call that flips ``processed``; False if the
            node was already claimed.
        """
        with self._lock:
            if node.processed:
                return False
            node.processed = True
            return True

    def unprocessed_nodes(self, kind: ResourceKind) -> list[ResourceNode]:
        """Snapshot of the kind's nodes that have not been scanned yet."""
        with self._lock:
            return [node for node in self.graph.tables[kind].values() if not node.processed]

    def record_failure(self, node: ResourceNode, reason: str) -> None:
        """Remember that a node's content could not be read."""
        with self._lock:
            node.error = reason
            self.graph.failures[node.path] = reason
