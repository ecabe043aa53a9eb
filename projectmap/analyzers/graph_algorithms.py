"""Graph algorithms over project maps.

Operates on the NetworkX view produced by
:func:`projectmap.models.graph.to_digraph`:
- Depth-limited ancestor/descendant traversal for impact analysis
- Cycle detection for circular @import / require chains
- Shortest path for "how does this page end up loading that file"
"""

import networkx as nx


def find_cycles(G: nx.DiGraph, include_self_loops: bool = True) -> list[list[str]]:
    """Find circular references in the graph.

    Style sheets importing each other, or scripts requiring each other,
    show up here. Markup nodes are never part of a cycle since nothing
    references them.

    Args:
        G: Directed project map graph.
        include_self_loops: Whether a file referencing itself counts as a cycle.

    Returns:
        List of cycles, each a list of node IDs, shortest first.
    """
    if not G.nodes():
        return []

    cycles = [list(cycle) for cycle in nx.simple_cycles(G)]
    if not include_self_loops:
        cycles = [cycle for cycle in cycles if len(cycle) > 1]

    cycles.sort(key=lambda c: (len(c), c))
    return cycles


def shortest_path(
    G: nx.DiGraph,
    source: str,
    target: str,
) -> list[str] | None:
    """Find the shortest reference chain between two nodes.

    Args:
        G: Directed project map graph.
        source: Starting node ID.
        target: Ending node ID.

    Returns:
        List of node IDs forming the path, or None if no path exists.
    """
    if source not in G or target not in G:
        return None

    try:
        return nx.shortest_path(G, source, target)
    except nx.NetworkXNoPath:
        return None


def ancestors_at_depth(
    G: nx.DiGraph,
    node: str,
    max_depth: int | None = None,
) -> dict[str, int]:
    """Find all ancestors (referencing files) up to a maximum depth.

    Args:
        G: Directed project map graph.
        node: Starting node ID.
        max_depth: Maximum traversal depth; None for unlimited.

    Returns:
        Dict mapping ancestor node ID to its depth from the target.
    """
    if node not in G:
        return {}
    return _bfs_depths(G.predecessors, node, max_depth)


def descendants_at_depth(
    G: nx.DiGraph,
    node: str,
    max_depth: int | None = None,
) -> dict[str, int]:
    """Find all descendants (referenced files) up to a maximum depth.

    Args:
        G: Directed project map graph.
        node: Starting node ID.
        max_depth: Maximum traversal depth; None for unlimited.

    Returns:
        Dict mapping descendant node ID to its depth from the target.
    """
    if node not in G:
        return {}
    return _bfs_depths(G.successors, node, max_depth)


def _bfs_depths(neighbors, start: str, max_depth: int | None) -> dict[str, int]:
    result: dict[str, int] = {}
    current_level = {start}
    visited = {start}
    depth = 0

    while current_level and (max_depth is None or depth < max_depth):
        depth += 1
        next_level: set[str] = set()
        for n in current_level:
            for other in neighbors(n):
                if other not in visited:
                    result[other] = depth
                    next_level.add(other)
                    visited.add(other)
        current_level = next_level

    return result
