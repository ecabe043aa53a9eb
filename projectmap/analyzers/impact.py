"""Impact analysis and stale-reference detection over a project map.

Answers "what depends on this file" (upstream), "what does this file pull
in" (downstream), and "which references point at files that could not be
read".
"""

from collections import defaultdict
from pathlib import PurePosixPath

import networkx as nx

from projectmap.analyzers.graph_algorithms import (
    ancestors_at_depth,
    descendants_at_depth,
    find_cycles,
    shortest_path,
)
from projectmap.models.graph import (
    ImpactReport,
    ImpactTarget,
    ProjectGraph,
    ResourceKind,
    RiskAssessment,
    StaleReference,
    edge_type,
    to_digraph,
)


class AmbiguousMatchError(Exception):
    """Raised when multiple nodes match a query and disambiguation is needed."""

    def __init__(self, message: str, candidates: list[dict]):
        super().__init__(message)
        self.candidates = candidates


class NoMatchError(Exception):
    """Raised when no nodes match a query."""

    def __init__(self, message: str, suggestions: list[dict] | None = None):
        super().__init__(message)
        self.suggestions = suggestions or []


def _get_match_type(query: str, path: str, file: str) -> str:
    """Determine how well a query matches a node.

    Returns:
        'exact' - Query is the canonical path or the root-relative path
        'suffix' - Query ends the path at a '/' boundary ('main.css' matches 'css/main.css')
        'none' - No match
    """
    if query in (path, file):
        return "exact"

    if file.endswith(query):
        prefix_len = len(file) - len(query)
        if prefix_len == 0 or file[prefix_len - 1] == "/":
            return "suffix"

    return "none"


def _normalize_query(file_path: str) -> str:
    query = file_path.strip().replace("\\", "/")
    while query.startswith("./"):
        query = query[2:]
    return query


def _find_suggestions(G: nx.DiGraph, query: str) -> list[dict]:
    """Suggest nodes with the same file name in another directory."""
    filename = PurePosixPath(query).name
    suggestions = [
        {
            "node_id": node,
            "file": attrs.get("file", ""),
            "kind": attrs.get("kind", "unknown"),
            "reason": "same filename, different directory",
        }
        for node, attrs in G.nodes(data=True)
        if PurePosixPath(attrs.get("file", "")).name == filename
    ]
    suggestions.sort(key=lambda s: s["node_id"])
    return suggestions[:10]


def find_target_node(
    G: nx.DiGraph,
    file_path: str,
    kind: ResourceKind | None = None,
) -> str:
    """Find the node ID for a file.

    Uses strict matching with disambiguation:
    1. Exact canonical or root-relative path match takes priority
    2. Suffix match only when unambiguous
    3. Raises AmbiguousMatchError with candidates when multiple matches
    4. Raises NoMatchError with suggestions when no matches

    Args:
        G: Project map graph from :func:`to_digraph`.
        file_path: Absolute path, root-relative path, or unique path suffix.
        kind: Restrict matches to one resource kind.

    Returns:
        Node ID if found unambiguously.

    Raises:
        AmbiguousMatchError: Multiple nodes match - provides candidates.
        NoMatchError: No nodes match - provides suggestions.
    """
    query = _normalize_query(file_path)

    exact_matches: list[dict] = []
    candidates: list[dict] = []

    for node, attrs in G.nodes(data=True):
        if kind is not None and attrs.get("kind") != kind:
            continue

        match_type = _get_match_type(query, attrs.get("path", ""), attrs.get("file", ""))
        if match_type == "none":
            continue

        candidate = {
            "node_id": node,
            "file": attrs.get("file", ""),
            "kind": attrs.get("kind", "unknown"),
            "match_type": match_type,
        }
        if match_type == "exact":
            exact_matches.append(candidate)
        else:
            candidates.append(candidate)

    # The same path can be both a style and a script node (e.g. a require of a .css file)
    if len(exact_matches) == 1:
        return exact_matches[0]["node_id"]
    if len(exact_matches) > 1:
        raise AmbiguousMatchError(
            f"'{file_path}' is mapped as several kinds. Pass a kind to choose one.",
            exact_matches,
        )

    if len(candidates) == 1:
        return candidates[0]["node_id"]
    if len(candidates) > 1:
        raise AmbiguousMatchError(
            f"Multiple files match '{file_path}'. Provide a more specific path.",
            candidates,
        )

    raise NoMatchError(f"No files found matching '{file_path}'", _find_suggestions(G, query))


def _group_by_kind(targets: list[ImpactTarget]) -> dict[str, list[str]]:
    grouped: dict[str, list[str]] = defaultdict(list)
    for t in targets:
        grouped[t.kind].append(t.file)
    return {kind: sorted(files) for kind, files in grouped.items()}


def _build_depth_summary(
    upstream: list[ImpactTarget],
    downstream: list[ImpactTarget],
) -> dict[str, dict[str, int]]:
    """Build a summary of counts at each depth level."""
    upstream_counts: dict[str, int] = defaultdict(int)
    downstream_counts: dict[str, int] = defaultdict(int)

    for t in upstream:
        upstream_counts[f"depth_{t.depth}"] += 1

    for t in downstream:
        downstream_counts[f"depth_{t.depth}"] += 1

    return {
        "upstream": dict(upstream_counts),
        "downstream": dict(downstream_counts),
    }


def _to_targets(G: nx.DiGraph, depths: dict[str, int]) -> list[ImpactTarget]:
    return [
        ImpactTarget(
            id=node,
            kind=G.nodes[node]["kind"],
            file=G.nodes[node]["file"],
            depth=d,
        )
        for node, d in sorted(depths.items(), key=lambda x: (x[1], x[0]))
    ]


def get_impact(
    graph: ProjectGraph,
    file_path: str,
    depth: int | None = None,
    kind: ResourceKind | None = None,
) -> ImpactReport:
    """Analyze the impact of changing a file.

    Args:
        graph: A built project map.
        file_path: Absolute path, root-relative path, or unique path suffix.
        depth: How many reference levels to traverse; None for all.
        kind: Restrict target lookup to one resource kind.

    Returns:
        ImpactReport with upstream (dependents) and downstream (dependencies).

    Raises:
        AmbiguousMatchError: Multiple files match - provides candidates.
        NoMatchError: No file matches - provides suggestions.
    """
    G = to_digraph(graph)
    target_id = find_target_node(G, file_path, kind=kind)

    upstream = _to_targets(G, ancestors_at_depth(G, target_id, depth))
    downstream = _to_targets(G, descendants_at_depth(G, target_id, depth))

    risk = RiskAssessment(
        direct_dependents=sum(1 for t in upstream if t.depth == 1),
        indirect_dependents=sum(1 for t in upstream if t.depth > 1),
        markup_affected=sum(1 for t in upstream if t.kind == "markup"),
    )

    return ImpactReport(
        target=target_id,
        upstream=upstream,
        downstream=downstream,
        upstream_by_kind=_group_by_kind(upstream),
        downstream_by_kind=_group_by_kind(downstream),
        depth_summary=_build_depth_summary(upstream, downstream),
        risk_assessment=risk,
    )


def find_stale_references(graph: ProjectGraph) -> list[StaleReference]:
    """List every reference whose target file could not be read.

    Args:
        graph: A built project map.

    Returns:
        Stale references sorted by referencing file, then target.
    """
    stale = [
        StaleReference(
            source=graph.relative(parent.path),
            target=graph.relative(child.path),
            type=edge_type(parent.kind, child.kind),
            reason=child.error,
        )
        for parent, child in graph.iter_edges()
        if child.error is not None
    ]
    stale.sort(key=lambda s: (s.source, s.target))
    return stale


def find_reference_cycles(graph: ProjectGraph, include_self_loops: bool = True) -> list[list[str]]:
    """Circular @import / require chains, as lists of root-relative paths."""
    G = to_digraph(graph)
    return [
        [G.nodes[node]["file"] for node in cycle]
        for cycle in find_cycles(G, include_self_loops=include_self_loops)
    ]


def find_reference_chain(
    graph: ProjectGraph,
    source: str,
    target: str,
    source_kind: ResourceKind | None = None,
    target_kind: ResourceKind | None = None,
) -> list[str] | None:
    """Shortest chain of references from ``source`` to ``target``.

    Answers "how does this page end up loading that file".

    Args:
        graph: A built project map.
        source: Referencing file (absolute, root-relative, or unique suffix).
        target: Referenced file, matched the same way.
        source_kind: Restrict source lookup to one resource kind.
        target_kind: Restrict target lookup to one resource kind.

    Returns:
        Root-relative paths from source to target, or None if the source
        never reaches the target.

    Raises:
        AmbiguousMatchError: Multiple files match either path.
        NoMatchError: No file matches either path.
    """
    G = to_digraph(graph)
    source_id = find_target_node(G, source, kind=source_kind)
    target_id = find_target_node(G, target, kind=target_kind)

    path = shortest_path(G, source_id, target_id)
    if path is None:
        return None
    return [G.nodes[node]["file"] for node in path]
