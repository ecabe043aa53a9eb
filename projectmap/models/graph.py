"""Graph data models for project resource maps.

``ResourceNode`` and ``ProjectGraph`` are the live, mutable structures the
scanner writes into. The Pydantic models are the serialized view, and the
NetworkX helpers convert between the two for traversal algorithms.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

import networkx as nx
from pydantic import BaseModel, Field

ResourceKind = Literal["markup", "style", "script"]
ReferenceVia = Literal["link", "import", "script", "require"]
ResolutionStrategy = Literal["containing", "project"]
EdgeType = Literal["stylesheet", "script", "imports", "requires"]

RESOURCE_KINDS: tuple[ResourceKind, ...] = ("markup", "style", "script")

# Which child tables each kind of node carries.
# Styles import styles and scripts require scripts; only markup crosses kinds.
CHILD_KINDS: dict[ResourceKind, tuple[ResourceKind, ...]] = {
    "markup": ("style", "script"),
    "style": ("style",),
    "script": ("script",),
}

_EDGE_TYPES: dict[tuple[ResourceKind, ResourceKind], EdgeType] = {
    ("markup", "style"): "stylesheet",
    ("markup", "script"): "script",
    ("style", "style"): "imports",
    ("script", "script"): "requires",
}


def edge_type(parent_kind: ResourceKind, child_kind: ResourceKind) -> EdgeType:
    """Return the edge label for a parent/child kind pair.

    Raises:
        ValueError: If the pair is not a legal edge (e.g. style -> script).
    """
    try:
        return _EDGE_TYPES[(parent_kind, child_kind)]
    except KeyError:
        raise ValueError(f"No {parent_kind} -> {child_kind} edges in a project map") from None


def node_id(kind: ResourceKind, path: str) -> str:
    """Graph-wide node identifier, e.g. ``'style:/site/css/main.css'``."""
    return f"{kind}:{path}"


# =============================================================================
# Live graph
# =============================================================================


@dataclass(eq=False)
class ResourceNode:
    """One file in the project map, unique per (kind, canonical path)."""

    path: str
    kind: ResourceKind
    processed: bool = False
    children: dict[ResourceKind, dict[str, "ResourceNode"]] = field(
        default_factory=dict, repr=False
    )
    parents: dict[str, "ResourceNode"] = field(default_factory=dict, repr=False)
    error: str | None = None

    def __post_init__(self) -> None:
        for child_kind in CHILD_KINDS[self.kind]:
            self.children.setdefault(child_kind, {})

    def iter_children(self) -> Iterator["ResourceNode"]:
        """Yield every child regardless of kind."""
        for table in self.children.values():
            yield from table.values()

    def child_paths(self, kind: ResourceKind | None = None) -> list[str]:
        """Sorted child paths, optionally restricted to one kind."""
        if kind is not None:
            return sorted(self.children.get(kind, {}))
        return sorted(child.path for child in self.iter_children())

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(eq=False)
class ProjectGraph:
    """Three node tables (markup, style, script) for a single build.

    A graph is created empty at the start of every build and is never
    updated incrementally afterwards.
    """

    root: str
    tables: dict[ResourceKind, dict[str, ResourceNode]] = field(
        default_factory=lambda: {kind: {} for kind in RESOURCE_KINDS}
    )
    failures: dict[str, str] = field(default_factory=dict)
    complete: bool = False

    def nodes(self, kind: ResourceKind) -> dict[str, ResourceNode]:
        return self.tables[kind]

    def get(self, kind: ResourceKind, path: str) -> ResourceNode | None:
        return self.tables[kind].get(path)

    def iter_nodes(self) -> Iterator[ResourceNode]:
        for kind in RESOURCE_KINDS:
            yield from self.tables[kind].values()

    def iter_edges(self) -> Iterator[tuple[ResourceNode, ResourceNode]]:
        """Yield (parent, child) pairs for every recorded edge."""
        for node in self.iter_nodes():
            for child in node.iter_children():
                yield node, child

    def paths(self, kind: ResourceKind) -> set[str]:
        return set(self.tables[kind])

    def relative(self, path: str) -> str:
        """Path relative to the project root, or the path itself if outside it."""
        if self.root and path.startswith(self.root):
            return path[len(self.root):]
        return path

    @property
    def node_count(self) -> int:
        return sum(len(table) for table in self.tables.values())

    @property
    def edge_count(self) -> int:
        return sum(1 for _ in self.iter_edges())


# =============================================================================
# Serialized models
# =============================================================================


class MapNode(BaseModel):
    """A file in the exported project map."""

    id: str = Field(description="Unique identifier (e.g., 'style:/site/css/main.css')")
    kind: ResourceKind = Field(description="Resource kind")
    path: str = Field(description="Canonical absolute path")
    file: str = Field(description="Path relative to the project root")
    processed: bool = Field(default=False, description="Whether the file content was scanned")
    error: str | None = Field(default=None, description="Read failure, if the file could not be read")


class MapEdge(BaseModel):
    """A reference from one file to another."""

    source: str = Field(alias="from", description="Referencing node ID")
    target: str = Field(alias="to", description="Referenced node ID")
    type: EdgeType = Field(description="Type of reference")

    model_config = {"populate_by_name": True}


class ReadFailure(BaseModel):
    """A file whose content could not be read during a build."""

    path: str = Field(description="Canonical absolute path")
    file: str = Field(description="Path relative to the project root")
    reason: str = Field(description="Why the read failed")
    referenced_by: list[str] = Field(
        default_factory=list, description="Relative paths of files referencing it"
    )


class MapMetadata(BaseModel):
    """Metadata about a generated project map."""

    analyzer: str = Field(default="project_map")
    version: str = Field(description="Version of the analyzer")
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=None), description="When the map was generated"
    )
    root: str = Field(description="Project root that was mapped")
    markup_count: int = Field(default=0)
    style_count: int = Field(default=0)
    script_count: int = Field(default=0)
    edge_count: int = Field(default=0)
    failure_count: int = Field(default=0)
    complete: bool = Field(default=False, description="False for a partial (in-progress) map")


class ProjectMapExport(BaseModel):
    """Complete exported project map."""

    nodes: list[MapNode] = Field(default_factory=list)
    edges: list[MapEdge] = Field(default_factory=list)
    failures: list[ReadFailure] = Field(default_factory=list)
    metadata: MapMetadata


class ImpactTarget(BaseModel):
    """A file found during impact analysis."""

    id: str = Field(description="Node ID")
    kind: ResourceKind = Field(description="Resource kind")
    file: str = Field(description="Path relative to the project root")
    depth: int = Field(description="Distance from the target in the graph")


class RiskAssessment(BaseModel):
    """How far a change to one file ripples."""

    direct_dependents: int = Field(default=0, description="Files referencing the target directly")
    indirect_dependents: int = Field(default=0, description="Files referencing it transitively")
    markup_affected: int = Field(default=0, description="Markup documents that end up loading it")


class ImpactReport(BaseModel):
    """Report of what would be affected by changing a file."""

    target: str = Field(description="Node ID of the file being analyzed")
    upstream: list[ImpactTarget] = Field(
        default_factory=list, description="Files that depend on the target"
    )
    downstream: list[ImpactTarget] = Field(
        default_factory=list, description="Files the target depends on"
    )
    upstream_by_kind: dict[str, list[str]] = Field(default_factory=dict)
    downstream_by_kind: dict[str, list[str]] = Field(default_factory=dict)
    depth_summary: dict[str, dict[str, int]] = Field(
        default_factory=dict, description="Count of dependencies at each depth level"
    )
    risk_assessment: RiskAssessment = Field(default_factory=RiskAssessment)


class StaleReference(BaseModel):
    """A reference whose target file could not be read."""

    source: str = Field(description="Relative path of the referencing file")
    target: str = Field(description="Relative path of the unreadable file")
    type: EdgeType = Field(description="Type of reference")
    reason: str = Field(description="Read failure message")


# =============================================================================
# NetworkX Conversion Utilities
# =============================================================================


def to_digraph(graph: ProjectGraph) -> nx.DiGraph:
    """Convert a project map into a NetworkX DiGraph.

    Edges point from the referencing file to the referenced file.

    Args:
        graph: Project map (complete or partial).

    Returns:
        Directed graph keyed by :func:`node_id`.
    """
    G = nx.DiGraph()

    for node in graph.iter_nodes():
        G.add_node(
            node_id(node.kind, node.path),
            kind=node.kind,
            path=node.path,
            file=graph.relative(node.path),
            processed=node.processed,
            error=node.error,
        )

    for parent, child in graph.iter_edges():
        G.add_edge(
            node_id(parent.kind, parent.path),
            node_id(child.kind, child.path),
            type=edge_type(parent.kind, child.kind),
        )

    return G


def export_graph(graph: ProjectGraph, version: str) -> ProjectMapExport:
    """Build the serializable view of a project map."""
    nodes = [
        MapNode(
            id=node_id(node.kind, node.path),
            kind=node.kind,
            path=node.path,
            file=graph.relative(node.path),
            processed=node.processed,
            error=node.error,
        )
        for kind in RESOURCE_KINDS
        for node in sorted(graph.nodes(kind).values(), key=lambda n: n.path)
    ]

    edges = [
        MapEdge(
            source=node_id(parent.kind, parent.path),
            target=node_id(child.kind, child.path),
            type=edge_type(parent.kind, child.kind),
        )
        for parent, child in graph.iter_edges()
    ]
    edges.sort(key=lambda e: (e.source, e.target))

    failures = []
    for kind in RESOURCE_KINDS:
        for node in sorted(graph.nodes(kind).values(), key=lambda n: n.path):
            if node.error is None:
                continue
            failures.append(
                ReadFailure(
                    path=node.path,
                    file=graph.relative(node.path),
                    reason=node.error,
                    referenced_by=sorted(graph.relative(p) for p in node.parents),
                )
            )

    metadata = MapMetadata(
        version=version,
        root=graph.root,
        markup_count=len(graph.nodes("markup")),
        style_count=len(graph.nodes("style")),
        script_count=len(graph.nodes("script")),
        edge_count=len(edges),
        failure_count=len(graph.failures),
        complete=graph.complete,
    )

    return ProjectMapExport(nodes=nodes, edges=edges, failures=failures, metadata=metadata)


def digraph_to_json(G: nx.DiGraph) -> dict[str, Any]:
    """Serialize a project-map DiGraph to a JSON-compatible dict.

    Args:
        G: Graph produced by :func:`to_digraph`.

    Returns:
        Dict with nodes, edges, and metadata.
    """
    nodes = []
    for nid, attrs in G.nodes(data=True):
        nodes.append(
            {
                "id": nid,
                "kind": attrs.get("kind", "unknown"),
                "path": attrs.get("path", ""),
                "file": attrs.get("file", ""),
                "processed": attrs.get("processed", False),
                "error": attrs.get("error"),
            }
        )

    edges = []
    for source, target, attrs in G.edges(data=True):
        edges.append(
            {
                "from": source,
                "to": target,
                "type": attrs.get("type", "unknown"),
            }
        )

    return {
        "nodes": nodes,
        "edges": edges,
        "metadata": {
            "node_count": G.number_of_nodes(),
            "edge_count": G.number_of_edges(),
        },
    }


def json_to_digraph(data: dict[str, Any]) -> nx.DiGraph:
    """Deserialize a JSON dict (from :func:`digraph_to_json` or an export) to a DiGraph.

    Args:
        data: Dict with nodes and edges.

    Returns:
        NetworkX directed graph.
    """
    G = nx.DiGraph()

    for node in data.get("nodes", []):
        G.add_node(
            node["id"],
            kind=node.get("kind", "unknown"),
            path=node.get("path", ""),
            file=node.get("file", ""),
            processed=node.get("processed", False),
            error=node.get("error"),
        )

    for edge in data.get("edges", []):
        source = edge.get("from", edge.get("source", ""))
        target = edge.get("to", edge.get("target", ""))
        if source and target:
            G.add_edge(source, target, type=edge.get("type", "unknown"))

    return G
