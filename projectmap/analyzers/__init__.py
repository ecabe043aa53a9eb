"""Project map construction and analysis."""

from projectmap.analyzers.extractors import Reference, extract_references
from projectmap.analyzers.file_access import ReadError, read_text
from projectmap.analyzers.filenames import is_legal_filename
from projectmap.analyzers.graph_algorithms import (
    ancestors_at_depth,
    descendants_at_depth,
    find_cycles,
    shortest_path,
)
from projectmap.analyzers.ignore import (
    DEFAULT_IGNORES,
    PROJECTMAPIGNORE_FILENAME,
    load_ignore_patterns,
    should_ignore,
)
from projectmap.analyzers.impact import (
    AmbiguousMatchError,
    NoMatchError,
    find_reference_chain,
    find_reference_cycles,
    find_stale_references,
    get_impact,
)
from projectmap.analyzers.indexer import DirectoryIndexer, FileIndexer, FileInfo
from projectmap.analyzers.paths import ReferenceResolver, directory_of, resolve
from projectmap.analyzers.project_map import ProjectMapBuilder, build_project_map
from projectmap.analyzers.scanner import ConvergentScanner, SweepStats
from projectmap.analyzers.store import GraphStore

__all__ = [
    # Build
    "ProjectMapBuilder",
    "build_project_map",
    "ConvergentScanner",
    "SweepStats",
    "GraphStore",
    # Extraction and resolution
    "Reference",
    "extract_references",
    "ReferenceResolver",
    "directory_of",
    "resolve",
    # Collaborators
    "DirectoryIndexer",
    "FileIndexer",
    "FileInfo",
    "ReadError",
    "read_text",
    "is_legal_filename",
    # Ignore patterns
    "DEFAULT_IGNORES",
    "PROJECTMAPIGNORE_FILENAME",
    "load_ignore_patterns",
    "should_ignore",
    # Analysis
    "get_impact",
    "find_stale_references",
    "find_reference_cycles",
    "find_reference_chain",
    "AmbiguousMatchError",
    "NoMatchError",
    # Graph algorithms
    "ancestors_at_depth",
    "descendants_at_depth",
    "find_cycles",
    "shortest_path",
]
