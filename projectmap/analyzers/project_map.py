"""Build driver for project maps.

A build starts from an empty graph, seeds it with every legal markup file
the indexer reports, and runs the convergent scanner. The last completed
graph stays available while a newer build runs; a superseded build is
cancelled and its partial graph is dropped.
"""

import asyncio
from collections.abc import Callable
from functools import partial
from pathlib import Path

from projectmap.analyzers.file_access import read_text
from projectmap.analyzers.filenames import is_legal_filename
from projectmap.analyzers.ignore import load_ignore_patterns
from projectmap.analyzers.indexer import DirectoryIndexer, FileIndexer
from projectmap.analyzers.paths import ReferenceResolver, as_directory
from projectmap.analyzers.scanner import ConvergentScanner, ReadText, SweepStats
from projectmap.analyzers.store import GraphStore
from projectmap.config import ScanConfig
from projectmap.logging import log_operation, logger
from projectmap.models.graph import ProjectGraph, ResourceKind


class ProjectMapBuilder:
    """Owns the project map for one project root.

    Args:
        root: Project root directory.
        config: Scan options; defaults to :meth:`ScanConfig.from_env`.
        indexer: File indexer; defaults to a :class:`DirectoryIndexer` over the root.
        read_text: Async file reader; defaults to
            :func:`~projectmap.analyzers.file_access.read_text`.
        is_legal: Filename validator for seed documents.
    """

    def __init__(
        self,
        root: str | Path,
        config: ScanConfig | None = None,
        indexer: FileIndexer | None = None,
        read_text: ReadText | None = None,
        is_legal: Callable[[str], bool] = is_legal_filename,
    ):
        self.config = config or ScanConfig.from_env()
        self._indexer = indexer
        self._read_text = read_text
        self._is_legal = is_legal
        self._root = Path(root).resolve()
        self._graph: ProjectGraph | None = None
        self._in_progress: ProjectGraph | None = None
        self._task: asyncio.Task[ProjectGraph] | None = None
        self._generation = 0
        self.stats: dict[ResourceKind, SweepStats] = {}

    @property
    def root(self) -> Path:
        return self._root

    @property
    def graph(self) -> ProjectGraph | None:
        """The most recently completed map, or None before the first build finishes."""
        return self._graph

    @property
    def in_progress(self) -> ProjectGraph | None:
        """The partial map of the running build, if any. Never flagged complete."""
        return self._in_progress

    @property
    def current_build(self) -> asyncio.Task[ProjectGraph] | None:
        return self._task

    def _make_indexer(self) -> FileIndexer:
        if self._indexer is not None:
            return self._indexer
        patterns = load_ignore_patterns(self._root, self.config.extra_ignores)
        return DirectoryIndexer(self._root, patterns)

    def _make_reader(self) -> ReadText:
        if self._read_text is not None:
            return self._read_text
        return partial(read_text, encoding=self.config.encoding)

    async def _seed(self, store: GraphStore, indexer: FileIndexer) -> int:
        """Create a markup node for every legal markup file. Returns the count."""
        files = await asyncio.to_thread(indexer.list_files, self.config.markup_extension)

        seeded = 0
        for info in files:
            if not self._is_legal(info.name):
                logger.debug("  Skipping illegal filename: %s", info.full_path)
                continue
            if store.graph.get("markup", info.full_path) is not None:
                continue
            store.get_or_create("markup", info.full_path)
            seeded += 1

        return seeded

    async def build(self) -> ProjectGraph:
        """Rebuild the project map from scratch.

        Only the most recently started build publishes. When builds overlap
        (two direct awaits rather than :meth:`on_project_open`), an older
        build that finishes last still returns its graph but leaves
        :attr:`graph` alone.

        Returns:
            The completed graph, also published as :attr:`graph` unless a
            newer build started meanwhile.

        Raises:
            NotADirectoryError: If the root is not a directory.
            asyncio.CancelledError: If the build is abandoned.
        """
        root = self._root
        root_key = as_directory(root.as_posix())
        graph = ProjectGraph(root=root_key)
        store = GraphStore(graph)
        self._generation += 1
        generation = self._generation
        self._in_progress = graph

        try:
            with log_operation("build_project_map", {"root": root}):
                seeded = await self._seed(store, self._make_indexer())
                logger.info("  Seeded %d markup documents", seeded)

                scanner = ConvergentScanner(
                    store,
                    ReferenceResolver(root_key, self.config.strategies()),
                    self._make_reader(),
                    max_concurrency=self.config.max_concurrency,
                )
                stats = await scanner.scan()
        finally:
            if self._in_progress is graph:
                self._in_progress = None

        graph.complete = True
        if generation == self._generation:
            self._graph = graph
            self.stats = stats
        else:
            logger.info("  Superseded build finished; keeping the newer map")
        return graph

    def cancel(self) -> bool:
        """Abandon the in-flight build started by :meth:`on_project_open`.

        Returns:
            True if a running build was cancelled.
        """
        if self._task is not None and not self._task.done():
            self._task.cancel()
            return True
        return False

    def on_project_open(self, root: str | Path | None = None) -> asyncio.Task[ProjectGraph]:
        """Handle a project-opened event: cancel any running build and start a new one.

        Must be called from a running event loop.

        Args:
            root: New project root; keeps the current root when omitted.

        Returns:
            The task running the new build.
        """
        if root is not None:
            self._root = Path(root).resolve()
        if self.cancel():
            logger.info("  Superseding in-flight build")
        self._task = asyncio.create_task(self.build())
        return self._task


def build_project_map(
    root: str | Path,
    config: ScanConfig | None = None,
    **options: object,
) -> ProjectGraph:
    """Build the project map for ``root`` (blocking).

    Args:
        root: Project root directory.
        config: Scan options. When omitted, built from the environment plus
            ``options`` (any :class:`ScanConfig` field).

    Returns:
        The completed graph.
    """
    if config is None:
        config = ScanConfig.from_env(**options)
    builder = ProjectMapBuilder(root, config=config)
    return asyncio.run(builder.build())
