"""Convergent scanner: sweep unprocessed nodes until no new files turn up.

Each kind is swept in discrete passes. A pass snapshots the kind's
unprocessed nodes, reads and scans all of them concurrently (at most
``max_concurrency`` reads in flight), and waits for every read to settle.
Nodes discovered during a pass are picked up by the next one; a pass that
creates no node ends the sweep. Markup is swept first, then style, then
script, because markup discovery seeds the other two.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from projectmap.analyzers.extractors import extract_references
from projectmap.analyzers.file_access import ReadError
from projectmap.analyzers.paths import ReferenceResolver
from projectmap.analyzers.store import GraphStore
from projectmap.config import DEFAULT_MAX_CONCURRENCY
from projectmap.logging import ProgressBar, log_progress, logger
from projectmap.models.graph import RESOURCE_KINDS, ResourceKind, ResourceNode

ReadText = Callable[[str], Awaitable[str]]


@dataclass
class SweepStats:
    """Counters for one kind's sweep."""

    kind: ResourceKind
    passes: int = 0
    scanned: int = 0  # nodes whose content was read
    failed: int = 0  # nodes whose read failed
    references: int = 0  # references extracted
    created: int = 0  # nodes created by this sweep (any kind)


class ConvergentScanner:
    """Drives sweeps over a :class:`GraphStore`.

    Args:
        store: Store wrapping the graph being built.
        resolver: Turns raw references into canonical paths.
        read_text: Async file reader; raises ReadError (or OSError) on failure.
        max_concurrency: Maximum number of reads outstanding at once.
    """

    def __init__(
        self,
        store: GraphStore,
        resolver: ReferenceResolver,
        read_text: ReadText,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ):
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self.store = store
        self.resolver = resolver
        self._read_text = read_text
        self._semaphore = asyncio.Semaphore(max_concurrency)

    async def scan(self) -> dict[ResourceKind, SweepStats]:
        """Sweep markup, then style, then script, each to its fixed point."""
        return {kind: await self.sweep(kind) for kind in RESOURCE_KINDS}

    async def sweep(self, kind: ResourceKind) -> SweepStats:
        """Sweep one kind until a pass creates no new node.

        Returns:
            Counters for the sweep.
        """
        stats = SweepStats(kind=kind)

        while True:
            frontier = self.store.unprocessed_nodes(kind)
            if not frontier:
                break

            stats.passes += 1
            created = await self._run_pass(kind, frontier, stats)
            log_progress(
                f"  {kind} pass {stats.passes}: scanned {len(frontier)} files, {created} new nodes",
                current=stats.scanned + stats.failed,
                total=len(self.store.graph.nodes(kind)),
                level=logging.DEBUG,
            )
            if created == 0:
                break

        logger.info(
            "  %s: %d files in %d passes (%d unreadable, %d references)",
            kind,
            len(self.store.graph.nodes(kind)),
            stats.passes,
            stats.failed,
            stats.references,
        )
        return stats

    async def _run_pass(
        self,
        kind: ResourceKind,
        frontier: list[ResourceNode],
        stats: SweepStats,
    ) -> int:
        with ProgressBar(total=len(frontier), desc=f"Scanning {kind}", unit="files") as pbar:

            async def _tracked(node: ResourceNode) -> int:
                try:
                    return await self._scan_node(node, stats)
                finally:
                    pbar.update()

            results = await asyncio.gather(*(_tracked(node) for node in frontier))

        return sum(results)

    async def _scan_node(self, node: ResourceNode, stats: SweepStats) -> int:
        """Read one node, record its references, and return how many nodes it created."""
        async with self._semaphore:
            if not self.store.mark_processed(node):
                return 0
            try:
                text = await self._read_text(node.path)
            except ReadError as e:
                return self._read_failed(node, e.reason, stats)
            except OSError as e:
                return self._read_failed(node, e.strerror or str(e), stats)

        stats.scanned += 1
        created = 0
        for ref in extract_references(text, node.kind):
            target = self.resolver.resolve(node.path, ref.via, ref.raw)
            _, is_new = self.store.discover(node, ref.target_kind, target)
            stats.references += 1
            if is_new:
                created += 1
                logger.debug("    %s -> %s (%s, line %d)", node.path, target, ref.via, ref.line)

        stats.created += created
        return created

    def _read_failed(self, node: ResourceNode, reason: str, stats: SweepStats) -> int:
        self.store.record_failure(node, reason)
        stats.failed += 1
        logger.debug("  Could not read %s: %s", node.path, reason)
        return 0
