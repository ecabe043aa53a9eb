"""Logging configuration for ProjectMap.

Logs to stderr so stdout stays free for JSON output from the CLI.
Provides tqdm progress bars for long scans when stderr is a terminal.
"""

import logging
import os
import sys
import time
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from tqdm import tqdm as _tqdm

# Progress bars are disabled when:
# - PROJECTMAP_DISABLE_PROGRESS=1 is set explicitly
# - stderr is not a TTY (CI, pipes, host applications)
_DISABLE_PROGRESS = (
    os.getenv("PROJECTMAP_DISABLE_PROGRESS", "").lower() in ("1", "true", "yes")
    or not sys.stderr.isatty()
)

logger = logging.getLogger("projectmap")
logger.setLevel(logging.INFO)

# Only add handler if not already configured
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG)
    formatter = logging.Formatter(
        "[ProjectMap] %(asctime)s %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_progress(
    message: str,
    current: int | None = None,
    total: int | None = None,
    level: int = logging.INFO,
) -> None:
    """Log a progress message.

    Args:
        message: The progress message.
        current: Current item number (optional).
        total: Total items (optional).
        level: Log level (default INFO).
    """
    if current is not None and total is not None:
        pct = (current / total * 100) if total > 0 else 0
        logger.log(level, "%s [%d/%d %.1f%%]", message, current, total, pct)
    elif current is not None:
        logger.log(level, "%s [%d]", message, current)
    else:
        logger.log(level, message)


class TimingContext:
    """Context object that captures elapsed time from an operation.

    Attributes:
        elapsed: Elapsed time in seconds (set after context exits).
        elapsed_ms: Elapsed time in milliseconds (set after context exits).
    """

    def __init__(self) -> None:
        self.elapsed: float = 0.0
        self.elapsed_ms: float = 0.0
        self._start: float = 0.0

    def start(self) -> None:
        """Start the timer."""
        self._start = time.perf_counter()

    def stop(self) -> None:
        """Stop the timer and record elapsed time."""
        self.elapsed = time.perf_counter() - self._start
        self.elapsed_ms = self.elapsed * 1000


@contextmanager
def log_operation(
    operation: str,
    details: dict[str, Any] | None = None,
) -> Generator[TimingContext, None, None]:
    """Context manager for logging operation start/end with timing.

    Args:
        operation: Name of the operation.
        details: Optional details dict to include in start message.

    Yields:
        TimingContext object with elapsed time after context exits.

    Example:
        with log_operation("build_project_map", {"root": "/path/to/site"}) as timing:
            await builder.build()
        print(f"Took {timing.elapsed_ms:.1f}ms")
    """
    details_str = ""
    if details:
        details_str = " " + " ".join(f"{k}={v}" for k, v in details.items())

    logger.info("▶ Starting %s%s", operation, details_str)

    ctx = TimingContext()
    ctx.start()

    try:
        yield ctx
    except BaseException as e:
        ctx.stop()
        # Cancellation is an expected outcome when a newer build supersedes this one
        if isinstance(e, Exception):
            logger.error("✗ %s failed after %.2fs: %s", operation, ctx.elapsed, e)
        else:
            logger.info("■ %s abandoned after %.2fs", operation, ctx.elapsed)
        raise
    else:
        ctx.stop()
        logger.info("✓ Completed %s in %.2fs", operation, ctx.elapsed)


class ProgressBar:
    """Context manager for manual progress bar updates.

    Use when you can't iterate directly but need to update progress manually,
    e.g. when reads complete out of order.

    Example:
        with ProgressBar(total=len(frontier), desc="Scanning style") as pbar:
            for coro in asyncio.as_completed(reads):
                await coro
                pbar.update()
    """

    def __init__(
        self,
        total: int,
        desc: str | None = None,
        unit: str = "it",
        disable: bool = False,
    ):
        """Initialize progress bar.

        Args:
            total: Total number of items to process.
            desc: Description shown before the progress bar.
            unit: Unit name for the items.
            disable: If True, disable progress bar entirely.
        """
        self.total = total
        self.desc = desc
        self.unit = unit
        self.disable = disable
        self._pbar: Any = None
        self._current = 0
        self._start_time = 0.0

    def __enter__(self) -> "ProgressBar":
        """Enter context and start progress bar."""
        self._start_time = time.perf_counter()
        if not self.disable and not _DISABLE_PROGRESS:
            self._pbar = _tqdm(
                total=self.total,
                desc=f"  {self.desc}" if self.desc else None,
                unit=self.unit,
                file=sys.stderr,
                ncols=80,
                leave=False,
                bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}, {rate_fmt}]",
            )
        elif not self.disable and self.total > 100:
            logger.info("  %s: processing %d %s...", self.desc or "Progress", self.total, self.unit)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Exit context and clean up progress bar."""
        if self._pbar is not None:
            self._pbar.close()
        elif not self.disable and self.total > 100:
            elapsed = time.perf_counter() - self._start_time
            rate = self._current / elapsed if elapsed > 0 else 0
            logger.info(
                "  %s: completed %d %s in %.2fs (%.1f/s)",
                self.desc or "Progress",
                self._current,
                self.unit,
                elapsed,
                rate,
            )

    def update(self, n: int = 1) -> None:
        """Update progress by n items.

        Args:
            n: Number of items completed.
        """
        self._current += n
        if self._pbar is not None:
            self._pbar.update(n)
