"""File indexing: enumerate the files a build starts from."""

import os
from pathlib import Path
from typing import NamedTuple, Protocol

from projectmap.analyzers.ignore import load_ignore_patterns, should_ignore
from projectmap.logging import logger


class FileInfo(NamedTuple):
    """An indexed file."""

    full_path: str  # Absolute path, '/'-separated
    name: str  # Bare file name


class FileIndexer(Protocol):
    """Anything that can list a project's files by extension."""

    def list_files(self, extension: str) -> list[FileInfo]: ...


class DirectoryIndexer:
    """Walks a directory tree, skipping ignored directories and files.

    Args:
        root: Project root directory.
        ignore_patterns: Patterns to skip; defaults to
            :func:`~projectmap.analyzers.ignore.load_ignore_patterns`.
    """

    def __init__(self, root: str | Path, ignore_patterns: set[str] | None = None):
        self.root = Path(root).resolve()
        if ignore_patterns is None:
            ignore_patterns = load_ignore_patterns(self.root)
        self.ignore_patterns = ignore_patterns

    def list_files(self, extension: str) -> list[FileInfo]:
        """List every file under the root with the given extension.

        Args:
            extension: Extension without the leading dot, case-insensitive.

        Returns:
            Files sorted by path.

        Raises:
            NotADirectoryError: If the root is not a directory.
        """
        if not self.root.is_dir():
            raise NotADirectoryError(f"Not a directory: {self.root}")

        suffix = "." + extension.lower().lstrip(".")
        files: list[FileInfo] = []

        def _on_error(error: OSError) -> None:
            logger.warning("  Skipping unreadable directory %s: %s", error.filename, error.strerror)

        for dirpath, dirnames, filenames in os.walk(self.root, onerror=_on_error):
            current = Path(dirpath)
            # Prune in place so os.walk never descends into ignored directories
            dirnames[:] = sorted(
                d for d in dirnames
                if not should_ignore(current / d, self.root, self.ignore_patterns)
            )
            for filename in filenames:
                if not filename.lower().endswith(suffix):
                    continue
                path = current / filename
                if should_ignore(path, self.root, self.ignore_patterns):
                    continue
                files.append(FileInfo(full_path=path.as_posix(), name=filename))

        files.sort(key=lambda f: f.full_path)
        logger.debug("  Indexed %d %s files under %s", len(files), suffix, self.root)
        return files
