"""Pytest configuration and shared fixtures."""

import asyncio
from collections.abc import Callable
from pathlib import Path

import pytest

from projectmap.analyzers.file_access import ReadError
from projectmap.analyzers.indexer import FileInfo


class MemoryFiles:
    """In-memory file indexer and reader with optional per-file read delays.

    Tracks every read and the peak number of reads in flight.
    """

    def __init__(self, files: dict[str, str], delays: dict[str, float] | None = None):
        self.files = dict(files)
        self.delays = delays or {}
        self.reads: list[str] = []
        self.in_flight = 0
        self.peak_in_flight = 0

    def list_files(self, extension: str) -> list[FileInfo]:
        suffix = "." + extension
        return [
            FileInfo(full_path=path, name=path.rsplit("/", 1)[-1])
            for path in sorted(self.files)
            if path.endswith(suffix)
        ]

    async def read_text(self, path: str) -> str:
        self.reads.append(path)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(path, 0))
            if path not in self.files:
                raise ReadError(path, "file not found")
            return self.files[path]
        finally:
            self.in_flight -= 1


@pytest.fixture
def memory_files() -> Callable[..., MemoryFiles]:
    """Factory for in-memory project files keyed by canonical path."""
    return MemoryFiles


@pytest.fixture
def make_site(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Write a project tree under tmp_path and return its resolved root."""

    def _make(files: dict[str, str]) -> Path:
        root = tmp_path.resolve()
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return _make


@pytest.fixture
def sample_site(make_site) -> Path:
    """index.html -> style.css (link) -> base.css (@import); index.html -> app.js -> util.js."""
    return make_site({
        "index.html": """<!DOCTYPE html>
<html>
<head>
    <link rel="stylesheet" href="style.css">
    <script src="app.js"></script>
</head>
<body></body>
</html>
""",
        "style.css": '@import "base.css";\nbody { margin: 0; }\n',
        "base.css": "html { font-size: 16px; }\n",
        "app.js": 'var util = require("util.js");\nutil.start();\n',
        "util.js": "exports.start = function () {};\n",
    })


@pytest.fixture
def root_key(tmp_path: Path) -> str:
    """Canonical directory key of tmp_path, with trailing slash."""
    return tmp_path.resolve().as_posix() + "/"
