"""Ignore pattern management for project indexing.

Keeps dependency, build and VCS directories out of the markup seed set.

Configuration:
    - DEFAULT_IGNORES: Universal patterns (node_modules, .git, etc.)
    - .projectmapignore: Per-project customization using gitignore-like syntax
    - PROJECTMAP_IGNORE / ScanConfig.extra_ignores: Additional patterns
"""

from fnmatch import fnmatch
from pathlib import Path

from projectmap.logging import logger

# Universal ignore patterns - always excluded
DEFAULT_IGNORES: frozenset[str] = frozenset({
    # Version control
    ".git",
    ".svn",
    ".hg",
    # Dependencies
    "node_modules",
    "bower_components",
    "jspm_packages",
    "vendor",
    # Python tooling that sometimes lives next to a site
    "__pycache__",
    ".venv",
    "venv",
    ".tox",
    # Build and framework outputs
    "dist",
    "build",
    ".next",
    ".nuxt",
    ".svelte-kit",
    ".parcel-cache",
    ".cache",
    # IDE
    ".idea",
    ".vscode",
    # Test coverage
    "coverage",
    "htmlcov",
    ".nyc_output",
})

PROJECTMAPIGNORE_FILENAME = ".projectmapignore"

_GLOB_CHARS = frozenset("*?[")


def get_default_ignores() -> set[str]:
    """Get a mutable copy of default ignore patterns.

    Returns:
        Set of directory/file patterns to ignore.
    """
    return set(DEFAULT_IGNORES)


def parse_projectmapignore(root: Path) -> set[str]:
    """Parse .projectmapignore file if it exists.

    Supports gitignore-style syntax:
    - Lines starting with # are comments
    - Empty lines are ignored
    - Patterns are directory/file names or glob patterns
    - Lines starting with ! are negations (not supported, skipped)

    Args:
        root: Path to project root.

    Returns:
        Set of patterns from .projectmapignore, empty if file doesn't exist.
    """
    ignore_file = root / PROJECTMAPIGNORE_FILENAME
    if not ignore_file.exists():
        return set()

    patterns: set[str] = set()
    try:
        content = ignore_file.read_text(encoding="utf-8")
        for line in content.splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("!"):
                logger.debug("  Negation patterns not supported: %s", line)
                continue
            patterns.add(line.rstrip("/"))
    except OSError as e:
        logger.warning("  Failed to read %s: %s", ignore_file, e)

    return patterns


def load_ignore_patterns(root: Path, extra: list[str] | None = None) -> set[str]:
    """Load all applicable ignore patterns for a project.

    Combines default ignores, .projectmapignore, and explicit extras.

    Args:
        root: Path to project root.
        extra: Additional patterns (e.g. from configuration).

    Returns:
        Combined set of all ignore patterns.
    """
    patterns = get_default_ignores()

    custom_patterns = parse_projectmapignore(root)
    if custom_patterns:
        patterns.update(custom_patterns)
        logger.debug("  Loaded %d patterns from %s", len(custom_patterns), PROJECTMAPIGNORE_FILENAME)

    if extra:
        patterns.update(p.rstrip("/") for p in extra if p.strip())

    return patterns


def _matches(part: str, patterns: set[str]) -> bool:
    if part in patterns:
        return True
    return any(
        fnmatch(part, pattern)
        for pattern in patterns
        if _GLOB_CHARS.intersection(pattern)
    )


def should_ignore(path: Path, root: Path, patterns: set[str]) -> bool:
    """Check if a path should be ignored.

    Matches each component of the path relative to the root against the
    patterns, either exactly or as a glob (``*.min.html``). Patterns that
    contain a '/' are matched against the whole relative path.

    Args:
        path: Path to check.
        root: Project root for relative path calculation.
        patterns: Set of ignore patterns.

    Returns:
        True if path should be ignored.
    """
    try:
        rel_path = path.relative_to(root)
    except ValueError:
        # Path is outside the project
        return True

    for part in rel_path.parts:
        if _matches(part, patterns):
            return True

    rel = rel_path.as_posix()
    return any("/" in pattern and fnmatch(rel, pattern) for pattern in patterns)
