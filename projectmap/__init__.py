"""ProjectMap - resource dependency graphs for markup-rooted web projects."""

# Load .env so PROJECTMAP_MAX_CONCURRENCY, PROJECTMAP_REQUIRE_RESOLUTION, etc.
# are set for any entry point (CLI, pytest, host applications).
from dotenv import load_dotenv

load_dotenv()

# Keep in sync with pyproject.toml [project] version.
__version__ = "0.1.0"


def build_project_map(root, **options):
    """Build the dependency graph of the project under ``root`` (blocking).

    Thin wrapper around :func:`projectmap.analyzers.project_map.build_project_map`
    so callers can do ``projectmap.build_project_map(path)``.
    """
    from projectmap.analyzers.project_map import build_project_map as _build

    return _build(root, **options)
