"""Reference path resolution.

Canonical paths are plain strings: a containing directory (with trailing
slash) concatenated with the reference exactly as written. No filesystem
lookups and no ``.``/``..`` folding happen here, so two spellings of the
same file stay two nodes. A reference that does not point at a real file
becomes a node whose read fails later.
"""

from projectmap.config import DEFAULT_STRATEGIES
from projectmap.models.graph import ReferenceVia, ResolutionStrategy


def directory_of(path: str) -> str:
    """Return the directory part of a canonical path, including the trailing '/'.

    Args:
        path: Canonical path of a file.

    Returns:
        Everything up to and including the last '/', or '' if there is none.
    """
    return path[: path.rfind("/") + 1]


def as_directory(path: str) -> str:
    """Ensure a directory path ends with exactly one trailing '/'."""
    return path.rstrip("/") + "/"


def clean_reference(raw: str) -> str:
    """Drop whitespace and any ?query or #fragment suffix from a reference."""
    ref = raw.strip()
    for marker in ("?", "#"):
        idx = ref.find(marker)
        if idx != -1:
            ref = ref[:idx]
    return ref


def resolve(containing_directory: str, raw_reference: str) -> str:
    """Resolve a raw reference against a directory.

    Args:
        containing_directory: Directory with trailing '/'.
        raw_reference: Reference string as it appears in the file.

    Returns:
        Canonical path used as the node key.
    """
    return containing_directory + clean_reference(raw_reference)


class ReferenceResolver:
    """Resolves references using a strategy chosen per reference kind.

    ``containing`` resolves against the referencing file's own directory;
    ``project`` resolves against the project base directory. By default
    only ``require`` uses ``project``.
    """

    def __init__(
        self,
        project_root: str,
        strategies: dict[ReferenceVia, ResolutionStrategy] | None = None,
    ):
        self.project_root = as_directory(project_root)
        self.strategies: dict[ReferenceVia, ResolutionStrategy] = dict(DEFAULT_STRATEGIES)
        if strategies:
            self.strategies.update(strategies)

    def base_for(self, source_path: str, via: ReferenceVia) -> str:
        if self.strategies[via] == "project":
            return self.project_root
        return directory_of(source_path)

    def resolve(self, source_path: str, via: ReferenceVia, raw_reference: str) -> str:
        """Resolve a reference found in ``source_path``."""
        return resolve(self.base_for(source_path, via), raw_reference)
