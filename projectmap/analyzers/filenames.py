"""Cross-platform filename legality checks.

Some names are accepted by the local filesystem but break on other
platforms (Windows reserved device names, path separators, shell
metacharacters). Markup files with such names are left out of the map.
"""

import re

# Characters not allowed anywhere in a filename
_ILLEGAL_CHARACTERS = re.compile(r"[/?*:;{}<>\\|]")

# Dot-only names and Windows reserved device names
_ILLEGAL_NAMES = re.compile(r"^(\.+|com[1-9]|lpt[1-9]|nul|con|prn|aux)$", re.IGNORECASE)


def is_legal_filename(name: str) -> bool:
    """Check a bare filename (no directory part) for illegal characters or reserved names.

    Args:
        name: File name, e.g. ``'index.html'``.

    Returns:
        False if the name contains any of ``/ ? * : ; { } < > \\ |`` or is a
        reserved name (``.``, ``..``, ``com1``-``com9``, ``lpt1``-``lpt9``,
        ``nul``, ``con``, ``prn``, ``aux``; case-insensitive).
    """
    if _ILLEGAL_CHARACTERS.search(name):
        return False
    return _ILLEGAL_NAMES.match(name) is None
