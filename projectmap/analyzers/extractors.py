"""Pattern-based reference extraction for markup, style and script files.

Extraction is line-oriented regex matching, not parsing. References built
at runtime, split across lines, or otherwise non-literal are not found.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass

from projectmap.analyzers.paths import clean_reference
from projectmap.models.graph import ReferenceVia, ResourceKind

# <link ... rel="stylesheet" ... href="..."> (attributes in any order)
_LINK_TAG = re.compile(r"<link\b[^>]*>", re.IGNORECASE)
_STYLESHEET_REL = re.compile(r"""\brel\s*=\s*["']?stylesheet\b""", re.IGNORECASE)
_HREF_ATTR = re.compile(r"""(?<![\w-])href\s*=\s*(["'])([^"']*)\1""", re.IGNORECASE)

# <script ... src="...">
_SCRIPT_TAG = re.compile(r"<script\b[^>]*>", re.IGNORECASE)
_SRC_ATTR = re.compile(r"""(?<![\w-])src\s*=\s*(["'])([^"']*)\1""", re.IGNORECASE)
_SCRIPT_EXTENSION_MARKER = ".js"

# @import "a.css";  @import'a.css';  @import url(a.css);  @import url("a.css");
_IMPORT = re.compile(
    r"""@import\s*(?:url\(\s*(["']?)([^"')\s]+)\1\s*\)|(["'])([^"']+)\3)""",
    re.IGNORECASE,
)

# require("mod") / require('mod')
_REQUIRE = re.compile(r"""\brequire\s*\(\s*(["'])([^"']+)\1""")

_REMOTE_PREFIXES = ("http:", "https:", "data:", "//")


@dataclass(frozen=True)
class Reference:
    """A reference found in one file's content."""

    target_kind: ResourceKind  # style or script
    raw: str  # Reference string as written
    via: ReferenceVia  # link, import, script, require
    line: int  # 1-based line number


def _is_extractable(raw: str) -> bool:
    # "?v=2" or "#" alone would resolve to the containing directory
    ref = clean_reference(raw)
    if not ref:
        return False
    return not ref.lower().startswith(_REMOTE_PREFIXES)


def _stylesheet_links(line: str) -> Iterator[str]:
    for tag in _LINK_TAG.finditer(line):
        text = tag.group(0)
        if not _STYLESHEET_REL.search(text):
            continue
        href = _HREF_ATTR.search(text)
        if href:
            yield href.group(2)


def _script_sources(line: str) -> Iterator[str]:
    for tag in _SCRIPT_TAG.finditer(line):
        src = _SRC_ATTR.search(tag.group(0))
        if src and _SCRIPT_EXTENSION_MARKER in src.group(2):
            yield src.group(2)


def _style_imports(line: str) -> Iterator[str]:
    for match in _IMPORT.finditer(line):
        yield match.group(2) or match.group(4)


def _requires(line: str) -> Iterator[str]:
    for match in _REQUIRE.finditer(line):
        yield match.group(2)


# Extraction rules per source kind: (target kind, via, line matcher)
_RULES = {
    "markup": (
        ("style", "link", _stylesheet_links),
        ("style", "import", _style_imports),
        ("script", "script", _script_sources),
    ),
    "style": (("style", "import", _style_imports),),
    "script": (("script", "require", _requires),),
}


def extract_references(text: str, source_kind: ResourceKind) -> Iterator[Reference]:
    """Find outgoing references in a file's text.

    Args:
        text: Full file content.
        source_kind: Kind of the file the text came from.

    Yields:
        References in line order; within a line, grouped by rule.
    """
    rules = _RULES[source_kind]
    for lineno, line in enumerate(text.splitlines(), 1):
        for target_kind, via, matcher in rules:
            for raw in matcher(line):
                if _is_extractable(raw):
                    yield Reference(target_kind=target_kind, raw=raw, via=via, line=lineno)
