"""Types for the scanner module.

A UsageSite is one raw detection: a feature id at a 1-based position.
Structural detections carry the tree-sitter node so the guard classifier
can walk its ancestors; regex detections carry the character offset so
the classifier can look back through the raw text.
"""

from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional, Union

import tree_sitter

# File kinds, dispatched by extension
SCRIPT = "script"
STYLE = "style"
MARKUP = "markup"

_KIND_BY_SUFFIX: dict[str, str] = {
    ".js": SCRIPT,
    ".jsx": SCRIPT,
    ".mjs": SCRIPT,
    ".cjs": SCRIPT,
    ".ts": SCRIPT,
    ".mts": SCRIPT,
    ".cts": SCRIPT,
    ".tsx": SCRIPT,
    ".css": STYLE,
    ".scss": STYLE,
    ".sass": STYLE,
    ".html": MARKUP,
    ".htm": MARKUP,
}

SCANNABLE_EXTENSIONS = frozenset(_KIND_BY_SUFFIX)


def file_kind(file_path: str) -> Optional[str]:
    """Return the file kind for a path, or None if it is not scannable."""
    return _KIND_BY_SUFFIX.get(PurePath(file_path).suffix.lower())


@dataclass
class UsageSite:
    """A raw feature usage found by the pattern detector.

    source: "ast" or "heuristic", depending on which path found it.
    node: The matched tree-sitter node (structural path only).
    offset: Character offset of the match (regex path only).
    """

    feature_id: str
    line: int
    column: int
    source: str
    node: Optional[tree_sitter.Node] = None
    offset: Optional[int] = None


@dataclass(frozen=True)
class ParsedScript:
    """Successful parse of a script file."""

    tree: tree_sitter.Tree
    source: bytes


@dataclass(frozen=True)
class ParseFailed:
    """The structural path is unavailable for this file."""

    reason: str


ParseOutcome = Union[ParsedScript, ParseFailed]
