"""Pattern detector entry point — dispatches a file to the right path.

Scripts go through the tree-sitter path; if the parse fails the file is
scanned with the script regex rules instead. Style and markup files only
have regex rules. Never raises for bad input: an unknown extension or a
failing rule simply yields fewer sites.
"""

import logging
from collections.abc import Iterable

from baseline_scan.scanner.ast_scanner import parse_script, scan_tree
from baseline_scan.scanner.heuristics import scan_heuristics
from baseline_scan.scanner.types import SCRIPT, ParseFailed, UsageSite, file_kind

logger = logging.getLogger(__name__)


def detect_usages(
    content: str,
    file_path: str,
    disabled: Iterable[str] = (),
) -> list[UsageSite]:
    """Return raw usage sites for one file, in document order."""
    disabled = frozenset(disabled)
    kind = file_kind(file_path)
    if kind is None:
        return []

    if kind != SCRIPT:
        return scan_heuristics(content, file_path, kind, disabled)

    outcome = parse_script(content, file_path)
    if isinstance(outcome, ParseFailed):
        logger.debug("Regex fallback for %s (%s)", file_path, outcome.reason)
        return scan_heuristics(content, file_path, kind, disabled)

    try:
        return scan_tree(outcome, file_path, disabled)
    except Exception as exc:
        logger.warning("Tree walk failed for %s: %s; using regex detection", file_path, exc)
        return scan_heuristics(content, file_path, kind, disabled)
