"""AST-based feature detector using tree-sitter.

Parses JS/TS files into syntax trees and walks them looking for call and
constructor shapes that use non-Baseline platform APIs. More precise than
the regex path: comments and strings never match, receivers are resolved
through TypeScript casts, and constructor aliases are tracked.

Parsing returns a tagged outcome (ParsedScript or ParseFailed) so the
caller chooses the regex path explicitly when the tree is unusable.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Optional

import tree_sitter
import tree_sitter_javascript as tsjs
import tree_sitter_typescript as tsts

from baseline_scan.scanner.positions import position_from_byte
from baseline_scan.scanner.tree import (
    is_global_ref,
    is_identifier,
    is_navigator,
    member,
    node_text,
    unwrap,
    walk,
)
from baseline_scan.scanner.types import ParseFailed, ParseOutcome, ParsedScript, UsageSite

logger = logging.getLogger(__name__)

# Initialize languages once at module level
_JS_LANG = tree_sitter.Language(tsjs.language())
_TS_LANG = tree_sitter.Language(tsts.language_typescript())
_TSX_LANG = tree_sitter.Language(tsts.language_tsx())

# File extension to language mapping
_LANG_MAP: dict[str, tree_sitter.Language] = {
    ".js": _JS_LANG,
    ".jsx": _JS_LANG,
    ".mjs": _JS_LANG,
    ".cjs": _JS_LANG,
    ".ts": _TS_LANG,
    ".mts": _TS_LANG,
    ".cts": _TS_LANG,
    ".tsx": _TSX_LANG,
}

# Global constructors whose aliases are tracked, mapped to their feature id
GLOBAL_CONSTRUCTORS: dict[str, str] = {
    "URLPattern": "urlpattern",
}

CLIPBOARD_METHODS = frozenset({"readText", "writeText", "read", "write"})
FILE_PICKERS = frozenset({"showOpenFilePicker", "showSaveFilePicker", "showDirectoryPicker"})


def parse_script(content: str, file_path: str) -> ParseOutcome:
    """Parse a script file with the grammar matching its extension.

    A tree containing error nodes is reported as ParseFailed: matching
    shapes inside a half-parsed tree would misplace or miss usages.
    """
    language = _LANG_MAP.get(PurePath(file_path).suffix.lower())
    if language is None:
        return ParseFailed(f"no grammar for {file_path}")

    try:
        source = content.encode("utf-8")
        parser = tree_sitter.Parser(language)
        tree = parser.parse(source)
    except Exception as exc:
        logger.warning("Failed to parse %s: %s", file_path, exc)
        return ParseFailed(str(exc))

    if tree.root_node.has_error:
        logger.debug("Syntax errors in %s; using regex detection", file_path)
        return ParseFailed("syntax error")

    return ParsedScript(tree=tree, source=source)


@dataclass
class _MatchContext:
    aliases: dict[str, str] = field(default_factory=dict)


def scan_tree(
    parsed: ParsedScript,
    file_path: str,
    disabled: Iterable[str] = (),
) -> list[UsageSite]:
    """Walk a parsed script and return usage sites in document order.

    A structural rule that raises is dropped for the rest of this file,
    along with anything it already matched; other rules keep running.
    """
    root = parsed.tree.root_node
    ctx = _MatchContext(aliases=collect_constructor_aliases(root))

    skipped = set(disabled)
    broken: set[str] = set()
    sites: list[UsageSite] = []

    for node in walk(root):
        for feature_id, matcher in _RULES:
            if feature_id in skipped or feature_id in broken:
                continue
            try:
                matched = matcher(node, ctx)
            except Exception as exc:
                logger.warning(
                    "Structural rule %s failed on %s: %s", feature_id, file_path, exc,
                )
                broken.add(feature_id)
                continue
            if matched:
                line, column = position_from_byte(parsed.source, node.start_byte)
                sites.append(UsageSite(
                    feature_id=feature_id,
                    line=line,
                    column=column,
                    source="ast",
                    node=node,
                ))

    if broken:
        sites = [s for s in sites if s.feature_id not in broken]
    return sites


def collect_constructor_aliases(root: tree_sitter.Node) -> dict[str, str]:
    """Pre-pass: map local names bound to a tracked global constructor.

    Picks up `const P = URLPattern`, `P = window.URLPattern` and chains
    such as `const Q = P`, resolved until no new alias appears.
    """
    bindings: list[tuple[str, tree_sitter.Node]] = []
    for node in walk(root):
        if node.type == "variable_declarator":
            name, value = node.child_by_field_name("name"), node.child_by_field_name("value")
        elif node.type == "assignment_expression":
            name, value = node.child_by_field_name("left"), node.child_by_field_name("right")
        else:
            continue
        if name is not None and value is not None and name.type == "identifier":
            bindings.append((node_text(name), value))

    aliases: dict[str, str] = {}
    changed = True
    while changed:
        changed = False
        for alias, value in bindings:
            if alias in aliases or alias in GLOBAL_CONSTRUCTORS:
                continue
            canonical = _canonical_constructor(value, aliases)
            if canonical:
                aliases[alias] = canonical
                changed = True
    return aliases


def _canonical_constructor(
    node: tree_sitter.Node, aliases: dict[str, str]
) -> Optional[str]:
    for name in GLOBAL_CONSTRUCTORS:
        if is_global_ref(node, name):
            return name
    if is_identifier(node):
        return aliases.get(node_text(unwrap(node)))
    return None


# ---------------------------------------------------------------------------
# Structural rules: (node, ctx) -> bool
# ---------------------------------------------------------------------------

def _callee(node: tree_sitter.Node) -> Optional[tree_sitter.Node]:
    if node.type != "call_expression":
        return None
    return node.child_by_field_name("function")


def _method_call(node: tree_sitter.Node) -> tuple[Optional[tree_sitter.Node], Optional[str]]:
    callee = _callee(node)
    if callee is None:
        return None, None
    return member(callee)


def _match_async_clipboard(node: tree_sitter.Node, ctx: _MatchContext) -> bool:
    """navigator.clipboard.readText/writeText/read/write(...)"""
    obj, method = _method_call(node)
    if method not in CLIPBOARD_METHODS:
        return False
    receiver, prop = member(obj)
    return prop == "clipboard" and is_navigator(receiver)


def _match_structured_clone(node: tree_sitter.Node, ctx: _MatchContext) -> bool:
    callee = _callee(node)
    return callee is not None and is_global_ref(callee, "structuredClone")


def _match_array_at(node: tree_sitter.Node, ctx: _MatchContext) -> bool:
    return _method_call(node)[1] == "at"


def _match_promise_any(node: tree_sitter.Node, ctx: _MatchContext) -> bool:
    obj, method = _method_call(node)
    return method == "any" and is_global_ref(obj, "Promise")


def _match_urlpattern(node: tree_sitter.Node, ctx: _MatchContext) -> bool:
    """new URLPattern(...), new window.URLPattern(...), or new <alias>(...)"""
    if node.type != "new_expression":
        return False
    ctor = node.child_by_field_name("constructor")
    if is_global_ref(ctor, "URLPattern"):
        return True
    return is_identifier(ctor) and ctx.aliases.get(node_text(unwrap(ctor))) == "URLPattern"


def _match_view_transitions(node: tree_sitter.Node, ctx: _MatchContext) -> bool:
    obj, method = _method_call(node)
    return method == "startViewTransition" and is_global_ref(obj, "document")


def _match_navigator_share(node: tree_sitter.Node, ctx: _MatchContext) -> bool:
    obj, method = _method_call(node)
    return method == "share" and is_navigator(obj)


def _match_url_canparse(node: tree_sitter.Node, ctx: _MatchContext) -> bool:
    obj, method = _method_call(node)
    return method == "canParse" and is_global_ref(obj, "URL")


def _match_file_picker(node: tree_sitter.Node, ctx: _MatchContext) -> bool:
    callee = _callee(node)
    if callee is None:
        return False
    return any(is_global_ref(callee, name) for name in FILE_PICKERS)


def _match_show_modal(node: tree_sitter.Node, ctx: _MatchContext) -> bool:
    return _method_call(node)[1] == "showModal"


_RULES: tuple[tuple[str, Callable[[tree_sitter.Node, _MatchContext], bool]], ...] = (
    ("async-clipboard", _match_async_clipboard),
    ("structured-clone", _match_structured_clone),
    ("array-prototype-at", _match_array_at),
    ("promise-any", _match_promise_any),
    ("urlpattern", _match_urlpattern),
    ("navigator-share", _match_navigator_share),
    ("url-canparse", _match_url_canparse),
    ("view-transitions", _match_view_transitions),
    ("file-system-access-picker", _match_file_picker),
    ("html-dialog", _match_show_modal),
)

STRUCTURAL_FEATURES = frozenset(feature_id for feature_id, _ in _RULES)
