"""Guard classifier — is a usage already behind a feature-detection check?

Two strategies, matching the two detector paths:

Structural (tree available): walk the usage's ancestors looking for an
enclosing `if`, ternary or `&&` chain whose test satisfies the feature's
own predicate, or an optional-chained access right after the feature's
surface (`navigator.share?.(...)`, `navigator.clipboard?.writeText()`).
A generic `if` that tests something unrelated does not count.

Textual (regex path): look back a fixed number of characters from the
match, take the last `if (...) {` opener in that window and test it
against the feature's guard regex. This is a best-effort approximation;
unusual formatting can make it miss a guard or see one that is not there.

Predicates are keyed by feature id and written by hand. A new structural
or regex rule needs a matching predicate here, or its usages are always
reported unguarded.
"""

import re
from collections.abc import Callable
from typing import Optional

import tree_sitter

from baseline_scan.scanner.ast_scanner import FILE_PICKERS
from baseline_scan.scanner.tree import (
    contains,
    has_optional_chain,
    is_global_ref,
    is_navigator,
    member,
    node_text,
    operator,
    reference_name,
    string_value,
    unwrap,
    within,
)
from baseline_scan.scanner.types import UsageSite

GUARD_LOOKBACK_CHARS = 800

_IF_OPENER = re.compile(r"\bif\s*\([^\n{]*\{")
_NEGATED_OPENER = re.compile(r"\bif\s*\(\s*!(?!!)")


def classify(site: UsageSite, content: str) -> bool:
    """Return True if the usage site is protected by a feature check."""
    if site.node is not None:
        return is_guarded_node(site.feature_id, site.node)
    if site.offset is not None:
        return is_guarded_text(site.feature_id, content, site.offset)
    return False


# ---------------------------------------------------------------------------
# Structural
# ---------------------------------------------------------------------------

def is_guarded_node(feature_id: str, node: tree_sitter.Node) -> bool:
    surfaces = _OPTIONAL_SURFACES.get(feature_id)
    if surfaces and _optional_names(node) & surfaces:
        return True

    predicate = _PREDICATES.get(feature_id)
    if predicate is None:
        return False

    child, parent = node, node.parent
    while parent is not None:
        test = _guarding_test(parent, child)
        if test is not None and predicate(test):
            return True
        child, parent = parent, parent.parent
    return False


def _guarding_test(
    parent: tree_sitter.Node, child: tree_sitter.Node
) -> Optional[tree_sitter.Node]:
    """Return the test expression of parent that gates child, if any.

    A plain test gates the consequence branch and a `!`-negated one the
    alternative, so `if (!navigator.share) { navigator.share() }` is not
    a guard.
    """
    if parent.type in ("if_statement", "ternary_expression"):
        test = parent.child_by_field_name("condition")
        if test is None or within(child, test):
            return None
        test, negated = _strip_negation(test)
        branch = parent.child_by_field_name("alternative" if negated else "consequence")
        if branch is not None and within(child, branch):
            return test
        return None
    if parent.type == "binary_expression" and operator(parent) == "&&":
        right = parent.child_by_field_name("right")
        left = parent.child_by_field_name("left")
        if right is not None and left is not None and within(child, right):
            left, negated = _strip_negation(left)
            return None if negated else left
    return None


def _strip_negation(test: tree_sitter.Node) -> tuple[tree_sitter.Node, bool]:
    node, negated = test, False
    inner = unwrap(node)
    while inner is not None and inner.type == "unary_expression" and operator(inner) == "!":
        argument = inner.child_by_field_name("argument")
        if argument is None:
            break
        node, negated = argument, not negated
        inner = unwrap(node)
    return node, negated


def _optional_names(node: tree_sitter.Node) -> set[str]:
    """Names that are only dereferenced/called after a `?.` presence check.

    For `a.b?.c()` that is "b"; for `a.b?.()` it is "b" as well.
    """
    names: set[str] = set()
    if node.type != "call_expression":
        return names
    callee = node.child_by_field_name("function")
    if has_optional_chain(node):
        name = reference_name(callee)
        if name:
            names.add(name)

    current = unwrap(callee)
    while current is not None and current.type in ("member_expression", "subscript_expression"):
        obj = current.child_by_field_name("object")
        if has_optional_chain(current):
            name = reference_name(obj)
            if name:
                names.add(name)
        current = unwrap(obj)
    return names


def _refs_member(test: tree_sitter.Node, prop: str, receiver: Callable) -> bool:
    def check(n: tree_sitter.Node) -> bool:
        obj, name = member(n)
        return name == prop and receiver(obj)
    return contains(test, check)


def _in_check(test: tree_sitter.Node, prop: str, receiver: Callable) -> bool:
    """`'prop' in receiver`"""
    def check(n: tree_sitter.Node) -> bool:
        if n.type != "binary_expression" or operator(n) != "in":
            return False
        return (
            string_value(n.child_by_field_name("left")) == prop
            and receiver(n.child_by_field_name("right"))
        )
    return contains(test, check)


def _any_receiver(node: Optional[tree_sitter.Node]) -> bool:
    return node is not None


def _is_url(node: Optional[tree_sitter.Node]) -> bool:
    return is_global_ref(node, "URL")


def _is_document(node: Optional[tree_sitter.Node]) -> bool:
    return is_global_ref(node, "document")


def _guards_share(test: tree_sitter.Node) -> bool:
    return _refs_member(test, "share", is_navigator) or _in_check(test, "share", is_navigator)


def _guards_canparse(test: tree_sitter.Node) -> bool:
    return _refs_member(test, "canParse", _is_url) or _in_check(test, "canParse", _is_url)


def _guards_view_transition(test: tree_sitter.Node) -> bool:
    return (
        _in_check(test, "startViewTransition", _is_document)
        or _refs_member(test, "startViewTransition", _is_document)
    )


def _guards_file_picker(test: tree_sitter.Node) -> bool:
    if contains(test, lambda n: reference_name(n) in FILE_PICKERS):
        return True
    return any(_in_check(test, name, _any_receiver) for name in FILE_PICKERS)


def _guards_clipboard(test: tree_sitter.Node) -> bool:
    return _refs_member(test, "clipboard", is_navigator) or _in_check(test, "clipboard", is_navigator)


def _guards_show_modal(test: tree_sitter.Node) -> bool:
    return _refs_member(test, "showModal", _any_receiver) or _in_check(test, "showModal", _any_receiver)


def _guards_urlpattern(test: tree_sitter.Node) -> bool:
    return (
        contains(test, lambda n: n.type == "identifier" and node_text(n) == "URLPattern")
        or _refs_member(test, "URLPattern", _any_receiver)
        or _in_check(test, "URLPattern", _any_receiver)
    )


_PREDICATES: dict[str, Callable[[tree_sitter.Node], bool]] = {
    "navigator-share": _guards_share,
    "url-canparse": _guards_canparse,
    "view-transitions": _guards_view_transition,
    "file-system-access-picker": _guards_file_picker,
    "async-clipboard": _guards_clipboard,
    "html-dialog": _guards_show_modal,
    "urlpattern": _guards_urlpattern,
}

# Feature surface whose optional access or call counts as a presence check
_OPTIONAL_SURFACES: dict[str, frozenset[str]] = {
    "navigator-share": frozenset({"share"}),
    "url-canparse": frozenset({"canParse"}),
    "view-transitions": frozenset({"startViewTransition"}),
    "file-system-access-picker": FILE_PICKERS,
    "async-clipboard": frozenset({"clipboard"}),
    "html-dialog": frozenset({"showModal"}),
}


# ---------------------------------------------------------------------------
# Textual
# ---------------------------------------------------------------------------

_TEXT_PREDICATES: dict[str, re.Pattern] = {
    # if ((navigator as any).share), if (window.navigator?.share)
    "navigator-share": re.compile(r"(?:navigator|window\.?navigator)[^\n{]*\.?\??\s*share\b"),
    # if ((URL as any).canParse), if ('canParse' in URL)
    "url-canparse": re.compile(r"\bURL[^\n{]*\.\s*canParse\b|canParse[\"']\s+in\s+URL\b"),
    "view-transitions": re.compile(
        r"startViewTransition[^\n{]*\bin\b[^\n{]*document|\bdocument\s*\??\.\s*startViewTransition\b"
    ),
    "file-system-access-picker": re.compile(
        r"\b(?:showOpenFilePicker|showSaveFilePicker|showDirectoryPicker)\b"
    ),
    # if (navigator.clipboard?.writeText), if (navigator.clipboard && ...)
    "async-clipboard": re.compile(r"(?:navigator|window\.?navigator)[^\n{]*\.?\??\s*clipboard\b"),
    "html-dialog": re.compile(r"\bshowModal\b"),
    "urlpattern": re.compile(r"\bURLPattern\b"),
}


def is_guarded_text(feature_id: str, content: str, offset: int) -> bool:
    pattern = _TEXT_PREDICATES.get(feature_id)
    if pattern is None:
        return False

    window = content[max(0, offset - GUARD_LOOKBACK_CHARS):offset]
    last_opener = None
    for match in _IF_OPENER.finditer(window):
        last_opener = match.group(0)
    if last_opener is None or _NEGATED_OPENER.match(last_opener):
        return False
    return pattern.search(last_opener) is not None
