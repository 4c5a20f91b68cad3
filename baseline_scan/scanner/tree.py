"""Helpers for inspecting tree-sitter JavaScript/TypeScript nodes.

Shared by the structural detector and the guard classifier. All
traversals here are iterative; tree-sitter already exposes parent links
on nodes, so ancestor walks need no extra bookkeeping.
"""

from collections.abc import Callable, Iterator
from typing import Optional

import tree_sitter

# Receivers that expose browser globals as properties
GLOBAL_OBJECTS = frozenset({"window", "globalThis", "self"})

# Expression wrappers that do not change which value is referenced:
# (x), x as T, x!, x satisfies T, <T>x
_TRANSPARENT_TYPES = frozenset({
    "parenthesized_expression",
    "as_expression",
    "non_null_expression",
    "satisfies_expression",
    "type_assertion",
})


def node_text(node: Optional[tree_sitter.Node]) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def unwrap(node: Optional[tree_sitter.Node]) -> Optional[tree_sitter.Node]:
    """Strip parentheses and TypeScript casts around an expression."""
    while node is not None and node.type in _TRANSPARENT_TYPES:
        named = node.named_children
        if not named:
            break
        # <T>x puts the type first; every other wrapper puts the value first
        node = named[-1] if node.type == "type_assertion" else named[0]
    return node


def is_identifier(node: Optional[tree_sitter.Node], name: Optional[str] = None) -> bool:
    node = unwrap(node)
    if node is None or node.type != "identifier":
        return False
    return name is None or node_text(node) == name


def string_value(node: Optional[tree_sitter.Node]) -> Optional[str]:
    """Return the contents of a plain string literal, else None."""
    node = unwrap(node)
    if node is None:
        return None
    if node.type == "string":
        return node_text(node)[1:-1]
    if node.type == "template_string" and not any(
        c.type == "template_substitution" for c in node.children
    ):
        return node_text(node)[1:-1]
    return None


def member(
    node: Optional[tree_sitter.Node],
) -> tuple[Optional[tree_sitter.Node], Optional[str]]:
    """Split a property access into (object node, property name).

    Handles both `a.b` and `a["b"]`. Returns (None, None) for anything else.
    """
    node = unwrap(node)
    if node is None:
        return None, None
    if node.type == "member_expression":
        prop = node.child_by_field_name("property")
        return node.child_by_field_name("object"), node_text(prop) if prop else None
    if node.type == "subscript_expression":
        key = string_value(node.child_by_field_name("index"))
        if key is not None:
            return node.child_by_field_name("object"), key
    return None, None


def reference_name(node: Optional[tree_sitter.Node]) -> Optional[str]:
    """Name an expression refers to: the identifier itself or the accessed property."""
    node = unwrap(node)
    if is_identifier(node):
        return node_text(node)
    return member(node)[1]


def is_global_ref(node: Optional[tree_sitter.Node], name: str) -> bool:
    """True for `name`, `window.name`, `globalThis.name` or `self.name`."""
    if is_identifier(node, name):
        return True
    obj, prop = member(node)
    if prop != name:
        return False
    obj = unwrap(obj)
    return is_identifier(obj) and node_text(obj) in GLOBAL_OBJECTS


def is_navigator(node: Optional[tree_sitter.Node]) -> bool:
    return is_global_ref(node, "navigator")


def has_optional_chain(node: Optional[tree_sitter.Node]) -> bool:
    """True if the node itself is accessed or called through `?.`."""
    node = unwrap(node)
    if node is None:
        return False
    return any(child.type == "optional_chain" for child in node.children)


def operator(node: tree_sitter.Node) -> Optional[str]:
    op = node.child_by_field_name("operator")
    return op.type if op is not None else None


def walk(root: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
    """Yield root and all descendants in document pre-order, without recursion."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def contains(
    root: Optional[tree_sitter.Node],
    predicate: Callable[[tree_sitter.Node], bool],
) -> bool:
    if root is None:
        return False
    return any(predicate(node) for node in walk(root))


def within(inner: tree_sitter.Node, outer: tree_sitter.Node) -> bool:
    return outer.start_byte <= inner.start_byte and inner.end_byte <= outer.end_byte
