"""Heuristic (regex) feature detector.

Used for style and markup files, and for scripts whose syntax tree is
unavailable. Each rule is anchored on a call parenthesis, selector token
or tag/attribute boundary so unrelated identifiers do not match.

A pattern may define a named group `at`; when present the usage is
reported at that group instead of at the start of the match, for rules
that need leading context (a tag opener, the start of a line).
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import PurePath

from baseline_scan.scanner.positions import position_from_index
from baseline_scan.scanner.types import MARKUP, SCRIPT, STYLE, UsageSite

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatternRule:
    feature_id: str
    pattern: re.Pattern
    skip_suffixes: frozenset[str] = frozenset()


def _global_member(name: str, tail: str) -> str:
    """Pattern for `name.tail` on a bare or window-qualified global.

    A parenthesized receiver such as `(navigator as any)` matches from its
    opening parenthesis, where the call expression starts.
    """
    receiver = rf"(?:(?:window|globalThis|self)\s*\.\s*)?{name}"
    wrapped = rf"\(\s*{receiver}(?:\s+(?:as|satisfies)\s+\w+|\s*!)?\s*\)"
    return rf"(?<![\w$.])(?:{wrapped}|{receiver})\s*\.\s*{tail}"


_SCRIPT_RULES: tuple[PatternRule, ...] = (
    PatternRule("structured-clone", re.compile(r"\bstructuredClone\s*\(")),
    PatternRule("array-prototype-at", re.compile(r"\.at\s*\(")),
    PatternRule("promise-any", re.compile(r"\bPromise\.any\s*\(")),
    PatternRule(
        "urlpattern",
        re.compile(r"\bnew\s+(?:(?:window|globalThis|self)\s*\.\s*)?URLPattern\s*\("),
    ),
    PatternRule("view-transitions", re.compile(r"\bdocument\s*\.\s*startViewTransition\s*\(")),
    PatternRule("navigator-share", re.compile(_global_member("navigator", r"share\s*\("))),
    PatternRule(
        "file-system-access-picker",
        re.compile(r"\b(?:showOpenFilePicker|showSaveFilePicker|showDirectoryPicker)\s*\("),
    ),
    PatternRule("url-canparse", re.compile(_global_member("URL", r"canParse\s*\("))),
    PatternRule(
        "async-clipboard",
        re.compile(r"\bnavigator\s*\.\s*clipboard\s*(?:\?\.|\.)\s*(?:readText|writeText|read|write)\s*\("),
    ),
    PatternRule("html-dialog", re.compile(r"\.showModal\s*\(")),
)

_STYLE_RULES: tuple[PatternRule, ...] = (
    PatternRule("css-has", re.compile(r":has\s*\(")),
    PatternRule(
        "css-text-wrap-balance",
        re.compile(r"\btext-wrap(?:-style)?\s*:\s*balance\b", re.IGNORECASE),
    ),
    PatternRule("css-color-mix", re.compile(r"\bcolor-mix\s*\(")),
    # `&` is native nesting in plain CSS only; Sass compiles it away
    PatternRule(
        "css-nesting",
        re.compile(r"^[ \t]*(?P<at>&)[\s.:#\[>~+]", re.MULTILINE),
        skip_suffixes=frozenset({".scss", ".sass"}),
    ),
    PatternRule("css-modal-pseudo", re.compile(r":modal\b")),
    PatternRule("css-container-queries", re.compile(r"@container\b")),
    PatternRule("css-color-oklch", re.compile(r"\bokl(?:ch|ab)\s*\(")),
)

_MARKUP_RULES: tuple[PatternRule, ...] = (
    PatternRule(
        "html-popover",
        re.compile(
            r"<[a-z][\w-]*\b[^>]*?\s(?P<at>popover(?:target(?:action)?)?)(?=[\s=>/])",
            re.IGNORECASE,
        ),
    ),
    PatternRule("html-dialog", re.compile(r"<dialog\b", re.IGNORECASE)),
    PatternRule(
        "import-maps",
        re.compile(r"<script\b[^>]*\btype\s*=\s*[\"']importmap(?:-shim)?[\"'][^>]*>", re.IGNORECASE),
    ),
    PatternRule(
        "loading-lazy-attr",
        re.compile(r"<(?:img|iframe)\b[^>]*\bloading\s*=\s*[\"']?lazy\b", re.IGNORECASE),
    ),
)

RULES_BY_KIND: dict[str, tuple[PatternRule, ...]] = {
    SCRIPT: _SCRIPT_RULES,
    STYLE: _STYLE_RULES,
    MARKUP: _MARKUP_RULES,
}

# Textual alias tracking for global constructors: `const P = URLPattern`
_CTOR_ALIAS = re.compile(
    r"(?:\b(?:const|let|var)\s+)?(?<![\w$.])([A-Za-z_$][\w$]*)\s*=\s*"
    r"(?:(?:window|globalThis|self)\s*\.\s*)?(URLPattern)\b(?!\s*\()"
)
_ALIASED_FEATURES = {"URLPattern": "urlpattern"}


def scan_heuristics(
    content: str,
    file_path: str,
    kind: str,
    disabled: Iterable[str] = (),
) -> list[UsageSite]:
    """Run the regex rules for a file kind and return sites in document order.

    A rule that fails is skipped for this file; the others still run.
    """
    skipped = set(disabled)
    suffix = PurePath(file_path).suffix.lower()

    # (offset, rule order, feature id)
    hits: list[tuple[int, int, str]] = []
    rules = RULES_BY_KIND.get(kind, ())

    for order, rule in enumerate(rules):
        if rule.feature_id in skipped or suffix in rule.skip_suffixes:
            continue
        try:
            offsets = [_match_offset(m) for m in rule.pattern.finditer(content)]
        except Exception as exc:
            logger.warning("Pattern %s failed on %s: %s", rule.feature_id, file_path, exc)
            continue
        hits.extend((offset, order, rule.feature_id) for offset in offsets)

    if kind == SCRIPT:
        alias_order = len(rules)
        for offset, feature_id in _scan_constructor_aliases(content, file_path):
            if feature_id not in skipped:
                hits.append((offset, alias_order, feature_id))

    hits.sort()

    sites: list[UsageSite] = []
    for offset, _, feature_id in hits:
        line, column = position_from_index(content, offset)
        sites.append(UsageSite(
            feature_id=feature_id,
            line=line,
            column=column,
            source="heuristic",
            offset=offset,
        ))
    return sites


def _match_offset(match: re.Match) -> int:
    if "at" in match.re.groupindex:
        return match.start("at")
    return match.start()


def _scan_constructor_aliases(content: str, file_path: str) -> list[tuple[int, str]]:
    """Find `new <alias>(` for names bound to a tracked global constructor."""
    aliases: dict[str, str] = {}
    for m in _CTOR_ALIAS.finditer(content):
        name, ctor = m.group(1), m.group(2)
        if name not in _ALIASED_FEATURES and name not in {"const", "let", "var"}:
            aliases.setdefault(name, _ALIASED_FEATURES[ctor])

    found: list[tuple[int, str]] = []
    for name, feature_id in aliases.items():
        try:
            use = re.compile(r"(?<![\w$.])new\s+" + re.escape(name) + r"\s*\(")
            found.extend((m.start(), feature_id) for m in use.finditer(content))
        except re.error as exc:
            logger.warning("Alias pattern for %s failed on %s: %s", name, file_path, exc)
    return found
