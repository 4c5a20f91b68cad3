"""Target query resolution over caniuse agent data.

Expands browserslist-style queries ("> 0.5% and not dead", "last 2
versions", "safari >= 15") into concrete (browser, version) agents using
the usage shares and release dates published in the caniuse `agents`
table. Queries are combined left to right:

    a, b / a or b   union
    a and b         intersection
    not b           remove b from what has been selected so far

Unsupported query forms raise UnknownTargetQueryError.
"""

import re
import time
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from baseline_scan.compat.versions import Version, parse_version


class UnknownTargetQueryError(ValueError):
    """Raised for a target query this resolver cannot interpret."""


@dataclass(frozen=True)
class Agent:
    browser: str
    version: str


@dataclass(frozen=True)
class AgentVersion:
    version: str
    usage: float
    release_date: Optional[int]


# Browser names accepted in queries, mapped to caniuse agent keys
BROWSER_ALIASES: dict[str, str] = {
    "chrome": "chrome",
    "firefox": "firefox",
    "ff": "firefox",
    "safari": "safari",
    "edge": "edge",
    "ie": "ie",
    "explorer": "ie",
    "opera": "opera",
    "ios": "ios_saf",
    "ios_saf": "ios_saf",
    "android": "android",
    "chromeandroid": "and_chr",
    "and_chr": "and_chr",
    "firefoxandroid": "and_ff",
    "and_ff": "and_ff",
    "operamini": "op_mini",
    "op_mini": "op_mini",
    "operamobile": "op_mob",
    "op_mob": "op_mob",
    "samsung": "samsung",
    "ucandroid": "and_uc",
    "and_uc": "and_uc",
    "qqandroid": "and_qq",
    "and_qq": "and_qq",
    "baidu": "baidu",
    "kaios": "kaios",
    "blackberry": "bb",
    "bb": "bb",
    "explorermobile": "ie_mob",
    "ie_mob": "ie_mob",
}

FIREFOX_ESR_VERSIONS = ("128", "140")

DEFAULT_QUERIES = ("> 0.5%", "last 2 versions", "Firefox ESR", "not dead")

# Browsers without official support or updates for 24 months
DEAD_QUERIES = ("Baidu >= 0", "ie <= 11", "ie_mob <= 11", "bb <= 10", "op_mob <= 12.1", "samsung 4")

_USAGE = re.compile(r"^(>=|<=|>|<)\s*(\d+(?:\.\d+)?)%$")
_LAST_VERSIONS = re.compile(r"^last\s+(\d+)\s+(major\s+)?versions?$", re.IGNORECASE)
_LAST_BROWSER_VERSIONS = re.compile(r"^last\s+(\d+)\s+(\w+)\s+(major\s+)?versions?$", re.IGNORECASE)
_LAST_YEARS = re.compile(r"^last\s+(\d+(?:\.\d+)?)\s+years?$", re.IGNORECASE)
_SINCE = re.compile(r"^since\s+(\d{4})(?:-(\d{1,2}))?(?:-(\d{1,2}))?$", re.IGNORECASE)
_BROWSER_OP = re.compile(r"^(\w+)\s*(>=|<=|>|<)\s*(\d+(?:\.\d+)*)$")
_BROWSER_RANGE = re.compile(r"^(\w+)\s+(\d+(?:\.\d+)*)\s*-\s*(\d+(?:\.\d+)*)$")
_BROWSER_VERSION = re.compile(r"^(\w+)\s+([\w.\-]+)$")

_OR_SPLIT = re.compile(r"\s*,\s*|\s+or\s+", re.IGNORECASE)
_AND_SPLIT = re.compile(r"\s+and\s+", re.IGNORECASE)

_SECONDS_PER_YEAR = 365.25 * 24 * 60 * 60


class TargetResolver:
    """Resolves target queries against a caniuse `agents` mapping."""

    def __init__(self, agents: dict, now: Optional[float] = None):
        self._agents = _load_agents(agents)
        self._now = now

    def resolve(self, targets: Iterable[str]) -> list[Agent]:
        """Expand target queries into a sorted, de-duplicated agent list."""
        selected: set[Agent] = set()
        for is_and, negate, query in _split_queries(targets):
            matched = self._resolve_query(query)
            if negate:
                selected -= matched
            elif is_and:
                selected &= matched
            else:
                selected |= matched
        return sorted(selected, key=_agent_sort_key)

    # ------------------------------------------------------------------

    def _resolve_query(self, query: str) -> set[Agent]:
        lowered = query.lower()
        if lowered == "defaults":
            return set(self.resolve(DEFAULT_QUERIES))
        if lowered == "dead":
            return self._resolve_builtin(DEAD_QUERIES)
        if lowered in ("firefox esr", "ff esr", "fx esr"):
            return {
                Agent("firefox", v)
                for v in FIREFOX_ESR_VERSIONS
                if any(av.version == v for av in self._agents.get("firefox", []))
            }

        match = _USAGE.match(query)
        if match:
            return self._by_usage(match.group(1), float(match.group(2)))

        match = _LAST_VERSIONS.match(query)
        if match:
            count, major = int(match.group(1)), bool(match.group(2))
            return {a for name in self._agents for a in self._last(name, count, major)}

        match = _LAST_BROWSER_VERSIONS.match(query)
        if match:
            name = self._browser(match.group(2))
            return set(self._last(name, int(match.group(1)), bool(match.group(3))))

        match = _LAST_YEARS.match(query)
        if match:
            now = self._now if self._now is not None else time.time()
            return self._released_since(now - float(match.group(1)) * _SECONDS_PER_YEAR)

        match = _SINCE.match(query)
        if match:
            year, month, day = match.group(1), match.group(2) or "1", match.group(3) or "1"
            since = datetime(int(year), int(month), int(day), tzinfo=timezone.utc)
            return self._released_since(since.timestamp())

        match = _BROWSER_OP.match(query)
        if match:
            name = self._browser(match.group(1))
            bound = parse_version(match.group(3))
            return {
                Agent(name, av.version)
                for av in self._agents.get(name, [])
                if _compare(parse_version(av.version), match.group(2), bound)
            }

        match = _BROWSER_RANGE.match(query)
        if match:
            name = self._browser(match.group(1))
            low, high = parse_version(match.group(2)), parse_version(match.group(3))
            return {
                Agent(name, av.version)
                for av in self._agents.get(name, [])
                if _in_range(parse_version(av.version), low, high)
            }

        match = _BROWSER_VERSION.match(query)
        if match and match.group(1).lower() in BROWSER_ALIASES:
            name = self._browser(match.group(1))
            return {self._exact(name, match.group(2), query)}

        raise UnknownTargetQueryError(f"Unknown target query: {query!r}")

    def _resolve_builtin(self, queries: Iterable[str]) -> set[Agent]:
        """Union of built-in queries, ignoring entries the data cannot satisfy."""
        selected: set[Agent] = set()
        for query in queries:
            try:
                selected |= self._resolve_query(query)
            except UnknownTargetQueryError:
                continue
        return selected

    def _browser(self, raw: str) -> str:
        name = BROWSER_ALIASES.get(raw.lower())
        if name is None:
            raise UnknownTargetQueryError(f"Unknown browser: {raw!r}")
        return name

    def _by_usage(self, op: str, share: float) -> set[Agent]:
        return {
            Agent(name, av.version)
            for name, versions in self._agents.items()
            for av in versions
            if _compare(av.usage, op, share)
        }

    def _last(self, name: str, count: int, major: bool) -> list[Agent]:
        released = [av for av in self._agents.get(name, []) if av.release_date is not None]
        if not major:
            return [Agent(name, av.version) for av in released[-count:]] if count else []

        majors: list[int] = []
        for av in released:
            major_version = _major(av.version)
            if major_version is not None and major_version not in majors:
                majors.append(major_version)
        keep = set(majors[-count:]) if count else set()
        return [
            Agent(name, av.version)
            for av in released
            if _major(av.version) in keep
        ]

    def _released_since(self, timestamp: float) -> set[Agent]:
        return {
            Agent(name, av.version)
            for name, versions in self._agents.items()
            for av in versions
            if av.release_date is not None and av.release_date >= timestamp
        }

    def _exact(self, name: str, version: str, query: str) -> Agent:
        versions = self._agents.get(name, [])
        for av in versions:
            if av.version == version:
                return Agent(name, av.version)
        wanted = parse_version(version)
        if wanted is not None:
            # "15.2" selects the "15.2-15.3" entry it falls inside
            for av in versions:
                parts = av.version.split("-")
                low, high = parse_version(parts[0]), parse_version(parts[-1])
                if low is not None and high is not None and low <= wanted <= high:
                    return Agent(name, av.version)
        raise UnknownTargetQueryError(f"Unknown version in query: {query!r}")


def _load_agents(agents: dict) -> dict[str, list[AgentVersion]]:
    """Normalise caniuse agents into release-ordered version lists."""
    table: dict[str, list[AgentVersion]] = {}
    for name, agent in (agents or {}).items():
        if not isinstance(agent, dict):
            continue
        usage = agent.get("usage_global") or {}
        version_list = agent.get("version_list")
        versions: list[AgentVersion] = []
        if isinstance(version_list, list):
            for entry in version_list:
                if not isinstance(entry, dict) or entry.get("version") is None:
                    continue
                version = str(entry["version"])
                versions.append(AgentVersion(
                    version=version,
                    usage=float(entry.get("global_usage", usage.get(version, 0.0)) or 0.0),
                    release_date=entry.get("release_date"),
                ))
        else:
            # Older dumps only carry usage_global; treat every version as released
            for version, share in usage.items():
                versions.append(AgentVersion(str(version), float(share or 0.0), 0))
        table[name] = versions
    return table


def _split_queries(targets: Iterable[str]) -> list[tuple[bool, bool, str]]:
    """Flatten target strings into (is_and, negate, query) steps."""
    steps: list[tuple[bool, bool, str]] = []
    for target in targets:
        for or_part in _OR_SPLIT.split(target.strip()):
            if not or_part:
                continue
            for index, part in enumerate(_AND_SPLIT.split(or_part)):
                part = part.strip()
                negate = part.lower().startswith("not ")
                if negate:
                    part = part[4:].strip()
                if not part:
                    raise UnknownTargetQueryError(f"Empty query in {target!r}")
                steps.append((index > 0, negate, part))
    return steps


def _compare(value, op: str, bound) -> bool:
    if value is None or bound is None:
        return False
    if op == ">":
        return value > bound
    if op == ">=":
        return value >= bound
    if op == "<":
        return value < bound
    return value <= bound


def _in_range(value: Optional[Version], low: Optional[Version], high: Optional[Version]) -> bool:
    if value is None or low is None or high is None:
        return False
    return low <= value <= high


def _major(version: str) -> Optional[int]:
    parsed = parse_version(version)
    return parsed[0] if parsed else None


def _agent_sort_key(agent: Agent) -> tuple[str, Version, str]:
    return agent.browser, parse_version(agent.version) or (), agent.version
