"""Compatibility resolver — what share of the targets supports a feature.

For a feature and a list of target queries:

1. Expand the targets into concrete (browser, version) agents.
2. If web-features has per-browser minimum versions for the feature, an
   agent is supported when its version is at least the minimum for its
   browser. Agents whose browser has no minimum are left out.
3. Otherwise use the caniuse per-version stats table for the feature's
   slug (see versions.resolve_stat). Agents with no stats, or whose
   version resolves to nothing, are left out.

The result is 100 * supported / considered, or None when nothing was
considered, the feature has no mapping, or the targets do not parse.

Results are memoized per (feature, targets) on the resolver instance.
"""

import logging
import threading
from collections.abc import Iterable, Sequence
from typing import Optional

from baseline_scan.compat.data import CompatData
from baseline_scan.compat.targets import Agent, TargetResolver, UnknownTargetQueryError
from baseline_scan.compat.versions import is_supported_marker, resolve_stat, version_at_least
from baseline_scan.features import FEATURES

logger = logging.getLogger(__name__)

# caniuse agent name -> web-features browser key, where they differ
WEB_FEATURES_BROWSERS: dict[str, str] = {
    "and_chr": "chrome_android",
    "and_ff": "firefox_android",
    "ios_saf": "safari_ios",
}


def unsupported_percent(supported: float) -> int:
    """Round the unsupported share to a whole percent within [0, 100]."""
    return max(0, min(100, int(100 - supported + 0.5)))


class CompatibilityResolver:
    """Maps feature ids to support percentages over a target set."""

    def __init__(self, data: Optional[CompatData] = None, now: Optional[float] = None):
        self.data = data if data is not None else CompatData.empty()
        self._targets = TargetResolver(self.data.agents, now=now)
        self._lock = threading.Lock()
        self._percent_memo: dict[tuple[str, tuple[str, ...]], Optional[float]] = {}
        self._agents_memo: dict[tuple[str, ...], Optional[list[Agent]]] = {}
        self._baseline_memo: dict[str, Optional[bool]] = {}

    def fingerprint(self) -> str:
        """Identity of the loaded datasets."""
        return self.data.fingerprint

    def agents(self, targets: Iterable[str]) -> Optional[list[Agent]]:
        """Expanded agents for the targets, or None if a query is not understood."""
        key = tuple(targets)
        with self._lock:
            if key in self._agents_memo:
                return self._agents_memo[key]
        try:
            agents = self._targets.resolve(key)
        except UnknownTargetQueryError as exc:
            logger.warning("Ignoring targets %s: %s", list(key), exc)
            agents = None
        with self._lock:
            self._agents_memo[key] = agents
        return agents

    def resolve(self, feature_id: str, targets: Sequence[str]) -> Optional[float]:
        """Percentage of target agents supporting the feature, or None."""
        key = (feature_id, tuple(targets))
        with self._lock:
            if key in self._percent_memo:
                return self._percent_memo[key]

        percent = self._compute(feature_id, targets)
        with self._lock:
            self._percent_memo[key] = percent
        return percent

    def unsupported(self, feature_id: str, targets: Sequence[str]) -> Optional[int]:
        supported = self.resolve(feature_id, targets)
        if supported is None:
            return None
        return unsupported_percent(supported)

    def is_baseline(self, feature_id: str) -> Optional[bool]:
        """Whether web-features currently lists the feature as Baseline."""
        with self._lock:
            if feature_id in self._baseline_memo:
                return self._baseline_memo[feature_id]
        meta = FEATURES.get(feature_id)
        value = self.data.baseline(meta) if meta is not None else None
        with self._lock:
            self._baseline_memo[feature_id] = value
        return value

    # ------------------------------------------------------------------

    def _compute(self, feature_id: str, targets: Sequence[str]) -> Optional[float]:
        meta = FEATURES.get(feature_id)
        if meta is None or not targets:
            return None

        agents = self.agents(targets)
        if not agents:
            return None

        minimums = self.data.min_versions(meta)
        if minimums:
            percent = _percent_from_minimums(agents, minimums)
            if percent is not None:
                return percent

        stats = self.data.stats_for(meta.compat_data_key)
        if stats:
            return _percent_from_stats(agents, stats)
        return None


def _percent_from_minimums(agents: list[Agent], minimums: dict[str, str]) -> Optional[float]:
    supported = considered = 0
    for agent in agents:
        minimum = minimums.get(WEB_FEATURES_BROWSERS.get(agent.browser, agent.browser))
        if not minimum:
            continue
        outcome = version_at_least(agent.version, minimum)
        if outcome is None:
            continue
        considered += 1
        if outcome:
            supported += 1
    if considered == 0:
        return None
    return supported / considered * 100


def _percent_from_stats(agents: list[Agent], stats: dict[str, dict[str, str]]) -> Optional[float]:
    supported = considered = 0
    for agent in agents:
        browser_stats = stats.get(agent.browser)
        if not browser_stats:
            continue
        marker = resolve_stat(browser_stats, agent.version)
        if not marker:
            continue
        considered += 1
        if is_supported_marker(marker):
            supported += 1
    if considered == 0:
        return None
    return supported / considered * 100
