"""Compatibility data and target resolution.

Public API:
    CompatibilityResolver(data) — support percentage per feature and targets
    CompatData                  — loaded caniuse + web-features datasets
    fetch_compat_data()         — download both datasets
    TargetResolver              — browserslist-style query expansion
"""

from baseline_scan.compat.data import CompatData, CompatDataError, fetch_compat_data
from baseline_scan.compat.resolver import CompatibilityResolver, unsupported_percent
from baseline_scan.compat.targets import Agent, TargetResolver, UnknownTargetQueryError

__all__ = [
    "Agent",
    "CompatData",
    "CompatDataError",
    "CompatibilityResolver",
    "TargetResolver",
    "UnknownTargetQueryError",
    "fetch_compat_data",
    "unsupported_percent",
]
