"""Catalog of detectable web-platform features.

Public API:
    get_feature(feature_id) -> FeatureMeta
    all_features() -> list[FeatureMeta]
"""

from baseline_scan.features.registry import FEATURES, all_features, get_feature
from baseline_scan.features.types import BASELINE_STATUSES, FeatureMeta

__all__ = ["FEATURES", "all_features", "get_feature", "FeatureMeta", "BASELINE_STATUSES"]
