"""Types for the feature registry.

A FeatureMeta is immutable metadata about one detectable feature.
Detection patterns and guard predicates live with the scanner; the
registry only describes what a feature is and where to read about it.
"""

from dataclasses import dataclass
from typing import Optional

# "yes" = Baseline (safe everywhere), "partial" = newly or unevenly
# available, "no" = not interoperable.
BASELINE_STATUSES = ("yes", "no", "partial")


@dataclass(frozen=True)
class FeatureMeta:
    """Static description of a detectable feature.

    id: Stable key used by findings, caches and guard predicates.
    compat_data_key: caniuse slug used for the legacy support table.
    web_features_id: Optional web-features entry id; when absent the
        entry is found through its caniuse cross-link.
    """

    id: str
    title: str
    docs_url: str
    baseline_status: str
    default_suggestion: Optional[str] = None
    compat_data_key: Optional[str] = None
    web_features_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.baseline_status not in BASELINE_STATUSES:
            raise ValueError(
                f"Invalid baseline status {self.baseline_status!r} for {self.id}"
            )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "docs_url": self.docs_url,
            "baseline_status": self.baseline_status,
            "default_suggestion": self.default_suggestion,
            "compat_data_key": self.compat_data_key,
            "web_features_id": self.web_features_id,
        }
