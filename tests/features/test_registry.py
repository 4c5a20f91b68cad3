"""Tests for the feature registry."""

import pytest

from baseline_scan.features import BASELINE_STATUSES, FEATURES, FeatureMeta, all_features, get_feature
from baseline_scan.scanner.ast_scanner import STRUCTURAL_FEATURES
from baseline_scan.scanner.heuristics import RULES_BY_KIND


class TestRegistry:
    def test_ids_are_unique(self):
        ids = [meta.id for meta in all_features()]
        assert len(ids) == len(set(ids))

    def test_all_features_in_registry_order(self):
        features = all_features()
        assert features[0].id == "structured-clone"
        assert [m.id for m in features] == list(FEATURES)

    def test_get_feature(self):
        meta = get_feature("navigator-share")
        assert meta.title == "Web Share API"
        assert meta.compat_data_key == "web-share"

    def test_unknown_feature_raises(self):
        with pytest.raises(KeyError):
            get_feature("no-such-feature")

    def test_structured_clone_is_baseline(self):
        assert get_feature("structured-clone").baseline_status == "yes"

    def test_statuses_are_valid(self):
        assert all(meta.baseline_status in BASELINE_STATUSES for meta in all_features())

    def test_docs_urls_are_absolute(self):
        assert all(meta.docs_url.startswith("https://") for meta in all_features())

    def test_every_detector_rule_has_metadata(self):
        rule_ids = set(STRUCTURAL_FEATURES)
        for rules in RULES_BY_KIND.values():
            rule_ids.update(rule.feature_id for rule in rules)
        assert rule_ids <= set(FEATURES)


class TestFeatureMeta:
    def test_is_immutable(self):
        meta = get_feature("css-has")
        with pytest.raises(AttributeError):
            meta.title = "changed"

    def test_rejects_bad_status(self):
        with pytest.raises(ValueError):
            FeatureMeta(id="x", title="X", docs_url="https://example.com", baseline_status="maybe")

    def test_to_dict(self):
        data = get_feature("url-canparse").to_dict()
        assert data["id"] == "url-canparse"
        assert data["web_features_id"] == "url-canparse"
        assert data["baseline_status"] == "partial"
