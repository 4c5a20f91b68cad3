"""Tests for the compatibility resolver.

Against the fixtures, "> 0.5% and not dead" expands to eight agents; see
tests/conftest.py for the list.
"""

from unittest.mock import patch

from baseline_scan.compat import CompatData, CompatibilityResolver, unsupported_percent

TARGETS = ["> 0.5% and not dead"]


class TestResolve:
    def test_web_features_minimums_preferred(self, resolver):
        # chrome x2, and_chr, safari 18 supported; safari 17.5 not; firefox has no minimum
        assert resolver.resolve("view-transitions", TARGETS) == 80.0

    def test_direct_web_features_id(self, resolver):
        assert resolver.resolve("structured-clone", TARGETS) == 100.0

    def test_caniuse_stats_fallback(self, resolver):
        # web-share only exists in caniuse: safari x2 and and_chr of 8
        assert resolver.resolve("navigator-share", TARGETS) == 37.5

    def test_ranged_stats(self, resolver):
        # chrome 120 resolves through the "95-120" range
        assert resolver.resolve("urlpattern", TARGETS) == 37.5

    def test_agents_without_data_are_excluded(self, resolver):
        assert resolver.resolve("navigator-share", ["ie 11", "safari 18"]) == 50.0
        assert resolver.resolve("urlpattern", ["ie 11", "chrome 121"]) == 100.0

    def test_no_mapping(self, resolver):
        assert resolver.resolve("css-nesting", TARGETS) is None

    def test_unknown_feature(self, resolver):
        assert resolver.resolve("not-a-feature", TARGETS) is None

    def test_no_targets(self, resolver):
        assert resolver.resolve("navigator-share", []) is None

    def test_bad_query_yields_none(self, resolver):
        assert resolver.resolve("navigator-share", ["whatever browsers"]) is None

    def test_empty_data(self):
        assert CompatibilityResolver().resolve("navigator-share", TARGETS) is None

    def test_memoized_per_feature_and_targets(self, resolver):
        first = resolver.resolve("navigator-share", TARGETS)
        with patch.object(resolver, "_compute") as compute:
            assert resolver.resolve("navigator-share", TARGETS) == first
            resolver.resolve("navigator-share", ["safari 18"])
        assert compute.call_count == 1


class TestUnsupported:
    def test_rounds_half_up(self):
        assert unsupported_percent(37.5) == 63
        assert unsupported_percent(80.0) == 20

    def test_clamped(self):
        assert unsupported_percent(100.0) == 0
        assert unsupported_percent(-5.0) == 100
        assert unsupported_percent(120.0) == 0

    def test_resolver_unsupported(self, resolver):
        assert resolver.unsupported("view-transitions", TARGETS) == 20
        assert resolver.unsupported("css-nesting", TARGETS) is None


class TestBaseline:
    def test_high_and_low_are_baseline(self, resolver):
        assert resolver.is_baseline("structured-clone") is True
        assert resolver.is_baseline("url-canparse") is True

    def test_caniuse_cross_link(self, resolver):
        assert resolver.is_baseline("html-popover") is True

    def test_not_baseline(self, resolver):
        assert resolver.is_baseline("view-transitions") is False

    def test_unmapped(self, resolver):
        assert resolver.is_baseline("navigator-share") is None


class TestFingerprint:
    def test_changes_with_data(self, caniuse_document, web_features_document):
        a = CompatibilityResolver(CompatData.from_dicts(caniuse_document, web_features_document))
        b = CompatibilityResolver(CompatData.from_dicts(caniuse_document, {}))
        assert a.fingerprint() != b.fingerprint()

    def test_stable_for_same_data(self, caniuse_document):
        a = CompatData.from_dicts(caniuse_document)
        b = CompatData.from_dicts(caniuse_document)
        assert a.fingerprint == b.fingerprint
