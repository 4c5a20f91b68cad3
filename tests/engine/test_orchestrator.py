"""Tests for analyze() — advice, severity, enrichment and caching."""

import pytest

from baseline_scan import AnalyzeOptions, FileRef, analyze
from baseline_scan.cache import ResultCache
from baseline_scan.core.config import Settings
from baseline_scan.engine.orchestrator import default_resolver

TARGETS = ["> 0.5% and not dead"]


@pytest.fixture
def config():
    return Settings(_env_file=None)


def _one(findings):
    assert len(findings) == 1
    return findings[0]


class TestAdvice:
    def test_unguarded_call_needs_guard(self, config):
        code = "const a = 1;\nfunction go(d) {\n    navigator.share(d);\n}\n"
        f = _one(analyze([FileRef("src/a.js", code)], config=config))
        assert f.feature_id == "navigator-share"
        assert f.advice == "needs-guard"
        assert f.severity == "warn"
        assert f.guarded is False
        assert (f.file, f.line, f.column) == ("src/a.js", 3, 5)

    def test_guarded_changes_only_advice_fields(self, config):
        bare = _one(analyze([FileRef("a.js", "navigator.share({title:'x'});")], config=config))
        guarded = _one(analyze(
            [FileRef("a.js", "if (navigator.share) { await navigator.share({title:'x'}); }")],
            config=config,
        ))
        assert guarded.feature_id == "navigator-share"
        assert guarded.advice == "guarded"
        assert guarded.guarded is True
        assert guarded.severity == "info"
        for name in ("feature_id", "title", "baseline_status", "docs_url", "suggestion"):
            assert getattr(guarded, name) == getattr(bare, name)

    def test_baseline_feature_always_safe(self, config):
        code = "if (typeof structuredClone === 'function') { structuredClone(x); }\nstructuredClone(y);"
        findings = analyze([FileRef("a.js", code)], config=config)
        assert [f.advice for f in findings] == ["safe", "safe"]
        assert all(f.severity == "info" for f in findings)

    def test_markup_dialog(self, config):
        f = _one(analyze([FileRef("index.html", "<dialog open>Hi</dialog>")], config=config))
        assert f.feature_id == "html-dialog"
        assert f.title == "<dialog> element"

    def test_urlpattern_alias(self, config):
        code = "const P = URLPattern; const p = new P('https://example.com/:id');"
        f = _one(analyze([FileRef("a.js", code)], config=config))
        assert f.feature_id == "urlpattern"

    def test_suggestion_from_registry(self, config):
        f = _one(analyze([FileRef("a.css", "a:has(b) {}")], config=config))
        assert f.suggestion and ":has()" in f.suggestion


class TestOrdering:
    def test_file_then_document_order(self, config):
        files = [
            FileRef("b.css", "a:has(b) {}\n@container (width > 1px) {}"),
            FileRef("a.js", "structuredClone(a);\nnavigator.share(b);"),
        ]
        findings = analyze(files, config=config)
        assert [(f.file, f.feature_id) for f in findings] == [
            ("b.css", "css-has"),
            ("b.css", "css-container-queries"),
            ("a.js", "structured-clone"),
            ("a.js", "navigator-share"),
        ]

    def test_idempotent(self, config, resolver):
        files = [
            FileRef("a.js", "navigator.share(x);\ndocument.startViewTransition(cb);"),
            FileRef("b.html", '<div popover>hi</div>'),
        ]
        options = AnalyzeOptions(targets=TARGETS)
        first = analyze(files, options, config=config, resolver=resolver)
        second = analyze(files, options, config=config, resolver=resolver)
        assert [f.to_dict() for f in first] == [f.to_dict() for f in second]

    def test_accepts_generator(self, config):
        files = (FileRef(f"{n}.js", "structuredClone(x);") for n in range(3))
        assert len(analyze(files, config=config)) == 3


class TestCompatibility:
    def test_no_targets_no_percent(self, config, resolver):
        f = _one(analyze([FileRef("a.js", "document.startViewTransition(() => {});")],
                         config=config, resolver=resolver))
        assert f.unsupported_percent is None

    def test_view_transition_with_targets(self, config, resolver):
        f = _one(analyze(
            [FileRef("a.js", "document.startViewTransition(()=>{});")],
            AnalyzeOptions(targets=[">0.5% and not dead"]),
            config=config,
            resolver=resolver,
        ))
        assert f.feature_id == "view-transitions"
        assert isinstance(f.unsupported_percent, int)
        assert f.unsupported_percent == 20

    def test_percent_in_range_for_all_findings(self, config, resolver):
        code = "navigator.share(a);\nstructuredClone(b);\nnew URLPattern({});"
        findings = analyze([FileRef("a.js", code)], AnalyzeOptions(targets=TARGETS),
                           config=config, resolver=resolver)
        assert [f.unsupported_percent for f in findings] == [63, 0, 63]

    def test_feature_without_data(self, config, resolver):
        code = ".a {\n  & .b { color: red; }\n}"
        f = _one(analyze([FileRef("a.css", code)], AnalyzeOptions(targets=TARGETS),
                         config=config, resolver=resolver))
        assert f.unsupported_percent is None

    def test_without_resolver_or_datasets(self, config):
        f = _one(analyze([FileRef("a.js", "navigator.share(x);")], AnalyzeOptions(targets=TARGETS),
                         config=config))
        assert f.unsupported_percent is None

    def test_resolver_built_from_config(self, settings):
        f = _one(analyze(
            [FileRef("a.js", "document.startViewTransition(()=>{});")],
            AnalyzeOptions(targets=[">0.5% and not dead"]),
            config=settings,
        ))
        assert f.unsupported_percent == 20

    def test_default_resolver_is_shared(self, settings):
        assert default_resolver(settings) is default_resolver(settings)


class TestConfig:
    def test_disabled_feature(self, resolver):
        config = Settings(_env_file=None, disabled_features=["navigator-share"])
        code = "navigator.share(a);\nstructuredClone(b);"
        findings = analyze([FileRef("a.js", code)], config=config)
        assert [f.feature_id for f in findings] == ["structured-clone"]

    def test_threshold_reclassifies_needs_guard(self, resolver):
        config = Settings(_env_file=None, unsupported_threshold=70)
        f = _one(analyze([FileRef("a.js", "navigator.share(x);")], AnalyzeOptions(targets=TARGETS),
                         config=config, resolver=resolver))
        assert f.unsupported_percent == 63
        assert f.advice == "safe"
        assert f.severity == "info"

    def test_threshold_below_percent_keeps_advice(self, resolver):
        config = Settings(_env_file=None, unsupported_threshold=50)
        f = _one(analyze([FileRef("a.js", "navigator.share(x);")], AnalyzeOptions(targets=TARGETS),
                         config=config, resolver=resolver))
        assert f.advice == "needs-guard"

    def test_threshold_ignored_without_targets(self, resolver):
        config = Settings(_env_file=None, unsupported_threshold=100)
        f = _one(analyze([FileRef("a.js", "navigator.share(x);")], config=config, resolver=resolver))
        assert f.advice == "needs-guard"

    def test_live_baseline(self, resolver):
        config = Settings(_env_file=None, live_baseline=True)
        f = _one(analyze([FileRef("a.js", "URL.canParse(u);")], config=config, resolver=resolver))
        assert f.baseline_status == "yes"
        assert f.advice == "safe"

    def test_live_baseline_off(self, config, resolver):
        f = _one(analyze([FileRef("a.js", "URL.canParse(u);")], config=config, resolver=resolver))
        assert f.baseline_status == "partial"
        assert f.advice == "needs-guard"


class TestCaching:
    def test_cached_equals_uncached(self, config, resolver, tmp_path):
        files = [
            FileRef("a.js", "navigator.share(x);"),
            FileRef("b.css", "a:has(b) {}"),
        ]
        options = AnalyzeOptions(targets=TARGETS)
        plain = analyze(files, options, config=config, resolver=resolver)

        cache = ResultCache(tmp_path / "cache.json", "cfg")
        cold = analyze(files, options, config=config, resolver=resolver, cache=cache)
        warm = analyze(files, options, config=config, resolver=resolver, cache=cache)

        assert cold == plain
        assert warm == plain
        assert cache.hits == 2

    def test_changed_file_recomputed(self, config, tmp_path):
        cache = ResultCache(tmp_path / "cache.json", "cfg")
        analyze([FileRef("a.js", "navigator.share(x);"), FileRef("b.js", "structuredClone(y);")],
                config=config, cache=cache)

        findings = analyze(
            [FileRef("a.js", "navigator.share(x);\nnavigator.share(z);"),
             FileRef("b.js", "structuredClone(y);")],
            config=config,
            cache=cache,
        )
        assert [f.file for f in findings] == ["a.js", "a.js", "b.js"]
        assert cache.hits == 1

    def test_different_targets_not_replayed(self, config, resolver, tmp_path):
        cache = ResultCache(tmp_path / "cache.json", "cfg")
        files = [FileRef("a.js", "navigator.share(x);")]
        analyze(files, config=config, resolver=resolver, cache=cache)
        f = _one(analyze(files, AnalyzeOptions(targets=TARGETS), config=config,
                         resolver=resolver, cache=cache))
        assert f.unsupported_percent == 63
        assert cache.hits == 0

    def test_config_change_not_replayed(self, config, resolver, tmp_path):
        cache = ResultCache(tmp_path / "cache.json", "cfg")
        files = [FileRef("a.js", "navigator.share(a);\nstructuredClone(b);")]
        analyze(files, config=config, resolver=resolver, cache=cache)

        narrowed = Settings(_env_file=None, disabled_features=["navigator-share"])
        plain = analyze(files, config=narrowed, resolver=resolver)
        cached = analyze(files, config=narrowed, resolver=resolver, cache=cache)
        assert cached == plain
        assert [f.feature_id for f in cached] == ["structured-clone"]
        assert cache.hits == 0


class TestErrors:
    def test_invalid_file_ref(self, config):
        with pytest.raises(TypeError):
            analyze([("a.js", "x")], config=config)

    def test_file_ref_validates_types(self):
        with pytest.raises(TypeError):
            FileRef("a.js", b"bytes")
        with pytest.raises(TypeError):
            FileRef(None, "x")

    def test_unknown_extension(self, config):
        assert analyze([FileRef("README.md", "navigator.share(x)")], config=config) == []

    def test_broken_script_still_reports(self, config):
        f = _one(analyze([FileRef("a.js", "const = ;\nnavigator.share(x);")], config=config))
        assert (f.line, f.column) == (2, 1)
