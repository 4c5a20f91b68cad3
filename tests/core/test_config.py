"""Tests for settings and YAML config loading."""

import pytest
from pydantic import ValidationError

from baseline_scan.core.config import Settings, get_settings, load_settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("BASELINE_SCAN_LIVE_BASELINE", raising=False)
        s = Settings(_env_file=None)
        assert s.read_batch_size == 64
        assert s.max_file_size == 256 * 1024
        assert s.unsupported_threshold is None
        assert s.live_baseline is False
        assert s.disabled_features == []

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("BASELINE_SCAN_UNSUPPORTED_THRESHOLD", "10")
        monkeypatch.setenv("BASELINE_SCAN_DISABLED_FEATURES", '["css-has"]')
        s = get_settings()
        assert s.unsupported_threshold == 10
        assert s.disabled_features == ["css-has"]

    def test_threshold_range(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, unsupported_threshold=101)

    def test_batch_size_positive(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, read_batch_size=0)

    def test_comma_separated_features(self):
        s = Settings(_env_file=None, disabled_features="css-has, html-popover")
        assert s.disabled_features == ["css-has", "html-popover"]


class TestFingerprint:
    def test_stable(self):
        assert Settings(_env_file=None).fingerprint() == Settings(_env_file=None).fingerprint()

    def test_feature_order_irrelevant(self):
        a = Settings(_env_file=None, disabled_features=["a", "b"])
        b = Settings(_env_file=None, disabled_features=["b", "a"])
        assert a.fingerprint() == b.fingerprint()

    def test_analysis_settings_change_it(self):
        base = Settings(_env_file=None).fingerprint()
        assert Settings(_env_file=None, unsupported_threshold=5).fingerprint() != base
        assert Settings(_env_file=None, live_baseline=True).fingerprint() != base

    def test_io_settings_do_not(self):
        base = Settings(_env_file=None).fingerprint()
        assert Settings(_env_file=None, read_batch_size=8, cache_path="x").fingerprint() == base


class TestLoadSettings:
    def test_yaml_overrides(self, tmp_path):
        path = tmp_path / "baseline-scan.yml"
        path.write_text(
            "unsupported-threshold: 5\ndisabled_features:\n  - css-nesting\nlive_baseline: true\n",
            encoding="utf-8",
        )
        s = load_settings(path)
        assert s.unsupported_threshold == 5
        assert s.disabled_features == ["css-nesting"]
        assert s.live_baseline is True

    def test_yaml_wins_over_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BASELINE_SCAN_READ_BATCH_SIZE", "4")
        path = tmp_path / "c.yml"
        path.write_text("read_batch_size: 16\n", encoding="utf-8")
        assert load_settings(path).read_batch_size == 16

    def test_empty_file(self, tmp_path):
        path = tmp_path / "c.yml"
        path.write_text("", encoding="utf-8")
        assert load_settings(path).read_batch_size == 64

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "c.yml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_settings(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.yml")

    def test_none_reads_environment(self, monkeypatch):
        monkeypatch.setenv("BASELINE_SCAN_LIVE_BASELINE", "true")
        assert load_settings(None).live_baseline is True
