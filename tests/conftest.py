"""Shared test fixtures.

The compat fixtures are trimmed-down caniuse and web-features documents
with five browsers (chrome, firefox, safari, ie, and_chr). Against them,
"> 0.5% and not dead" resolves to eight agents:

    chrome 120, 121 / firefox 115, 128, 131 / safari 17.5, 18.0 / and_chr 121
"""

import json
from pathlib import Path

import pytest

from baseline_scan.compat import CompatData, CompatibilityResolver
from baseline_scan.core.config import Settings

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures" / "compat"
CANIUSE_FIXTURE = FIXTURES_DIR / "caniuse.json"
WEB_FEATURES_FIXTURE = FIXTURES_DIR / "web-features.json"

# 2024-10-29, the fixture's newest release date
FIXED_NOW = 1730160000.0


@pytest.fixture
def fixed_now() -> float:
    return FIXED_NOW


@pytest.fixture
def caniuse_document() -> dict:
    return json.loads(CANIUSE_FIXTURE.read_text(encoding="utf-8"))


@pytest.fixture
def web_features_document() -> dict:
    return json.loads(WEB_FEATURES_FIXTURE.read_text(encoding="utf-8"))


@pytest.fixture
def compat_data() -> CompatData:
    return CompatData.load(CANIUSE_FIXTURE, WEB_FEATURES_FIXTURE)


@pytest.fixture
def resolver(compat_data) -> CompatibilityResolver:
    return CompatibilityResolver(compat_data, now=FIXED_NOW)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated from the environment, with a cache under tmp_path."""
    return Settings(
        _env_file=None,
        cache_path=str(tmp_path / "cache.json"),
        caniuse_data_path=str(CANIUSE_FIXTURE),
        web_features_data_path=str(WEB_FEATURES_FIXTURE),
    )
