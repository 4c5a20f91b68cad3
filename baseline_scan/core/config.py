import hashlib
import json
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Scanner settings loaded from environment variables.

    Every field can be set as BASELINE_SCAN_<FIELD> or in a `.env` file;
    `load_settings()` additionally layers a YAML config file on top.

    Only `disabled_features`, `unsupported_threshold` and `live_baseline`
    change what the engine reports. They form the configuration
    fingerprint that invalidates the result cache.
    """

    model_config = SettingsConfigDict(
        env_prefix="BASELINE_SCAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Result cache; empty disables caching.
    cache_path: str = ".baseline-scan-cache.json"

    # File reading: files per batch and per-file size cap in bytes.
    read_batch_size: int = 64
    max_file_size: int = 256 * 1024

    # Compatibility datasets (caniuse full data, web-features data.json).
    # Leave blank to run without percentages.
    caniuse_data_path: str = ""
    web_features_data_path: str = ""

    # Feature ids never reported.
    disabled_features: list[str] = []

    # needs-guard findings with unsupported_percent at or below this
    # value are reported as safe. None disables the reclassification.
    unsupported_threshold: Optional[int] = None

    # Treat features that web-features lists as Baseline as safe.
    live_baseline: bool = False

    debug: bool = False

    @field_validator("disabled_features", mode="before")
    @classmethod
    def split_feature_list(cls, v):
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v

    @field_validator("unsupported_threshold")
    @classmethod
    def check_threshold(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and not 0 <= v <= 100:
            raise ValueError("unsupported_threshold must be between 0 and 100")
        return v

    @field_validator("read_batch_size", "max_file_size")
    @classmethod
    def check_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    def fingerprint(self) -> str:
        """Hash of the settings that affect analysis output."""
        payload = {
            "disabled_features": sorted(set(self.disabled_features)),
            "unsupported_threshold": self.unsupported_threshold,
            "live_baseline": self.live_baseline,
        }
        encoded = json.dumps(payload, sort_keys=True).encode("utf-8")
        return hashlib.sha256(encoded).hexdigest()[:16]


def load_settings(config_file: Optional[str | Path] = None) -> Settings:
    """Build Settings from the environment, overridden by a YAML file.

    A missing config file is an error; an empty one is ignored. Keys may
    use either snake_case or kebab-case.
    """
    if config_file is None:
        return Settings()

    with open(config_file, encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_file} must contain a mapping")

    overrides = {str(key).replace("-", "_"): value for key, value in data.items()}
    logger.debug("Loaded %d settings from %s", len(overrides), config_file)
    return Settings(**overrides)


def get_settings() -> Settings:
    return Settings()
