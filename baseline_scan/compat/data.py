"""Compatibility datasets — loading, indexing and fetching.

Two external JSON documents feed the resolver:

  caniuse full data (data-2.0.json)
      `agents`  usage shares, version lists and release dates per browser
      `data`    per-slug `stats` tables: browser -> version -> marker

  web-features (data.json)
      `features[id].status.support`   minimum supporting version per browser
      `features[id].status.baseline`  "high" / "low" / false
      `features[id].caniuse`          caniuse slug(s) the entry maps to

Both are versioned independently of this package and are treated as data.
A missing or unreadable file yields an empty dataset and a warning; the
resolver then reports no percentage instead of failing.
"""

import hashlib
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import httpx

from baseline_scan.features.types import FeatureMeta

logger = logging.getLogger(__name__)

CANIUSE_DATA_URL = "https://raw.githubusercontent.com/Fyrd/caniuse/main/fulldata-json/data-2.0.json"
WEB_FEATURES_DATA_URL = "https://unpkg.com/web-features/data.json"

CANIUSE_FILENAME = "caniuse.json"
WEB_FEATURES_FILENAME = "web-features.json"

# Timeout for dataset downloads
FETCH_TIMEOUT = 60


class CompatDataError(Exception):
    """Raised when a compatibility dataset cannot be downloaded or decoded."""


@dataclass
class CompatData:
    """Indexed view over the caniuse and web-features datasets."""

    agents: dict[str, Any] = field(default_factory=dict)
    stats: dict[str, dict[str, dict[str, str]]] = field(default_factory=dict)
    web_features: dict[str, Any] = field(default_factory=dict)
    fingerprint: str = "empty"
    caniuse_index: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.caniuse_index:
            self.caniuse_index = _index_caniuse_links(self.web_features)

    @classmethod
    def empty(cls) -> "CompatData":
        return cls()

    @classmethod
    def from_dicts(
        cls,
        caniuse: Optional[dict] = None,
        web_features: Optional[dict] = None,
    ) -> "CompatData":
        """Build from already-decoded documents (tests, embedded hosts)."""
        caniuse = caniuse or {}
        web_features = web_features or {}
        stats = {
            slug: entry.get("stats", {})
            for slug, entry in (caniuse.get("data") or {}).items()
            if isinstance(entry, dict)
        }
        features = web_features.get("features", web_features)
        digest = hashlib.sha256(
            json.dumps([caniuse, web_features], sort_keys=True, default=str).encode("utf-8")
        ).hexdigest()
        return cls(
            agents=caniuse.get("agents") or {},
            stats=stats,
            web_features=features if isinstance(features, dict) else {},
            fingerprint=digest[:16],
        )

    @classmethod
    def load(
        cls,
        caniuse_path: Optional[str | Path],
        web_features_path: Optional[str | Path],
    ) -> "CompatData":
        """Load both datasets from disk; a missing or bad file counts as empty."""
        caniuse = _read_json(caniuse_path)
        web_features = _read_json(web_features_path)
        data = cls.from_dicts(caniuse, web_features)
        logger.info(
            "Loaded compat data: %d browsers, %d caniuse features, %d web-features entries",
            len(data.agents),
            len(data.stats),
            len(data.web_features),
        )
        return data

    @property
    def is_empty(self) -> bool:
        return not (self.agents or self.stats or self.web_features)

    def stats_for(self, slug: Optional[str]) -> Optional[dict[str, dict[str, str]]]:
        if not slug:
            return None
        return self.stats.get(slug)

    def web_feature(self, meta: FeatureMeta) -> Optional[dict]:
        """The web-features entry for a feature: direct id first, then caniuse cross-link."""
        if meta.web_features_id:
            entry = self.web_features.get(meta.web_features_id)
            if isinstance(entry, dict):
                return entry
        if meta.compat_data_key:
            key = self.caniuse_index.get(meta.compat_data_key)
            if key is not None:
                return self.web_features.get(key)
        return None

    def min_versions(self, meta: FeatureMeta) -> Optional[dict[str, str]]:
        """Per-browser minimum supporting versions, keyed by web-features browser ids."""
        entry = self.web_feature(meta)
        if entry is None:
            return None
        support = (entry.get("status") or {}).get("support")
        if not isinstance(support, dict) or not support:
            return None
        return {browser: str(version) for browser, version in support.items()}

    def baseline(self, meta: FeatureMeta) -> Optional[bool]:
        """True for web-features Baseline low/high, False otherwise, None if unmapped."""
        entry = self.web_feature(meta)
        if entry is None:
            return None
        status = (entry.get("status") or {}).get("baseline")
        return status in ("low", "high")


def _index_caniuse_links(web_features: dict) -> dict[str, str]:
    """Map each caniuse slug to the first web-features id that links to it."""
    index: dict[str, str] = {}
    for key, entry in web_features.items():
        if not isinstance(entry, dict):
            continue
        links = entry.get("caniuse")
        if isinstance(links, str):
            links = [links]
        if not isinstance(links, list):
            continue
        # Entries without support data cannot answer min-version queries
        if not (entry.get("status") or {}).get("support"):
            continue
        for slug in links:
            index.setdefault(slug, key)
    return index


def _read_json(path: Optional[str | Path]) -> dict:
    if path is None:
        return {}
    try:
        with open(path, encoding="utf-8") as fh:
            document = json.load(fh)
    except FileNotFoundError:
        logger.warning("Compat data file not found: %s", path)
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("Could not read compat data %s: %s", path, exc)
        return {}
    if not isinstance(document, dict):
        logger.warning("Compat data %s is not a JSON object; ignoring", path)
        return {}
    return document


async def fetch_compat_data(
    dest_dir: str | Path,
    caniuse_url: str = CANIUSE_DATA_URL,
    web_features_url: str = WEB_FEATURES_DATA_URL,
) -> tuple[Path, Path]:
    """Download both datasets into dest_dir.

    Returns the (caniuse, web-features) file paths. Raises CompatDataError
    if either download fails or does not decode as a JSON object; files
    already on disk are left untouched in that case.
    """
    dest = Path(dest_dir)
    dest.mkdir(parents=True, exist_ok=True)

    documents: list[tuple[Path, bytes]] = []
    async with httpx.AsyncClient(timeout=FETCH_TIMEOUT, follow_redirects=True) as client:
        for url, filename in (
            (caniuse_url, CANIUSE_FILENAME),
            (web_features_url, WEB_FEATURES_FILENAME),
        ):
            body = await _download(client, url)
            documents.append((dest / filename, body))

    for path, body in documents:
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_bytes(body)
        tmp.replace(path)
        logger.info("Saved %s (%d bytes)", path, len(body))

    return documents[0][0], documents[1][0]


async def _download(client: httpx.AsyncClient, url: str) -> bytes:
    try:
        response = await client.get(url)
    except httpx.HTTPError as exc:
        raise CompatDataError(f"Download failed for {url}: {exc}") from exc

    if response.status_code >= 400:
        raise CompatDataError(f"Download failed for {url}: HTTP {response.status_code}")

    try:
        document = json.loads(response.content)
    except ValueError as exc:
        raise CompatDataError(f"Invalid JSON from {url}: {exc}") from exc
    if not isinstance(document, dict):
        raise CompatDataError(f"Unexpected payload from {url}: not a JSON object")
    return response.content
