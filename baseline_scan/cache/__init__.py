"""Per-file result cache.

Public API:
    ResultCache(path, config_fingerprint) — load/get/put/prune/save
    content_hash(content) -> str
"""

from baseline_scan.cache.schema import CacheEntry, CacheShape
from baseline_scan.cache.store import CACHE_VERSION, ResultCache, content_hash, targets_fingerprint

__all__ = [
    "CACHE_VERSION",
    "CacheEntry",
    "CacheShape",
    "ResultCache",
    "content_hash",
    "targets_fingerprint",
]
