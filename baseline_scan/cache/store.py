"""Result cache — replay findings for files that have not changed.

An entry is reused only when all of these match what was recorded:
  - the cache format version (CACHE_VERSION)
  - the configuration fingerprint (settings + compat data identity)
  - the SHA-256 of the file's current content
  - the canonical JSON of the effective target list

A version or configuration mismatch empties the cache for the session;
the stale file on disk is only replaced when the session saves. Read and
write failures are logged and otherwise ignored: with or without the
cache, analyze() returns the same findings.
"""

import hashlib
import json
import logging
import os
import tempfile
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from baseline_scan.cache.schema import CacheEntry, CacheShape
from baseline_scan.engine.types import Finding

logger = logging.getLogger(__name__)

CACHE_VERSION = 1


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8", errors="surrogatepass")).hexdigest()


def targets_fingerprint(targets: Optional[Iterable[str]]) -> Optional[str]:
    """Canonical serialization of the effective target list (None if no targets)."""
    if not targets:
        return None
    return json.dumps(list(targets), separators=(",", ":"))


class ResultCache:
    """In-memory view of the cache file for one scan session."""

    def __init__(self, path: Optional[str | Path], config_fingerprint: str):
        self.path = Path(path) if path else None
        self.config_fingerprint = config_fingerprint
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def load(self) -> "ResultCache":
        """Read the cache file; anything unusable leaves the cache empty."""
        self._entries = {}
        if self.path is None:
            return self
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return self
        except OSError as exc:
            logger.warning("Could not read cache %s: %s", self.path, exc)
            return self
        except UnicodeDecodeError as exc:
            logger.warning("Ignoring undecodable cache %s: %s", self.path, exc)
            return self

        try:
            shape = CacheShape.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Ignoring corrupt cache %s: %d errors", self.path, exc.error_count())
            return self

        if shape.version != CACHE_VERSION:
            logger.info("Cache version %s != %s; starting fresh", shape.version, CACHE_VERSION)
            return self
        if shape.config_fingerprint != self.config_fingerprint:
            logger.info("Configuration changed since last scan; starting fresh")
            return self

        self._entries = dict(shape.by_file)
        logger.debug("Loaded %d cache entries from %s", len(self._entries), self.path)
        return self

    def bind(self, config_fingerprint: str) -> None:
        """Adopt config_fingerprint, dropping entries recorded under another one."""
        with self._lock:
            if config_fingerprint == self.config_fingerprint:
                return
            if self._entries:
                logger.info("Configuration differs from cache; dropping %d entries", len(self._entries))
            self._entries = {}
            self.config_fingerprint = config_fingerprint

    def get(
        self,
        path: str,
        current_hash: str,
        targets: Optional[Iterable[str]],
    ) -> Optional[list[Finding]]:
        """Cached findings for path, or None on any mismatch."""
        with self._lock:
            entry = self._entries.get(path)
            if (
                entry is None
                or entry.content_hash != current_hash
                or entry.advisory_targets_fingerprint != targets_fingerprint(targets)
            ):
                self.misses += 1
                return None
            self.hits += 1
            records = list(entry.findings)

        try:
            return [Finding.from_dict(record) for record in records]
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Dropping malformed cache entry for %s: %s", path, exc)
            with self._lock:
                self._entries.pop(path, None)
                self.hits -= 1
                self.misses += 1
            return None

    def put(
        self,
        path: str,
        current_hash: str,
        targets: Optional[Iterable[str]],
        findings: list[Finding],
    ) -> None:
        entry = CacheEntry(
            content_hash=current_hash,
            advisory_targets_fingerprint=targets_fingerprint(targets),
            findings=[f.to_dict() for f in findings],
        )
        with self._lock:
            self._entries[path] = entry

    def prune(self, keep: Iterable[str]) -> int:
        """Drop entries for paths not in keep; returns how many were removed."""
        keep = set(keep)
        with self._lock:
            stale = [path for path in self._entries if path not in keep]
            for path in stale:
                del self._entries[path]
        return len(stale)

    def save(self) -> bool:
        """Write the cache atomically. Returns False instead of raising."""
        if self.path is None:
            return False
        with self._lock:
            shape = CacheShape(
                version=CACHE_VERSION,
                config_fingerprint=self.config_fingerprint,
                by_file=dict(sorted(self._entries.items())),
            )
        payload = shape.model_dump_json(by_alias=True, indent=2)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=self.path.name, suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, self.path)
            except BaseException:
                os.unlink(tmp_name)
                raise
        except OSError as exc:
            logger.warning("Could not write cache %s: %s", self.path, exc)
            return False

        logger.debug("Saved %d cache entries to %s", len(shape.by_file), self.path)
        return True
