"""Scan sessions — collect files, read them in batches, analyze, cache.

A session wraps analyze() for callers that start from paths on disk:

1. Collect scannable files (skipping vendored and build directories)
2. Load the result cache once
3. Read files in bounded batches off the event loop, analyze each batch
4. Prune cache entries for files that no longer exist, save once

File reads are the only asynchronous step; each file is analyzed to
completion before the next starts.
"""

import asyncio
import logging
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from baseline_scan.cache import ResultCache
from baseline_scan.compat import CompatibilityResolver
from baseline_scan.core.config import Settings
from baseline_scan.scanner import SCANNABLE_EXTENSIONS
from baseline_scan.engine.orchestrator import (
    analyze,
    default_resolver,
    session_fingerprint,
)
from baseline_scan.engine.types import AnalyzeOptions, FileRef, ScanReport

logger = logging.getLogger(__name__)

# Directories to skip during file collection
SKIP_DIRS = {
    "node_modules", ".git", "dist", "build", ".next", "out",
    "coverage", ".nyc_output", "__pycache__", ".venv", "vendor",
}


def collect_files(root: Path, max_file_size: int) -> list[Path]:
    """Collect scannable files under root, sorted."""
    files: list[Path] = []

    for path in root.rglob("*"):
        # Skip ignored directories
        if any(part in SKIP_DIRS for part in path.relative_to(root).parts):
            continue

        if not path.is_file():
            continue

        if path.suffix.lower() not in SCANNABLE_EXTENSIONS:
            continue

        # Skip very large files
        try:
            if path.stat().st_size > max_file_size:
                logger.debug("Skipping large file: %s", path)
                continue
        except OSError:
            continue

        files.append(path)

    return sorted(files)


def _read(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.warning("Failed to read %s: %s", path, exc)
        return None


async def _read_batch(paths: list[Path]) -> list[Optional[str]]:
    return await asyncio.gather(*(asyncio.to_thread(_read, path) for path in paths))


async def scan_paths(
    paths: Iterable[str | Path],
    options: Optional[AnalyzeOptions] = None,
    *,
    settings: Optional[Settings] = None,
    resolver: Optional[CompatibilityResolver] = None,
    root: Optional[str | Path] = None,
    use_cache: bool = True,
) -> ScanReport:
    """Analyze the given files in read batches of settings.read_batch_size.

    Finding paths are relative to root when given and the file lies
    under it. The cache, if enabled, is loaded before the first batch
    and written once after the last.
    """
    settings = settings or Settings()
    if resolver is None:
        resolver = default_resolver(settings)
    base = Path(root) if root is not None else None
    paths = [Path(p) for p in paths]
    start = time.monotonic()

    cache = None
    if use_cache and settings.cache_path:
        cache = ResultCache(settings.cache_path, session_fingerprint(settings, resolver)).load()

    report = ScanReport()
    seen: list[str] = []
    batch_size = settings.read_batch_size
    for offset in range(0, len(paths), batch_size):
        batch = paths[offset:offset + batch_size]
        contents = await _read_batch(batch)
        refs = [
            FileRef(_display_path(path, base), content)
            for path, content in zip(batch, contents)
            if content is not None
        ]
        report.findings.extend(
            analyze(refs, options, config=settings, resolver=resolver, cache=cache)
        )
        report.files_scanned += len(refs)
        seen.extend(ref.path for ref in refs)

    if cache is not None:
        pruned = cache.prune(seen)
        if pruned:
            logger.debug("Pruned %d stale cache entries", pruned)
        report.cache_hits = cache.hits
        cache.save()

    report.scan_duration_seconds = time.monotonic() - start
    logger.info(
        "Scan complete: %d findings from %d files in %.2fs (%d cached)",
        len(report.findings), report.files_scanned,
        report.scan_duration_seconds, report.cache_hits,
    )
    return report


async def scan_directory(
    root: str | Path,
    options: Optional[AnalyzeOptions] = None,
    *,
    settings: Optional[Settings] = None,
    resolver: Optional[CompatibilityResolver] = None,
    use_cache: bool = True,
) -> ScanReport:
    """Collect and analyze every scannable file under root."""
    settings = settings or Settings()
    root = Path(root)
    files = collect_files(root, settings.max_file_size)
    logger.info("Collected %d scannable files in %s", len(files), root)
    return await scan_paths(
        files,
        options,
        settings=settings,
        resolver=resolver,
        root=root,
        use_cache=use_cache,
    )


def _display_path(path: Path, root: Optional[Path]) -> str:
    if root is not None:
        try:
            return path.relative_to(root).as_posix()
        except ValueError:
            pass
    return path.as_posix()
