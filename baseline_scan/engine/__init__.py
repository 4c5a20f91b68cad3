"""Analysis engine.

Public API:
    analyze(files, options) -> list[Finding]
    scan_directory(root, options) -> ScanReport   (async)
    scan_paths(paths, options) -> ScanReport      (async)
"""

from baseline_scan.engine.types import AnalyzeOptions, FileRef, Finding, ScanReport
from baseline_scan.engine.orchestrator import analyze
from baseline_scan.engine.session import collect_files, scan_directory, scan_paths

__all__ = [
    "AnalyzeOptions",
    "FileRef",
    "Finding",
    "ScanReport",
    "analyze",
    "collect_files",
    "scan_directory",
    "scan_paths",
]
