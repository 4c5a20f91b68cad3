"""Detect non-Baseline web platform features in script, style and markup.

Public API:
    analyze(files, options) -> list[Finding]
    scan_directory(root, options) -> ScanReport   (async)
"""

from baseline_scan.engine import (
    AnalyzeOptions,
    FileRef,
    Finding,
    ScanReport,
    analyze,
    scan_directory,
    scan_paths,
)

__version__ = "0.1.0"

__all__ = [
    "AnalyzeOptions",
    "FileRef",
    "Finding",
    "ScanReport",
    "analyze",
    "scan_directory",
    "scan_paths",
]
