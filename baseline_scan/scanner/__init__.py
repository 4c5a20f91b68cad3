"""Scanner module for detecting feature usages and their guards.

Public API:
    detect_usages(content, file_path) -> list[UsageSite]
    classify(site, content) -> bool
"""

from baseline_scan.scanner.detector import detect_usages
from baseline_scan.scanner.guards import classify
from baseline_scan.scanner.types import SCANNABLE_EXTENSIONS, UsageSite, file_kind

__all__ = ["detect_usages", "classify", "SCANNABLE_EXTENSIONS", "UsageSite", "file_kind"]
