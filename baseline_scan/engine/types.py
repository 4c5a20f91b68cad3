"""Types for the analysis engine.

A Finding is one reported usage site with its classification. Findings
are plain data: they are serialized into the result cache and handed to
report renderers, editors and lint adapters unchanged.
"""

from dataclasses import dataclass, field
from typing import Optional

ADVICE_VALUES = ("safe", "needs-guard", "guarded")
SEVERITIES = ("info", "warn", "error")


@dataclass
class FileRef:
    """A source file handed to the engine: path plus full UTF-8 text."""

    path: str
    content: str

    def __post_init__(self) -> None:
        if not isinstance(self.path, str):
            raise TypeError(f"FileRef.path must be str, got {type(self.path).__name__}")
        if not isinstance(self.content, str):
            raise TypeError(
                f"FileRef.content must be str, got {type(self.content).__name__}"
            )


@dataclass
class AnalyzeOptions:
    """Options for one analyze() call.

    targets: Browser target queries. None (or empty) disables
        compatibility enrichment and unsupported_percent stays unset.
    """

    targets: Optional[list[str]] = None

    def effective_targets(self) -> Optional[list[str]]:
        return list(self.targets) if self.targets else None


@dataclass
class Finding:
    """A detected feature usage.

    line, column: 1-based position of the usage in the file's own text.
    advice: "safe" when the feature is Baseline, else "guarded" if a
        feature check protects the usage, else "needs-guard".
    unsupported_percent: Share of target agents lacking support, 0-100.
        Only set when targets were given and data exists.
    """

    file: str
    line: int
    column: int
    feature_id: str
    title: str
    baseline_status: str
    severity: str
    docs_url: str
    guarded: bool
    advice: str
    suggestion: Optional[str] = None
    unsupported_percent: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "feature_id": self.feature_id,
            "title": self.title,
            "baseline_status": self.baseline_status,
            "severity": self.severity,
            "docs_url": self.docs_url,
            "suggestion": self.suggestion,
            "guarded": self.guarded,
            "advice": self.advice,
            "unsupported_percent": self.unsupported_percent,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Finding":
        """Rebuild a finding from to_dict() output.

        Raises KeyError for missing fields and ValueError for an advice or
        severity outside ADVICE_VALUES / SEVERITIES.
        """
        if data["advice"] not in ADVICE_VALUES:
            raise ValueError(f"Unknown advice: {data['advice']!r}")
        if data["severity"] not in SEVERITIES:
            raise ValueError(f"Unknown severity: {data['severity']!r}")
        return cls(
            file=data["file"],
            line=data["line"],
            column=data["column"],
            feature_id=data["feature_id"],
            title=data["title"],
            baseline_status=data["baseline_status"],
            severity=data["severity"],
            docs_url=data["docs_url"],
            guarded=data["guarded"],
            advice=data["advice"],
            suggestion=data.get("suggestion"),
            unsupported_percent=data.get("unsupported_percent"),
        )


@dataclass
class ScanReport:
    """Output of a directory or path-list scan session."""

    findings: list[Finding] = field(default_factory=list)
    files_scanned: int = 0
    cache_hits: int = 0
    scan_duration_seconds: float = 0.0

    def to_dict(self) -> dict:
        return {
            "findings": [f.to_dict() for f in self.findings],
            "finding_count": len(self.findings),
            "files_scanned": self.files_scanned,
            "cache_hits": self.cache_hits,
            "scan_duration_seconds": round(self.scan_duration_seconds, 3),
        }
