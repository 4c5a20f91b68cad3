"""Analysis engine — turns file references into findings.

For each file, in input order:
1. Replay cached findings if the content and targets are unchanged
2. Detect usage sites (tree-sitter path, regex fallback)
3. Classify each site as guarded or not
4. Derive advice and severity from the feature's Baseline status
5. Attach the unsupported share of the targets, when targets are given

Findings come out in file order, then in document order within a file.
"""

import functools
import hashlib
import logging
from collections.abc import Iterable
from typing import Optional

from baseline_scan.cache import ResultCache, content_hash
from baseline_scan.compat import CompatData, CompatibilityResolver
from baseline_scan.core.config import Settings
from baseline_scan.features import FEATURES, FeatureMeta
from baseline_scan.scanner import UsageSite, classify, detect_usages
from baseline_scan.engine.types import AnalyzeOptions, FileRef, Finding

logger = logging.getLogger(__name__)


def analyze(
    files: Iterable[FileRef],
    options: Optional[AnalyzeOptions] = None,
    *,
    config: Optional[Settings] = None,
    resolver: Optional[CompatibilityResolver] = None,
    cache: Optional[ResultCache] = None,
) -> list[Finding]:
    """Analyze files and return their findings.

    config: Feature toggles, threshold and live-Baseline switch. Defaults
        to Settings() read from the environment.
    resolver: Compatibility resolver. Defaults to one over the datasets
        named in config, shared between calls with the same paths.
    cache: Result cache to read from and write to. Entries recorded under
        a different config or dataset are dropped first, so its presence
        never changes the output.

    Raises TypeError for anything in files that is not a FileRef.
    """
    options = options or AnalyzeOptions()
    config = config or Settings()
    if resolver is None:
        resolver = default_resolver(config)
    if cache is not None:
        cache.bind(session_fingerprint(config, resolver))
    targets = options.effective_targets()

    findings: list[Finding] = []
    for ref in files:
        if not isinstance(ref, FileRef):
            raise TypeError(f"Expected FileRef, got {type(ref).__name__}")
        findings.extend(_analyze_file(ref, targets, config, resolver, cache))
    return findings


def _analyze_file(
    ref: FileRef,
    targets: Optional[list[str]],
    config: Settings,
    resolver: Optional[CompatibilityResolver],
    cache: Optional[ResultCache],
) -> list[Finding]:
    digest = content_hash(ref.content) if cache is not None else ""
    if cache is not None:
        cached = cache.get(ref.path, digest, targets)
        if cached is not None:
            return cached

    try:
        sites = detect_usages(ref.content, ref.path, config.disabled_features)
    except Exception as exc:
        logger.warning("Detection failed for %s: %s", ref.path, exc)
        sites = []

    findings = []
    for site in sites:
        meta = FEATURES.get(site.feature_id)
        if meta is None:
            logger.warning("Dropping site for unregistered feature %s", site.feature_id)
            continue
        findings.append(_build_finding(ref, site, meta, targets, config, resolver))

    if cache is not None:
        cache.put(ref.path, digest, targets, findings)
    return findings


def _build_finding(
    ref: FileRef,
    site: UsageSite,
    meta: FeatureMeta,
    targets: Optional[list[str]],
    config: Settings,
    resolver: Optional[CompatibilityResolver],
) -> Finding:
    try:
        guarded = classify(site, ref.content)
    except Exception as exc:
        logger.warning(
            "Guard check failed for %s at %s:%d: %s",
            site.feature_id, ref.path, site.line, exc,
        )
        guarded = False

    baseline_status = meta.baseline_status
    if config.live_baseline and resolver is not None and resolver.is_baseline(meta.id):
        baseline_status = "yes"

    unsupported = None
    if targets and resolver is not None:
        unsupported = resolver.unsupported(meta.id, targets)

    advice = derive_advice(baseline_status, guarded)
    if (
        advice == "needs-guard"
        and config.unsupported_threshold is not None
        and unsupported is not None
        and unsupported <= config.unsupported_threshold
    ):
        advice = "safe"

    return Finding(
        file=ref.path,
        line=site.line,
        column=site.column,
        feature_id=meta.id,
        title=meta.title,
        baseline_status=baseline_status,
        severity="warn" if advice == "needs-guard" else "info",
        docs_url=meta.docs_url,
        guarded=guarded,
        advice=advice,
        suggestion=meta.default_suggestion,
        unsupported_percent=unsupported,
    )


def derive_advice(baseline_status: str, guarded: bool) -> str:
    if baseline_status == "yes":
        return "safe"
    return "guarded" if guarded else "needs-guard"


def build_resolver(settings: Settings) -> CompatibilityResolver:
    """Resolver over the datasets named in settings (empty if none)."""
    if not (settings.caniuse_data_path or settings.web_features_data_path):
        return CompatibilityResolver(CompatData.empty())
    data = CompatData.load(
        settings.caniuse_data_path or None,
        settings.web_features_data_path or None,
    )
    return CompatibilityResolver(data)


def default_resolver(settings: Settings) -> CompatibilityResolver:
    """Like build_resolver, but loads each pair of dataset paths only once."""
    return _resolver_for_paths(settings.caniuse_data_path, settings.web_features_data_path)


@functools.lru_cache(maxsize=8)
def _resolver_for_paths(caniuse_path: str, web_features_path: str) -> CompatibilityResolver:
    return build_resolver(
        Settings(
            _env_file=None,
            caniuse_data_path=caniuse_path,
            web_features_data_path=web_features_path,
        )
    )


def session_fingerprint(settings: Settings, resolver: CompatibilityResolver) -> str:
    """Configuration fingerprint for the cache: settings plus dataset identity."""
    combined = f"{settings.fingerprint()}:{resolver.fingerprint()}"
    return hashlib.sha256(combined.encode("utf-8")).hexdigest()[:16]
