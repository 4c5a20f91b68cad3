"""Feature registry — the static catalog of detectable features.

Loaded once at import time and never mutated. Every Finding's
feature_id must resolve here; the scanner modules key their patterns
and guard predicates off these ids.
"""

from baseline_scan.features.types import FeatureMeta

_MDN = "https://developer.mozilla.org/docs"

_CATALOG: tuple[FeatureMeta, ...] = (
    # Script features
    FeatureMeta(
        id="structured-clone",
        title="structuredClone()",
        docs_url=f"{_MDN}/Web/API/structuredClone",
        baseline_status="yes",
        default_suggestion="Prefer structuredClone over deep-clone utilities; guard if targeting older browsers.",
        web_features_id="structured-clone",
    ),
    FeatureMeta(
        id="array-prototype-at",
        title="Array.prototype.at()",
        docs_url=f"{_MDN}/Web/JavaScript/Reference/Global_Objects/Array/at",
        baseline_status="partial",
        default_suggestion="Fallback: use arr[index >= 0 ? index : arr.length + index] for negatives.",
        web_features_id="array-at",
    ),
    FeatureMeta(
        id="promise-any",
        title="Promise.any()",
        docs_url=f"{_MDN}/Web/JavaScript/Reference/Global_Objects/Promise/any",
        baseline_status="partial",
        default_suggestion="Fallback: emulate with Promise.race on wrapped promises or a small polyfill.",
        web_features_id="promise-any",
    ),
    FeatureMeta(
        id="urlpattern",
        title="URLPattern",
        docs_url=f"{_MDN}/Web/API/URL_Pattern_API",
        baseline_status="partial",
        default_suggestion="Fallback: use the urlpattern-polyfill or Regex-based matching.",
        compat_data_key="urlpattern",
    ),
    FeatureMeta(
        id="view-transitions",
        title="View Transitions API",
        docs_url=f"{_MDN}/Web/API/Document/startViewTransition",
        baseline_status="partial",
        default_suggestion="Guard: if ('startViewTransition' in document) { ... } else { ... }",
        compat_data_key="view-transitions",
    ),
    FeatureMeta(
        id="navigator-share",
        title="Web Share API",
        docs_url=f"{_MDN}/Web/API/Navigator/share",
        baseline_status="partial",
        default_suggestion="Guard: if (navigator.share) { await navigator.share(...) } else { fallback }",
        compat_data_key="web-share",
    ),
    FeatureMeta(
        id="file-system-access-picker",
        title="showOpenFilePicker()",
        docs_url=f"{_MDN}/Web/API/window/showOpenFilePicker",
        baseline_status="partial",
        default_suggestion='Fallback: use <input type="file"> when picker is unavailable.',
        compat_data_key="native-filesystem-api",
    ),
    FeatureMeta(
        id="url-canparse",
        title="URL.canParse()",
        docs_url=f"{_MDN}/Web/API/URL/canParse_static",
        baseline_status="partial",
        default_suggestion="Fallback: try/catch new URL(...) for validation.",
        # No dedicated caniuse entry; the URL API table is the closest proxy.
        compat_data_key="url",
        web_features_id="url-canparse",
    ),
    FeatureMeta(
        id="async-clipboard",
        title="Async Clipboard API",
        docs_url=f"{_MDN}/Web/API/Clipboard_API",
        baseline_status="partial",
        default_suggestion=(
            "Guard: if (navigator.clipboard?.writeText) "
            "{ await navigator.clipboard.writeText(...) } else { /* fallback */ }"
        ),
        compat_data_key="async-clipboard",
    ),
    # Style features
    FeatureMeta(
        id="css-has",
        title="CSS :has()",
        docs_url=f"{_MDN}/Web/CSS/:has",
        baseline_status="partial",
        default_suggestion="Use progressive enhancement: avoid relying on :has() for critical UI; restructure selectors.",
        compat_data_key="css-has",
    ),
    FeatureMeta(
        id="css-text-wrap-balance",
        title="CSS text-wrap: balance",
        docs_url=f"{_MDN}/Web/CSS/text-wrap",
        baseline_status="partial",
        default_suggestion=(
            "Use progressive enhancement; avoid relying on balance for critical "
            "layout; provide reasonable default wrapping."
        ),
        compat_data_key="css-text-wrap-balance",
    ),
    FeatureMeta(
        id="css-color-mix",
        title="CSS color-mix()",
        docs_url=f"{_MDN}/Web/CSS/color_value/color-mix",
        baseline_status="partial",
        default_suggestion="Provide fallback colors or precomputed values when color-mix() is unsupported.",
        compat_data_key="css-color-function",
        web_features_id="color-mix",
    ),
    FeatureMeta(
        id="css-nesting",
        title="CSS Nesting",
        docs_url=f"{_MDN}/Web/CSS/CSS_nesting",
        baseline_status="partial",
        default_suggestion="Use PostCSS Nesting or target supported environments.",
        compat_data_key="css-nesting",
    ),
    FeatureMeta(
        id="css-modal-pseudo",
        title=":modal pseudo-class",
        docs_url=f"{_MDN}/Web/CSS/:modal",
        baseline_status="partial",
        default_suggestion="Guard UI for browsers without <dialog> modal support; provide non-modal fallback.",
        compat_data_key="dialog",
    ),
    FeatureMeta(
        id="css-container-queries",
        title="CSS Container Queries",
        docs_url=f"{_MDN}/Web/CSS/CSS_container_queries",
        baseline_status="partial",
        default_suggestion=(
            "Provide responsive fallbacks using media queries when container "
            "queries are unsupported."
        ),
        compat_data_key="css-container-queries",
    ),
    FeatureMeta(
        id="css-color-oklch",
        title="CSS oklch()/oklab() colors",
        docs_url=f"{_MDN}/Web/CSS/color_value/oklch",
        baseline_status="partial",
        default_suggestion="Provide fallback colors or color-mix() alternatives when unsupported.",
        compat_data_key="css-oklab",
    ),
    # Markup features
    FeatureMeta(
        id="html-popover",
        title="Popover attribute",
        docs_url=f"{_MDN}/Web/API/Popover_API",
        baseline_status="partial",
        default_suggestion="Fallback: use <dialog> or a custom popover component.",
        compat_data_key="popover",
    ),
    FeatureMeta(
        id="html-dialog",
        title="<dialog> element",
        docs_url=f"{_MDN}/Web/HTML/Element/dialog",
        baseline_status="partial",
        default_suggestion=(
            "Provide a dialog polyfill or non-modal fallback when unsupported; "
            "ensure accessible focus management."
        ),
        compat_data_key="dialog",
    ),
    FeatureMeta(
        id="import-maps",
        title="Import Maps",
        docs_url=f"{_MDN}/Web/HTML/Element/script/type/importmap",
        baseline_status="partial",
        default_suggestion="Guard or provide bundler fallback for environments without native import maps.",
        compat_data_key="import-maps",
    ),
    FeatureMeta(
        id="loading-lazy-attr",
        title="Lazy loading attribute",
        docs_url=f"{_MDN}/Web/HTML/Element/img#attr-loading",
        baseline_status="partial",
        default_suggestion="Use for non-critical images/iframes; set hero media to eager to protect LCP.",
        compat_data_key="loading-lazy-attr",
    ),
)

FEATURES: dict[str, FeatureMeta] = {meta.id: meta for meta in _CATALOG}


def get_feature(feature_id: str) -> FeatureMeta:
    """Return metadata for a feature id. Raises KeyError if unknown."""
    return FEATURES[feature_id]


def all_features() -> list[FeatureMeta]:
    """All features in registry order."""
    return list(_CATALOG)
