from typing import Final

# Selector strategy based on UI structure and behavior attributes.
# Avoid concrete ids because they change frequently in Google Maps.
SELECTOR_PATTERNS: Final[dict[str, tuple[str, ...]]] = {
    # Cookie consent interstitial
    "CONSENT_BUTTON": (
        "form[action='https://consent.google.com/save'] button",
        "form[action*='consent.google.com'] button",
    ),
    # Place page entrypoints that trigger the first reviews request
    "REVIEWS_ENTRYPOINT": (
        "[jsaction*='pane.wfvdle10.moreReviews']",
        "button[role='tab'][aria-label*='Reviews']",
        "button[role='tab'][aria-label*='review' i]",
        "button[jsaction*='reviewChart.moreReviews']",
        "button[aria-label*='more review' i]",
    ),
}

CONSENT_TEXT_TERMS: Final[tuple[str, ...]] = ("accept all", "i agree", "aceptar todo", "estoy de acuerdo")
