from src.models.review import EndpointFlavor
from src.scraper.token_codec import rewrite_token

ENTITIES_URL = (
    "https://www.google.com/maps/preview/review/listentitiesreviews"
    "?authuser=0&hl=en&pb=!1m2!1y1!2y2!2m2!1i10!2i10!3sOLD!5m2!1sabc!7e81"
)
UGC_URL = "https://www.google.com/maps/rpc/listugcposts?authuser=0&hl=en&pb=!1m6!1s0x1:0x2!6m4!4m1!1e1!2sOLD!5m2!2sxyz"


def test_entities_token_is_replaced() -> None:
    rewritten = rewrite_token(ENTITIES_URL, "CAESBkVnSUlDZw", EndpointFlavor.ENTITIES)

    assert "!3sCAESBkVnSUlDZw!5m2" in rewritten
    assert "OLD" not in rewritten


def test_ugc_token_replaces_first_marker_only() -> None:
    rewritten = rewrite_token(UGC_URL, "NEXT", EndpointFlavor.UGC)

    assert rewritten == UGC_URL.replace("!2sOLD", "!2sNEXT")
    assert rewritten.endswith("!2sxyz")


def test_token_is_url_escaped() -> None:
    rewritten = rewrite_token(ENTITIES_URL, "a b/c=!", EndpointFlavor.ENTITIES)

    assert "!3sa%20b%2Fc%3D%21!5m2" in rewritten


def test_url_without_marker_is_unchanged() -> None:
    url = "https://www.google.com/maps/place/Cafe"

    assert rewrite_token(url, "TOKEN", EndpointFlavor.ENTITIES) == url
    assert rewrite_token(url, "TOKEN", EndpointFlavor.UGC) == url


def test_repeated_rewrites_only_touch_token_segment() -> None:
    first = rewrite_token(ENTITIES_URL, "t1!with!bangs", EndpointFlavor.ENTITIES)
    second = rewrite_token(first, "t2", EndpointFlavor.ENTITIES)

    assert second == ENTITIES_URL.replace("!3sOLD", "!3st2")
