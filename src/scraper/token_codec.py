import re
from urllib.parse import quote

from src.models.review import EndpointFlavor

# Reviews endpoints carry the page token inside the protobuf-style "pb"
# parameter: !3s<token> for listentitiesreviews, !2s<token> for listugcposts.
TOKEN_MARKERS: dict[EndpointFlavor, str] = {
    EndpointFlavor.ENTITIES: "!3s",
    EndpointFlavor.UGC: "!2s",
}

_TOKEN_PATTERNS = {
    flavor: re.compile(re.escape(marker) + r"[^!]*")
    for flavor, marker in TOKEN_MARKERS.items()
}


def rewrite_token(url_template: str, token: str, flavor: EndpointFlavor) -> str:
    """Return `url_template` with its page token segment replaced by `token`.

    The URL is returned unchanged when it has no token segment for `flavor`.
    """
    marker = TOKEN_MARKERS[flavor]
    # "!" is the segment separator, so it must be escaped too.
    escaped = quote(token, safe="-_.~")
    return _TOKEN_PATTERNS[flavor].sub(lambda _: f"{marker}{escaped}", url_template, count=1)
