"""
Field extractors for a single review block.

A review block is one element of data[2] in a reviews response. Its layout
differs between the listentitiesreviews and listugcposts endpoints and
between review types, so every field is recovered with an ordered chain of
heuristics. Each extractor returns an empty value when nothing matches.
"""

import re
from typing import Any

from src.models.review import MAX_REVIEW_IMAGES
from src.pipeline.tree_walker import (
    NodeKind,
    iter_numbers,
    iter_sequences,
    iter_strings,
    node_kind,
    safe_get,
)

REPLY_LINK_MARKER = "/reply?p="
IMAGE_URL_PREFIXES = ("http", "//")
AUTHOR_PATH = (0, 1, 4, 5, 0)

_LANGUAGE_TAG_REGEX = re.compile(r"^[A-Za-z]{2}$")
_MAX_DATE_LENGTH = 40
_DATE_PATTERNS = (
    re.compile(r"^(?:[\w ]{1,30}\s+ago|yesterday)$", re.IGNORECASE),
    re.compile(
        r"\b(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?"
        r"|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)\b\.?(?:\s+\d{1,2},?)?\s+\d{4}\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b"),
)


def looks_like_url(value: str) -> bool:
    return value.startswith(IMAGE_URL_PREFIXES)


def extract_review_id(block: Any, page_token: str | None = None) -> str:
    candidate = safe_get(block, 0, 0)
    if isinstance(candidate, str) and candidate and candidate != page_token:
        return candidate

    # The id slot sometimes echoes the page token; the owner reply link
    # carries the real id.
    for value in iter_strings(block):
        _, marker, tail = value.partition(REPLY_LINK_MARKER)
        if not marker:
            continue
        review_id = tail.split("&", 1)[0]
        if review_id:
            return review_id

    return ""


def extract_author(block: Any) -> str:
    author = safe_get(block, *AUTHOR_PATH)
    if isinstance(author, str) and author.strip():
        return author.strip()

    for value in iter_strings(safe_get(block, 0)):
        if not looks_like_url(value):
            return value
    return ""


def extract_rating(block: Any) -> int | None:
    for value in iter_numbers(block):
        if isinstance(value, int) and 1 <= value <= 5:
            return value
    return None


def extract_review_date(block: Any) -> str:
    for value in iter_strings(block):
        candidate = value.strip()
        if not candidate or len(candidate) > _MAX_DATE_LENGTH:
            continue
        if any(pattern.search(candidate) for pattern in _DATE_PATTERNS):
            return candidate
    return ""


def extract_review_text(block: Any) -> str:
    for is_tag in (_is_language_tag, _is_wrapped_language_tag):
        for sequence in iter_sequences(block):
            text = _text_beside_tag(sequence, is_tag)
            if text is not None:
                return text.strip()
    return ""


def extract_images(block: Any) -> list[str]:
    images: list[str] = []
    seen: set[str] = set()
    for value in iter_strings(block):
        if not looks_like_url(value) or value in seen:
            continue
        seen.add(value)
        images.append(value)
        if len(images) >= MAX_REVIEW_IMAGES:
            break
    return images


def _is_language_tag(value: Any) -> bool:
    return isinstance(value, str) and bool(_LANGUAGE_TAG_REGEX.match(value))


def _is_wrapped_language_tag(value: Any) -> bool:
    return node_kind(value) is NodeKind.SEQUENCE and len(value) == 1 and _is_language_tag(value[0])


def _wrapped_text(value: Any) -> str | None:
    # [["text"]]
    if node_kind(value) is not NodeKind.SEQUENCE or len(value) != 1:
        return None
    inner = value[0]
    if node_kind(inner) is not NodeKind.SEQUENCE or len(inner) != 1:
        return None
    head = inner[0]
    return head if isinstance(head, str) else None


def _text_beside_tag(sequence: list | tuple, is_tag) -> str | None:
    for index, item in enumerate(sequence):
        if not is_tag(item):
            continue
        for neighbour in (index + 1, index - 1):
            if 0 <= neighbour < len(sequence):
                text = _wrapped_text(sequence[neighbour])
                if text is not None:
                    return text
    return None
