from __future__ import annotations

import json
import logging
import re
from typing import Any

from src.exceptions import MalformedPayloadError
from src.models.review import EndpointFlavor, ParseResult, ReviewRecord
from src.pipeline.extractors import (
    extract_author,
    extract_images,
    extract_rating,
    extract_review_date,
    extract_review_id,
    extract_review_text,
)
from src.pipeline.tree_walker import NodeKind, node_kind, safe_get

LOGGER = logging.getLogger("payload_parser")

_SECURITY_PREFIX_REGEX = re.compile(r"^\s*\)\]\}'")
_REVIEW_BLOCKS_INDEX = 2
_UGC_TOKEN_INDEX = 1


def strip_security_prefix(raw_body: str) -> str:
    return _SECURITY_PREFIX_REGEX.sub("", raw_body or "", count=1).strip()


def load_payload(raw_body: str) -> Any:
    """Decode a reviews response body into nested Python lists.

    Bodies occasionally use JavaScript array elisions (`[,,1]`), which strict
    JSON rejects; those are retried with the holes filled with null.
    """
    cleaned = strip_security_prefix(raw_body)
    if not cleaned:
        raise MalformedPayloadError("Response body is empty.")

    try:
        return json.loads(cleaned)
    except ValueError:
        pass

    try:
        return json.loads(fill_array_elisions(cleaned))
    except ValueError as exc:
        raise MalformedPayloadError(f"Response body is not valid JSON: {exc}") from exc


def fill_array_elisions(text: str) -> str:
    chars: list[str] = []
    in_string = False
    escaped = False
    previous = ""
    previous_index = -1

    for char in text:
        if in_string:
            chars.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char.isspace():
            chars.append(char)
            continue

        if char == '"':
            in_string = True
        elif char == "," and previous in ("[", ","):
            chars.append("null")
        elif char in "]}" and previous == ",":
            chars[previous_index] = ""

        chars.append(char)
        previous = char
        previous_index = len(chars) - 1

    return "".join(chars)


class ReviewPayloadParser:
    def parse(self, raw_body: str, flavor: EndpointFlavor) -> ParseResult:
        try:
            data = load_payload(raw_body)
        except MalformedPayloadError as exc:
            LOGGER.warning("Skipping malformed %s payload: %s", flavor.value, exc)
            return ParseResult()

        if node_kind(data) is not NodeKind.SEQUENCE:
            LOGGER.warning("Skipping %s payload with unexpected top-level type %s", flavor.value, type(data).__name__)
            return ParseResult()

        next_token = self._next_token(data, flavor)
        records: list[ReviewRecord] = []
        for block in self._review_blocks(data):
            record = self._parse_block(block, next_token)
            if record is not None:
                records.append(record)

        LOGGER.debug(
            "Parsed %s payload: records=%s next_token=%s",
            flavor.value,
            len(records),
            "yes" if next_token else "no",
        )
        return ParseResult(records=records, next_token=next_token)

    def _review_blocks(self, data: list) -> list:
        blocks = safe_get(data, _REVIEW_BLOCKS_INDEX)
        if node_kind(blocks) is not NodeKind.SEQUENCE:
            return []
        return list(blocks)

    def _next_token(self, data: list, flavor: EndpointFlavor) -> str | None:
        if flavor is EndpointFlavor.UGC:
            token = safe_get(data, _UGC_TOKEN_INDEX)
        else:
            token = safe_get(data, -1, 0)
        if isinstance(token, str) and token:
            return token
        return None

    def _parse_block(self, block: Any, page_token: str | None) -> ReviewRecord | None:
        if node_kind(block) is not NodeKind.SEQUENCE:
            return None

        review_id = extract_review_id(block, page_token)
        if not review_id:
            return None

        return ReviewRecord(
            review_id=review_id,
            author=extract_author(block),
            rating=extract_rating(block),
            review_text=extract_review_text(block),
            review_date=extract_review_date(block),
            images=extract_images(block),
        )
