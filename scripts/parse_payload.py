import argparse
import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.models.review import EndpointFlavor
from src.pipeline.payload_parser import ReviewPayloadParser
from src.services.pagination import detect_flavor


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Parse a saved listentitiesreviews/listugcposts response body and print "
            "the extracted reviews and next page token."
        )
    )
    parser.add_argument("body_file", help="File containing the raw response body.")
    parser.add_argument(
        "--flavor",
        choices=[flavor.value for flavor in EndpointFlavor],
        default="",
        help="Endpoint flavor. Detected from --url when omitted (default: entities).",
    )
    parser.add_argument(
        "--url",
        default="",
        help="Request URL the body was captured from, used to detect the flavor.",
    )
    parser.add_argument(
        "--max-reviews",
        type=int,
        default=0,
        help="Maximum number of reviews to print. Use 0 for all (default: 0).",
    )
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    raw_body = Path(args.body_file).read_text(encoding="utf-8")
    flavor = EndpointFlavor(args.flavor) if args.flavor else detect_flavor(args.url)

    result = ReviewPayloadParser().parse(raw_body, flavor)
    records = result.records
    if args.max_reviews > 0:
        records = records[: args.max_reviews]

    print(f"Flavor: {flavor.value}")
    print(f"Reviews parsed: {len(result.records)}")
    print(f"Next token: {result.next_token or '(none)'}")
    print(json.dumps([record.model_dump(mode="json") for record in records], ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
