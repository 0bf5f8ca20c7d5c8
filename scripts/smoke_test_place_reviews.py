import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.config import settings
from src.models.review import SourceTarget
from src.scraper.google_maps import GoogleMapsSession
from src.services.pagination import ReviewPaginator
from src.workers.scraper_worker import log_progress


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Smoke test: paginate the reviews of one Google Maps place without writing to MongoDB."
    )
    parser.add_argument("gmaps_url", help="Google Maps place URL.")
    parser.add_argument("--company", default="Smoke test", help="Company label for the output rows.")
    parser.add_argument("--location", default="", help="Location label for the output rows.")
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window (default: settings.scraper_headless).",
    )
    parser.add_argument(
        "--max-reviews",
        type=int,
        default=5,
        help="Maximum number of reviews to print (default: 5).",
    )
    return parser.parse_args()


async def main() -> None:
    args = _parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    target = SourceTarget(company=args.company, location=args.location, entry_url=args.gmaps_url)

    paginator = ReviewPaginator(
        first_payload_timeout_ms=settings.scraper_first_payload_ms,
        inter_page_delay_ms=settings.scraper_inter_page_delay_ms,
        referer=settings.scraper_referer,
        progress_callback=log_progress,
    )

    async with GoogleMapsSession(
        headless=settings.scraper_headless and not args.headed,
        locale=settings.scraper_locale,
        user_agent=settings.scraper_user_agent,
        viewport_width=settings.scraper_viewport_width,
        viewport_height=settings.scraper_viewport_height,
        timeout_ms=settings.scraper_timeout_ms,
        extra_chromium_args=settings.scraper_extra_chromium_args,
    ) as session:
        async with session.open_place(target) as fetcher:
            records = await paginator.collect(target, fetcher)

    with_text = sum(1 for record in records if record.review_text)
    with_rating = sum(1 for record in records if record.rating is not None)
    print(f"Reviews collected: {len(records)} (with text: {with_text}, with rating: {with_rating})")
    sample = [record.model_dump(mode="json") for record in records[: max(0, args.max_reviews)]]
    print(json.dumps(sample, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    asyncio.run(main())
