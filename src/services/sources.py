import csv
import logging
from pathlib import Path

from pydantic import ValidationError

from src.exceptions import ConfigurationError
from src.models.review import SourceTarget

LOGGER = logging.getLogger("sources")

REQUIRED_COLUMNS = ("company", "location", "gmaps_url")


def load_targets(csv_path: str | Path) -> list[SourceTarget]:
    """Read businesses to scrape from a CSV with company, location and gmaps_url columns."""
    path = Path(csv_path).expanduser()
    if not path.is_file():
        raise ConfigurationError(f"Review sources file not found: {path}")

    with path.open(newline="", encoding="utf-8-sig") as handle:
        reader = csv.DictReader(handle)
        columns = [str(name or "").strip() for name in reader.fieldnames or []]
        missing = [column for column in REQUIRED_COLUMNS if column not in columns]
        if missing:
            raise ConfigurationError(f"Review sources file {path} is missing columns: {', '.join(missing)}")

        targets: list[SourceTarget] = []
        for line_no, row in enumerate(reader, start=2):
            values = {str(key or "").strip(): str(value or "").strip() for key, value in row.items()}
            if not any(values.values()):
                continue
            try:
                target = SourceTarget(
                    company=values["company"],
                    location=values["location"],
                    entry_url=values["gmaps_url"],
                )
            except ValidationError as exc:
                raise ConfigurationError(f"Invalid row {line_no} in {path}: {exc}") from exc
            if not target.entry_url:
                LOGGER.warning("Skipping row %s in %s without gmaps_url", line_no, path)
                continue
            targets.append(target)

    LOGGER.info("Loaded %s businesses to scrape from %s", len(targets), path)
    return targets
