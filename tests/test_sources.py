import pytest

from src.exceptions import ConfigurationError
from src.services.sources import load_targets


def test_load_targets_reads_trimmed_rows(tmp_path) -> None:
    csv_file = tmp_path / "review_sources.csv"
    csv_file.write_text(
        "company, location ,gmaps_url\n"
        " Cafe Uno , Madrid , https://maps.google.com/?cid=1 \n"
        "\n"
        "Bar Dos,Sevilla,https://maps.google.com/?cid=2\n",
        encoding="utf-8",
    )

    targets = load_targets(csv_file)

    assert [(t.company, t.location, t.entry_url) for t in targets] == [
        ("Cafe Uno", "Madrid", "https://maps.google.com/?cid=1"),
        ("Bar Dos", "Sevilla", "https://maps.google.com/?cid=2"),
    ]


def test_rows_without_url_are_skipped(tmp_path) -> None:
    csv_file = tmp_path / "sources.csv"
    csv_file.write_text("company,location,gmaps_url\nNo Url,Madrid,\n", encoding="utf-8")

    assert load_targets(csv_file) == []


def test_missing_columns_are_rejected(tmp_path) -> None:
    csv_file = tmp_path / "sources.csv"
    csv_file.write_text("company,url\nCafe,https://maps.google.com\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_targets(csv_file)


def test_missing_file_is_rejected(tmp_path) -> None:
    with pytest.raises(ConfigurationError):
        load_targets(tmp_path / "absent.csv")
