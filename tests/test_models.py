import pytest
from pydantic import ValidationError

from src.models.review import ReviewRecord, SourceTarget


def test_review_record_rejects_out_of_range_rating() -> None:
    for rating in (0, 6, -1):
        with pytest.raises(ValidationError):
            ReviewRecord(review_id="r", rating=rating)


def test_review_record_requires_review_id() -> None:
    with pytest.raises(ValidationError):
        ReviewRecord(review_id="")


def test_review_record_rejects_too_many_or_duplicate_images() -> None:
    with pytest.raises(ValidationError):
        ReviewRecord(review_id="r", images=[f"http://img/{idx}" for idx in range(9)])
    with pytest.raises(ValidationError):
        ReviewRecord(review_id="r", images=["http://img/1", "http://img/1"])


def test_for_target_returns_enriched_copy() -> None:
    record = ReviewRecord(review_id="r", author="Ana", rating=5)
    target = SourceTarget(company="Cafe", location="Madrid", entry_url="https://maps.google.com/?cid=1")

    enriched = record.for_target(target)

    assert enriched.company == "Cafe"
    assert enriched.business_url == "https://maps.google.com/?cid=1"
    assert enriched.author == "Ana"
    assert record.company == ""
    with pytest.raises(ValidationError):
        enriched.author = "Other"
