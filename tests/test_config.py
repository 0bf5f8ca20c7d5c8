import pytest
from pydantic import ValidationError

from src.config import Settings
from src.models.review import InsertMode


def test_insert_mode_is_normalized_to_enum() -> None:
    assert Settings(reviews_insert_mode=" Unconditional ").reviews_insert_mode is InsertMode.UNCONDITIONAL
    assert Settings(reviews_insert_mode="check-then-insert").reviews_insert_mode is InsertMode.CHECK_THEN_INSERT


def test_unknown_insert_mode_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(reviews_insert_mode="upsert")


def test_extra_chromium_args_are_split_on_commas() -> None:
    settings = Settings(scraper_extra_chromium_args="--no-sandbox, ,--disable-gpu")

    assert settings.scraper_extra_chromium_args == ["--no-sandbox", "--disable-gpu"]
