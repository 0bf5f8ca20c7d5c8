from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from src.models.review import InsertMode


class Settings(BaseSettings):
    app_name: str = "Google Reviews Harvester"
    app_env: str = "dev"
    log_level: str = "INFO"

    mongo_uri: str = "mongodb://localhost:27017"
    db_name: str = "google_reviews_harvester"
    reviews_collection: str = "google_reviews"
    reviews_insert_mode: InsertMode = InsertMode.CHECK_THEN_INSERT
    reviews_recreate_on_start: bool = False

    review_csv_file: str = "review_sources.csv"

    scraper_headless: bool = True
    scraper_locale: str = "en-US"
    scraper_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/135.0.0.0 Safari/537.36"
    )
    scraper_viewport_width: int = 1440
    scraper_viewport_height: int = 900
    scraper_timeout_ms: int = 30000
    scraper_concurrency: int = 4
    scraper_first_payload_ms: int = 12000
    scraper_inter_page_delay_ms: int = 350
    scraper_referer: str = "https://www.google.com/"
    scraper_extra_chromium_args: Annotated[list[str], NoDecode] = Field(default_factory=list)

    @field_validator("scraper_extra_chromium_args", mode="before")
    @classmethod
    def parse_scraper_extra_chromium_args(cls, value: object) -> object:
        if isinstance(value, str):
            return [arg.strip() for arg in value.split(",") if arg.strip()]
        return value

    @field_validator("reviews_insert_mode", mode="before")
    @classmethod
    def normalize_reviews_insert_mode(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower().replace("-", "_")
        return value

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
