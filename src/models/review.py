from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_REVIEW_IMAGES = 8


class EndpointFlavor(str, Enum):
    ENTITIES = "entities"
    UGC = "ugc"


class InsertMode(str, Enum):
    CHECK_THEN_INSERT = "check_then_insert"
    UNCONDITIONAL = "unconditional"


class ConflictPolicy(str, Enum):
    IGNORE_ON_DUPLICATE_KEY = "ignore_on_duplicate_key"
    NONE = "none"


class SourceTarget(BaseModel):
    company: str
    location: str
    entry_url: str

    model_config = ConfigDict(frozen=True)

    @property
    def label(self) -> str:
        return f"{self.company} - {self.location}"


class ReviewRecord(BaseModel):
    company: str = ""
    location: str = ""
    business_url: str = ""
    review_id: str = Field(min_length=1)
    author: str = ""
    rating: int | None = Field(default=None, ge=1, le=5)
    review_text: str = ""
    review_date: str = ""
    images: list[str] = Field(default_factory=list, max_length=MAX_REVIEW_IMAGES)

    model_config = ConfigDict(frozen=True)

    @field_validator("images")
    @classmethod
    def reject_duplicate_images(cls, value: list[str]) -> list[str]:
        if len(set(value)) != len(value):
            raise ValueError("Review images must not contain duplicates.")
        return value

    def for_target(self, target: SourceTarget) -> "ReviewRecord":
        return self.model_copy(
            update={
                "company": target.company,
                "location": target.location,
                "business_url": target.entry_url,
            }
        )


class ParseResult(BaseModel):
    records: list[ReviewRecord] = Field(default_factory=list)
    next_token: str | None = None
