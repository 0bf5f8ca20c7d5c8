from src.models.review import (
    MAX_REVIEW_IMAGES,
    ConflictPolicy,
    EndpointFlavor,
    InsertMode,
    ParseResult,
    ReviewRecord,
    SourceTarget,
)

__all__ = [
    "MAX_REVIEW_IMAGES",
    "ConflictPolicy",
    "EndpointFlavor",
    "InsertMode",
    "ParseResult",
    "ReviewRecord",
    "SourceTarget",
]
