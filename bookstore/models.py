"""
API models and schemas for the Bookstore API.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

MIN_PUBLICATION_YEAR = 1800


def current_year() -> int:
    return datetime.utcnow().year


class BookPayload(BaseModel):
    """
    Validated create/upsert body.

    Only the fields present in the request end up in the stored document;
    absent optional fields are omitted rather than stored as null.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    title: StrictStr = Field(..., min_length=1, description="Book title")
    authors: List[StrictStr] = Field(..., min_length=1, description="Book authors, stored sorted")
    description: Optional[StrictStr] = Field(None, description="Book description")
    publication_year: Optional[StrictInt] = Field(
        None, alias="publicationYear", description="Year of publication"
    )

    @field_validator("authors")
    @classmethod
    def sort_authors(cls, v):
        return sorted(v)

    @field_validator("publication_year")
    @classmethod
    def validate_publication_year(cls, v):
        """Ensure the year falls between 1800 and the current year."""
        if v is not None and not MIN_PUBLICATION_YEAR <= v <= current_year():
            raise ValueError(
                f"publicationYear must be between {MIN_PUBLICATION_YEAR} and {current_year()}"
            )
        return v

    def to_document(self, book_id: int) -> Dict[str, Any]:
        """Build the Mongo document for this payload under ``book_id``."""
        document = {"_id": book_id}
        document.update(self.model_dump(by_alias=True, exclude_none=True))
        return document


class Book(BaseModel):
    """Book response model for API."""
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(..., description="Sequential book identifier")
    title: str = Field(..., description="Book title")
    authors: List[str] = Field(..., description="Book authors, sorted")
    description: Optional[str] = Field(None, description="Book description")
    publication_year: Optional[int] = Field(
        None, alias="publicationYear", description="Year of publication"
    )

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Book":
        data = dict(document)
        data["id"] = data.pop("_id")
        return cls(**data)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class UpsertResult(BaseModel):
    """Outcome of a full-document upsert."""
    matched_count: int = Field(...)
    modified_count: int = Field(...)
    upserted_id: Optional[int] = None
    book: Book

    @property
    def created(self) -> bool:
        return self.upserted_id is not None

    def to_json(self) -> Dict[str, Any]:
        return {
            "matchedCount": self.matched_count,
            "modifiedCount": self.modified_count,
            "upsertedId": self.upserted_id,
            "book": self.book.to_json(),
        }


class BookListResponse(BaseModel):
    """Response model for book listings and search results."""
    message: str = Field(..., description="Outcome message")
    books: List[Book] = Field(..., description="Matching books")


class BookDetailResponse(BaseModel):
    """Response model for a single-book lookup."""
    message: str = Field(..., description="Outcome message")
    books: Optional[Book] = Field(None, description="The book, or null when absent")


class BookCreatedResponse(BaseModel):
    message: str
    book: Book


class BookUpsertedResponse(BaseModel):
    message: str
    books: Dict[str, Any]


class MessageResponse(BaseModel):
    message: str


class TokenResponse(BaseModel):
    """Token issuance response model."""
    token: str = Field(..., description="Signed bearer token")
    message: str = Field(..., description="Validity notice")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
