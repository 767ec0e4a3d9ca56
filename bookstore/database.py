"""
Database service layer for the Bookstore API.
"""

from typing import Any, Dict, List, Optional

import pydantic
import structlog
from motor.motor_asyncio import AsyncIOMotorCollection

from bookstore.config import config
from bookstore.errors import InvalidDataFormat, MissingRequiredField
from bookstore.id_allocator import IdAllocator
from bookstore.models import Book, BookPayload, UpsertResult
from bookstore.queries import (
    ListQueryParams, build_list_plan, build_search_filter, parse_book_id
)

logger = structlog.get_logger(__name__)


def parse_payload(payload: Any) -> BookPayload:
    """
    Validate a create/upsert body.

    Raises:
        MissingRequiredField: If title or authors is absent or empty
        InvalidDataFormat: If the body is not an object or a field has the wrong type or range
    """
    if not isinstance(payload, dict):
        raise InvalidDataFormat()
    if not payload.get("title") or not payload.get("authors"):
        raise MissingRequiredField()
    try:
        return BookPayload.model_validate(payload)
    except pydantic.ValidationError as e:
        logger.warning("Rejected book payload", errors=e.errors(include_url=False))
        raise InvalidDataFormat() from e


class BookDatabaseService:
    """Database service for book operations."""

    def __init__(
        self,
        collection: AsyncIOMotorCollection,
        id_allocator: Optional[IdAllocator] = None,
        default_page_size: int = config.default_page_size,
    ):
        self.collection = collection
        self.id_allocator = id_allocator or IdAllocator(collection)
        self.default_page_size = default_page_size

    async def list_books(self, params: ListQueryParams) -> List[Book]:
        """
        Get books with sorting and pagination.

        Args:
            params: Raw listing parameters

        Returns:
            Books on the requested page (possibly empty)
        """
        plan = build_list_plan(params, default_limit=self.default_page_size)
        try:
            cursor = self.collection.find({}).sort(plan.sort).skip(plan.skip).limit(plan.limit)
            documents = await cursor.to_list(length=plan.limit)
            return [Book.from_document(doc) for doc in documents]

        except Exception as e:
            logger.error("Failed to list books", error=str(e), plan=plan.model_dump())
            raise

    async def get_book(self, raw_id: Any) -> Optional[Book]:
        """
        Get a single book by id.

        Args:
            raw_id: Book id as received on the path

        Returns:
            Book if found, None otherwise
        """
        book_id = parse_book_id(raw_id)
        try:
            document = await self.collection.find_one({"_id": book_id})
            return Book.from_document(document) if document else None

        except Exception as e:
            logger.error("Failed to get book by ID", book_id=book_id, error=str(e))
            raise

    async def search_books(self, query: Optional[str]) -> List[Book]:
        """Full-text search over title, authors and description."""
        search_filter = build_search_filter(query)
        if search_filter is None:
            return []
        try:
            documents = await self.collection.find(search_filter).to_list(length=None)
            return [Book.from_document(doc) for doc in documents]

        except Exception as e:
            logger.error("Failed to search books", query=query, error=str(e))
            raise

    async def create_book(self, payload: Dict[str, Any]) -> Book:
        """
        Insert a new book under the next sequential id.

        Args:
            payload: Request body

        Returns:
            The stored book
        """
        book = parse_payload(payload)
        try:
            book_id = await self.id_allocator.next_id()
            document = book.to_document(book_id)
            await self.collection.insert_one(document)
            logger.info("Book created", book_id=book_id, title=book.title)
            return Book.from_document(document)

        except Exception as e:
            logger.error("Failed to insert book", title=book.title, error=str(e))
            raise

    async def upsert_book(self, raw_id: Any, payload: Dict[str, Any]) -> UpsertResult:
        """
        Replace the book stored under ``raw_id``, creating it when absent.

        Any ``id`` in the body is ignored; the path id is authoritative.
        """
        book_id = parse_book_id(raw_id)
        book = parse_payload(payload)
        document = book.to_document(book_id)
        try:
            result = await self.collection.replace_one({"_id": book_id}, document, upsert=True)
            upserted = UpsertResult(
                matched_count=result.matched_count,
                modified_count=result.modified_count,
                upserted_id=result.upserted_id,
                book=Book.from_document(document),
            )
            logger.info(
                "Book upserted",
                book_id=book_id,
                matched=upserted.matched_count,
                created=upserted.created,
            )
            return upserted

        except Exception as e:
            logger.error("Failed to upsert book", book_id=book_id, error=str(e))
            raise

    async def delete_book(self, raw_id: Any) -> bool:
        """
        Delete a book by id.

        Returns:
            True if deleted, False if not found
        """
        book_id = parse_book_id(raw_id)
        try:
            result = await self.collection.delete_one({"_id": book_id})
            if result.deleted_count == 1:
                logger.info("Book deleted", book_id=book_id)
                return True
            logger.warning("Book not found for deletion", book_id=book_id)
            return False

        except Exception as e:
            logger.error("Failed to delete book", book_id=book_id, error=str(e))
            raise

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.collection.database.command("ping")
            books_count = await self.collection.count_documents({})
            return {
                "status": "healthy",
                "books_collection": "accessible",
                "books_count": books_count,
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e),
            }
