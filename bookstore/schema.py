"""
Collection bootstrap for the books collection.
Creates the collection with a JSON-schema validator and the text index used
by search. Safe to run on every startup.
"""

from typing import Any, Dict

import structlog
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import TEXT

from bookstore.models import MIN_PUBLICATION_YEAR, current_year

logger = structlog.get_logger(__name__)

TEXT_INDEX_FIELDS = ("title", "authors", "description")


def build_validator() -> Dict[str, Any]:
    """
    Build the ``$jsonSchema`` validator for book documents.

    The publication year upper bound is the calendar year at creation time.
    """
    return {
        "$jsonSchema": {
            "bsonType": "object",
            "required": ["title", "authors"],
            "properties": {
                "title": {
                    "bsonType": "string",
                    "description": "Type must be a string and it is required",
                },
                "authors": {
                    "bsonType": "array",
                    "items": {"bsonType": "string"},
                    "description": "Type must be an array of strings and it is required",
                },
                "description": {
                    "bsonType": "string",
                    "description": "Type must be a string (optional)",
                },
                "publicationYear": {
                    "bsonType": "int",
                    "minimum": MIN_PUBLICATION_YEAR,
                    "maximum": current_year(),
                    "description": "Publication year should be within this range (optional)",
                },
            },
        }
    }


async def ensure_collection(
    database: AsyncIOMotorDatabase,
    collection_name: str,
) -> AsyncIOMotorCollection:
    """
    Make sure the books collection exists with its validator and text index.

    Args:
        database: Motor database handle
        collection_name: Name of the books collection

    Returns:
        Handle to the collection
    """
    try:
        existing = await database.list_collection_names()
        if collection_name in existing:
            logger.info("Collection already exists", collection=collection_name)
            return database[collection_name]

        collection = await database.create_collection(
            collection_name, validator=build_validator()
        )
        await collection.create_index([(field, TEXT) for field in TEXT_INDEX_FIELDS])
        logger.info(
            "Created collection with validator and text index",
            collection=collection_name,
            text_fields=list(TEXT_INDEX_FIELDS),
        )
        return collection

    except Exception as e:
        logger.error("Failed to ensure collection", collection=collection_name, error=str(e))
        raise
