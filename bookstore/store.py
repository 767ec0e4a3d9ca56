"""
MongoDB connection management for the Bookstore API.
"""

from typing import Optional

import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure

from bookstore.schema import ensure_collection

logger = structlog.get_logger(__name__)


class MongoDBManager:
    """
    Owns the single Motor client used by the application.
    Connects and bootstraps the books collection once at startup and closes
    the client once at shutdown.
    """

    def __init__(self, connection_url: str, database_name: str, collection_name: str):
        """
        Initialize MongoDB manager.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
            collection_name: Name of the books collection
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.collection_name = collection_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.collection: Optional[AsyncIOMotorCollection] = None

    async def connect(self) -> AsyncIOMotorCollection:
        """Connect, verify the server answers, and ensure the books collection."""
        try:
            self.client = AsyncIOMotorClient(self.connection_url)
            self.database = self.client[self.database_name]

            # Test connection
            await self.client.admin.command("ping")
            logger.info("Successfully connected to MongoDB", database=self.database_name)

            self.collection = await ensure_collection(self.database, self.collection_name)
            return self.collection

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client is None:
            return
        try:
            self.client.close()
            logger.info("MongoDB connection closed")
        except Exception as e:
            logger.error("Error closing MongoDB connection", error=str(e))
        finally:
            self.client = None
            self.database = None
            self.collection = None
