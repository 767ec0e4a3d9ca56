"""
Sequential id allocation for new books.
"""

import structlog
from motor.motor_asyncio import AsyncIOMotorCollection

logger = structlog.get_logger(__name__)


class IdAllocator:
    """
    Computes the next integer id as the highest stored ``_id`` plus one.

    Nothing is cached: every call reads the collection, so ids stay correct
    when other writers touch the collection. Two concurrent creates can still
    read the same maximum; the second insert then fails on the duplicate key.
    """

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def next_id(self) -> int:
        """Return the id for the next inserted book (0 for an empty collection)."""
        pipeline = [
            {"$sort": {"_id": -1}},
            {"$limit": 1},
        ]
        result = await self.collection.aggregate(pipeline).to_list(length=1)
        if not result:
            return 0

        next_id = int(result[0]["_id"]) + 1
        logger.debug("Allocated book id", book_id=next_id)
        return next_id
