from skinscore.db.mongo import get_database
from skinscore.core.config import settings
from skinscore.schemas.capacity import CapacityStatus, Reservation
from skinscore.services.entitlement_store import translate_store_errors
from pymongo import ReturnDocument

import logging

logger = logging.getLogger(__name__)


class CapacityCounter:
    """
    A globally capped pool of seats, backed by one counter document.

    Reservations are a single conditional increment at the store, so the
    count can never pass the limit no matter how many requests race.
    """

    def __init__(self, name: str, limit: int):
        self.name = name
        self.limit = limit
        self.collection_name = "counters"

    async def get_collection(self):
        db = await get_database()
        return db[self.collection_name]

    async def _seed(self, collection):
        await collection.update_one(
            {"_id": self.name},
            {"$setOnInsert": {"count": 0}},
            upsert=True
        )

    @translate_store_errors
    async def try_reserve(self) -> Reservation:
        collection = await self.get_collection()
        await self._seed(collection)

        doc = await collection.find_one_and_update(
            {"_id": self.name, "count": {"$lt": self.limit}},
            {"$inc": {"count": 1}},
            return_document=ReturnDocument.AFTER
        )
        if doc is None:
            logger.info(f"Capacity pool '{self.name}' is full ({self.limit}/{self.limit})")
            return Reservation(granted=False, spotsTaken=self.limit, spotsRemaining=0)

        taken = doc["count"]
        logger.info(f"Reserved seat {taken}/{self.limit} in capacity pool '{self.name}'")
        return Reservation(
            granted=True,
            spotsTaken=taken,
            spotsRemaining=max(0, self.limit - taken)
        )

    @translate_store_errors
    async def get_status(self) -> CapacityStatus:
        collection = await self.get_collection()
        doc = await collection.find_one({"_id": self.name})
        taken = min(doc["count"], self.limit) if doc else 0
        return CapacityStatus(
            available=taken < self.limit,
            spotsTaken=taken,
            spotsRemaining=max(0, self.limit - taken),
            percentageTaken=round(taken / self.limit * 100) if self.limit else 100,
            limit=self.limit
        )


early_bird_pool = CapacityCounter("early_bird", settings.EARLY_BIRD_LIMIT)
