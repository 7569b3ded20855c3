from skinscore.db.mongo import get_database
from skinscore.core.exceptions import AlreadyOnWaitlist
from skinscore.schemas.capacity import Reservation
from skinscore.services.capacity import CapacityCounter, early_bird_pool
from skinscore.services.entitlement_store import translate_store_errors
from pymongo.errors import DuplicateKeyError
from datetime import datetime

import logging

logger = logging.getLogger(__name__)


class WaitlistService:
    """Waitlist signups. Each new email also tries for an early-bird seat."""

    def __init__(self, pool: CapacityCounter = early_bird_pool):
        self.pool = pool
        self.collection_name = "waitlist"

    async def get_collection(self):
        db = await get_database()
        return db[self.collection_name]

    @translate_store_errors
    async def join(self, email: str) -> Reservation:
        collection = await self.get_collection()
        email = email.strip().lower()
        try:
            await collection.insert_one({
                "email": email,
                "early_bird": False,
                "created_at": datetime.utcnow()
            })
        except DuplicateKeyError:
            raise AlreadyOnWaitlist(email)

        # Only a fresh signup may take a seat. If that fails, the signup is
        # removed again so a retry is treated as new rather than as a duplicate.
        reservation = None
        try:
            reservation = await self.pool.try_reserve()
            if reservation.granted:
                await collection.update_one({"email": email}, {"$set": {"early_bird": True}})
        except Exception as e:
            logger.error(f"Waitlist signup for {email} failed after insert, removing it: {e}")
            if reservation is not None and reservation.granted:
                logger.warning(f"Early-bird seat {reservation.spotsTaken} was taken but not recorded for {email}")
            await collection.delete_one({"email": email})
            raise

        logger.info(f"Added {email} to waitlist (early bird: {reservation.granted})")
        return reservation


waitlist_service = WaitlistService()
