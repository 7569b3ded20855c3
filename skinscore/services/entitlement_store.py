from skinscore.db.mongo import get_database
from skinscore.core.exceptions import AccountNotFound, StoreUnavailable
from skinscore.schemas.profile import Profile
from skinscore.schemas.subscription import SubscriptionRecord
from pymongo.errors import DuplicateKeyError, PyMongoError
from datetime import datetime
from functools import wraps
from typing import Any, Dict, Optional

import logging

logger = logging.getLogger(__name__)


def translate_store_errors(func):
    """
    Surface driver errors as StoreUnavailable.

    DuplicateKeyError passes through unchanged for callers that handle it.
    """
    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except DuplicateKeyError:
            raise
        except PyMongoError as e:
            logger.error(f"MongoDB error in {func.__name__}: {e}")
            raise StoreUnavailable(str(e)) from e
    return wrapper


class EntitlementStore:
    """
    Durable record of each account's premium flag and subscription metadata.

    Profiles are keyed by the internal user id. Subscriptions are keyed by
    user_id and located from webhooks through stripe_customer_id. All writes
    are last-write-wins on the fields given.
    """

    def __init__(self):
        self.profiles_collection = "profiles"
        self.subscriptions_collection = "subscriptions"

    async def _profiles(self):
        db = await get_database()
        return db[self.profiles_collection]

    async def _subscriptions(self):
        db = await get_database()
        return db[self.subscriptions_collection]

    # Profiles

    @translate_store_errors
    async def get_profile(self, user_id: str) -> Optional[Profile]:
        collection = await self._profiles()
        doc = await collection.find_one({"_id": user_id})
        return Profile(**doc) if doc else None

    @translate_store_errors
    async def find_profile_by_email(self, email: str) -> Optional[Profile]:
        collection = await self._profiles()
        doc = await collection.find_one({"email": email.strip().lower()})
        return Profile(**doc) if doc else None

    async def require_profile_by_email(self, email: str) -> Profile:
        profile = await self.find_profile_by_email(email)
        if profile is None:
            raise AccountNotFound(email)
        return profile

    @translate_store_errors
    async def get_or_create_profile(self, user_id: str, email: Optional[str] = None) -> Profile:
        collection = await self._profiles()
        now = datetime.utcnow()
        on_insert = {
            "is_premium": False,
            "monthly_scans_used": 0,
            "total_scans": 0,
            "daily_questions_used": 0,
            "onboarding_completed": False,
            "created_at": now,
            "updated_at": now,
        }
        if email:
            email = email.strip().lower()
            on_insert["email"] = email
        await collection.update_one(
            {"_id": user_id},
            {"$setOnInsert": on_insert},
            upsert=True
        )
        if email:
            # A profile first created without an email (null or missing) gets it now
            await collection.update_one(
                {"_id": user_id, "email": None},
                {"$set": {"email": email, "updated_at": now}}
            )
        doc = await collection.find_one({"_id": user_id})
        return Profile(**doc)

    @translate_store_errors
    async def update_profile(self, user_id: str, fields: Dict[str, Any]) -> bool:
        collection = await self._profiles()
        result = await collection.update_one(
            {"_id": user_id},
            {"$set": {**fields, "updated_at": datetime.utcnow()}}
        )
        return result.matched_count > 0

    async def set_premium(self, user_id: str, is_premium: bool) -> bool:
        updated = await self.update_profile(user_id, {"is_premium": is_premium})
        if not updated:
            logger.warning(f"set_premium({is_premium}) matched no profile for user {user_id}")
        return updated

    @translate_store_errors
    async def increment_counter(self, user_id: str, field: str, amount: int = 1) -> None:
        collection = await self._profiles()
        await collection.update_one(
            {"_id": user_id},
            {"$inc": {field: amount}, "$set": {"updated_at": datetime.utcnow()}}
        )

    @translate_store_errors
    async def charge_usage(
        self,
        user_id: str,
        counter_field: str,
        reset_field: str,
        expected_reset_at: Optional[datetime],
        limit: int,
        new_period_start: Optional[datetime] = None,
        also_increment: Optional[str] = None
    ) -> bool:
        """
        Count one use against a quota counter in a single conditional write.

        The write only applies while the stored period start still equals
        ``expected_reset_at``. With ``new_period_start`` the counter is
        restarted at 1 for a new period; otherwise it is incremented only
        while below ``limit``. Returns False when another request got there
        first.
        """
        collection = await self._profiles()
        filter: Dict[str, Any] = {"_id": user_id, reset_field: expected_reset_at}
        inc: Dict[str, int] = {}
        set_fields: Dict[str, Any] = {"updated_at": datetime.utcnow()}

        if new_period_start is not None:
            set_fields[counter_field] = 1
            set_fields[reset_field] = new_period_start
        else:
            filter[counter_field] = {"$lt": limit}
            inc[counter_field] = 1

        if also_increment:
            inc[also_increment] = 1

        update: Dict[str, Any] = {"$set": set_fields}
        if inc:
            update["$inc"] = inc
        result = await collection.update_one(filter, update)
        return result.modified_count > 0

    @translate_store_errors
    async def refund_usage(
        self,
        user_id: str,
        counter_field: str,
        reset_field: str,
        period_start: datetime,
        also_decrement: Optional[str] = None
    ) -> bool:
        """Give back one use, as long as the counter is still in the same period."""
        collection = await self._profiles()
        inc = {counter_field: -1}
        if also_decrement:
            inc[also_decrement] = -1
        result = await collection.update_one(
            {"_id": user_id, reset_field: period_start, counter_field: {"$gt": 0}},
            {"$inc": inc, "$set": {"updated_at": datetime.utcnow()}}
        )
        return result.modified_count > 0

    # Subscriptions

    @translate_store_errors
    async def upsert_subscription(
        self,
        filter: Dict[str, Any],
        fields: Dict[str, Any],
        on_insert: Optional[Dict[str, Any]] = None
    ) -> None:
        collection = await self._subscriptions()
        update: Dict[str, Any] = {"$set": {**fields, "updated_at": datetime.utcnow()}}
        if on_insert:
            update["$setOnInsert"] = on_insert
        await collection.update_one(filter, update, upsert=True)

    @translate_store_errors
    async def find_subscription_by_customer_id(self, customer_id: str) -> Optional[SubscriptionRecord]:
        collection = await self._subscriptions()
        doc = await collection.find_one({"stripe_customer_id": customer_id})
        return SubscriptionRecord(**doc) if doc else None

    @translate_store_errors
    async def update_subscription_by_customer_id(self, customer_id: str, fields: Dict[str, Any]) -> bool:
        collection = await self._subscriptions()
        result = await collection.update_one(
            {"stripe_customer_id": customer_id},
            {"$set": {**fields, "updated_at": datetime.utcnow()}}
        )
        return result.matched_count > 0

    @translate_store_errors
    async def get_subscription_for_user(self, user_id: str) -> Optional[SubscriptionRecord]:
        collection = await self._subscriptions()
        doc = await collection.find_one({"user_id": user_id})
        return SubscriptionRecord(**doc) if doc else None


entitlement_store = EntitlementStore()
