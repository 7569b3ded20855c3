from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING
from skinscore.core.config import settings
import logging

logger = logging.getLogger(__name__)

class MongoDB:
    client: AsyncIOMotorClient = None
    db = None

    async def connect_to_database(self):
        logger.info("Connecting to MongoDB...")
        try:
            self.client = AsyncIOMotorClient(settings.MONGO_URI)
            self.db = self.client[settings.MONGO_DB_NAME]
            logger.info("Connected to MongoDB.")
        except Exception as e:
            logger.error(f"Could not connect to MongoDB: {e}")
            raise e

    async def ensure_indexes(self):
        """Create the unique indexes the entitlement model relies on."""
        # stripe_customer_id is the join key for webhook lookups
        await self.db.subscriptions.create_index(
            [("stripe_customer_id", ASCENDING)],
            unique=True,
            partialFilterExpression={"stripe_customer_id": {"$type": "string"}}
        )
        # one subscription record per account; checkout upserts on it
        await self.db.subscriptions.create_index([("user_id", ASCENDING)], unique=True)
        await self.db.profiles.create_index([("email", ASCENDING)])
        await self.db.waitlist.create_index([("email", ASCENDING)], unique=True)
        logger.info("MongoDB indexes ensured.")

    async def close_database_connection(self):
        logger.info("Closing MongoDB connection...")
        if self.client:
            self.client.close()
            logger.info("MongoDB connection closed.")

mongodb = MongoDB()

async def get_database():
    return mongodb.db
