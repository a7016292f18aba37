import logging
from pathlib import Path

from dotenv import load_dotenv
from motor.motor_asyncio import AsyncIOMotorClient

from app.core.config import get_settings

# your .env is in the project root (same level as "app/")
load_dotenv(Path(__file__).resolve().parents[2] / ".env")

logger = logging.getLogger(__name__)


class Mongo:
    """Holds the live client/database; swapped wholesale in tests."""

    def __init__(self):
        self.client = None
        self.db = None

    def connect(self, uri: str | None = None, name: str | None = None):
        settings = get_settings()
        self.client = AsyncIOMotorClient(uri or settings.mongo_uri)
        self.db = self.client[name or settings.mongo_db]
        logger.info("Connected to MongoDB database %s", self.db.name)
        return self.db

    def use_database(self, db) -> None:
        self.client = None
        self.db = db

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
        self.client = None
        self.db = None


mongo = Mongo()


def get_db():
    """
    FastAPI dependency that returns Mongo database instance
    """
    if mongo.db is None:
        mongo.connect()
    return mongo.db


async def ensure_indexes(db) -> None:
    await db["chats"].create_index([("complaintId", 1), ("chatType", 1)], unique=True)
    await db["complaints"].create_index([("assignedCity", 1), ("assignedState", 1), ("status", 1)])
    await db["complaints"].create_index("userId")
    await db["admins"].create_index("adminId", unique=True)
    await db["departments"].create_index("departmentId", unique=True)
    await db["user_redemptions"].create_index("redemptionCode", unique=True)
    await db["notifications"].create_index([("userId", 1), ("createdAt", -1)])
