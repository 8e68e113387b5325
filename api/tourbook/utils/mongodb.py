"""
MongoDB Connection for Activity Logs, Analytics & Site Configuration
"""
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from datetime import datetime, date, time, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple
import logging

from tourbook.config import Settings
from tourbook.utils.datastore import Datastore, ignore_already_exists
from tourbook.utils.seed_data import DEFAULT_SITE_CONFIG

logger = logging.getLogger(__name__)

ACTIVITY_LOGS = "activity_logs"
ANALYTICS = "analytics"
REVIEWS = "reviews"
GALLERY = "gallery"
SITE_CONFIG = "site_config"


def _serialize(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Render ObjectId as a string id so documents are JSON friendly"""
    if document is None:
        return None
    document = dict(document)
    if "_id" in document:
        document["id"] = str(document.pop("_id"))
    return document


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _date_range(start: Optional[datetime], end: Optional[datetime]) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    if start:
        query["$gte"] = start
    if end:
        query["$lte"] = end
    return {"date": query} if query else {}


class MongoStore(Datastore):
    """Document store for append-only telemetry and the site configuration"""

    name = "mongodb"

    def __init__(self, settings: Settings):
        self.settings = settings
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

    @property
    def is_connected(self) -> bool:
        return self.db is not None

    async def connect(self) -> None:
        """Initialize MongoDB connection"""
        logger.info("Initializing MongoDB connection...")
        client = AsyncIOMotorClient(
            self.settings.MONGODB_URI,
            maxPoolSize=self.settings.MONGODB_MAX_POOL_SIZE,
            serverSelectionTimeoutMS=self.settings.MONGODB_TIMEOUT_MS,
            socketTimeoutMS=45000,
            tz_aware=True,
        )
        try:
            # Test connection
            await client.admin.command('ping')
        except Exception:
            client.close()
            raise

        self.client = client
        self.db = client[self.settings.MONGODB_DATABASE]
        logger.info(f"MongoDB connection established ({self.settings.MONGODB_DATABASE})")

    async def ensure_schema(self) -> None:
        """Create MongoDB indexes; create_index is a no-op when the index exists"""
        self._require()

        activity_logs = self.db[ACTIVITY_LOGS]
        with ignore_already_exists("activity_logs indexes"):
            await activity_logs.create_index([("timestamp", DESCENDING)])
            await activity_logs.create_index([("action", ASCENDING), ("resource", ASCENDING)])

        with ignore_already_exists("analytics indexes"):
            await self.db[ANALYTICS].create_index("date", unique=True)

        with ignore_already_exists("reviews indexes"):
            await self.db[REVIEWS].create_index([("destination_id", ASCENDING), ("created_at", DESCENDING)])

        with ignore_already_exists("gallery indexes"):
            await self.db[GALLERY].create_index("destination_id")

        logger.info("MongoDB indexes created")

    async def seed_if_empty(self) -> int:
        """Create the default site configuration when none exists"""
        self._require()
        existing = await self.db[SITE_CONFIG].find_one()
        if existing:
            return 0

        await self.db[SITE_CONFIG].insert_one(dict(DEFAULT_SITE_CONFIG))
        logger.info("Default site configuration created")
        return 1

    async def ping(self) -> Dict[str, Any]:
        self._require()
        await self.client.admin.command('ping')
        return {"database": self.settings.MONGODB_DATABASE}

    async def close(self) -> None:
        """Close MongoDB connection"""
        if self.client is not None:
            logger.info("Closing MongoDB connection...")
            self.client.close()
            self.client = None
            self.db = None
            logger.info("MongoDB connection closed")

    # Activity logs

    async def log_activity(self, entry: Dict[str, Any]) -> str:
        self._require()
        entry = {"metadata": {}, **entry}
        entry.setdefault("timestamp", datetime.now(timezone.utc))
        result = await self.db[ACTIVITY_LOGS].insert_one(entry)
        return str(result.inserted_id)

    async def list_activity_logs(
        self,
        action: Optional[str] = None,
        resource: Optional[str] = None,
        limit: int = 50,
        skip: int = 0,
    ) -> Tuple[List[Dict[str, Any]], int]:
        self._require()
        query: Dict[str, Any] = {}
        if action:
            query["action"] = action
        if resource:
            query["resource"] = resource

        cursor = self.db[ACTIVITY_LOGS].find(query).sort("timestamp", DESCENDING).skip(skip).limit(limit)
        logs = await cursor.to_list(length=limit)
        total = await self.db[ACTIVITY_LOGS].count_documents(query)
        return [_serialize(log) for log in logs], total

    # Daily analytics

    async def record_daily_metrics(self, day: date, **increments: float) -> None:
        """Upsert the analytics document of `day`, incrementing the given counters"""
        self._require()
        if not increments:
            return
        await self.db[ANALYTICS].update_one(
            {"date": _day_start(day)},
            {"$inc": increments},
            upsert=True,
        )

    async def get_daily_analytics(self, day: date) -> Optional[Dict[str, Any]]:
        self._require()
        start = _day_start(day)
        document = await self.db[ANALYTICS].find_one(
            {"date": {"$gte": start, "$lt": start + timedelta(days=1)}}
        )
        return _serialize(document)

    async def list_analytics(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 30,
    ) -> Tuple[List[Dict[str, Any]], int]:
        self._require()
        query = _date_range(start, end)
        cursor = self.db[ANALYTICS].find(query).sort("date", DESCENDING).limit(limit)
        documents = await cursor.to_list(length=limit)
        total = await self.db[ANALYTICS].count_documents(query)
        return [_serialize(doc) for doc in documents], total

    # Site configuration

    async def get_site_config(self) -> Optional[Dict[str, Any]]:
        self._require()
        return _serialize(await self.db[SITE_CONFIG].find_one())

    async def update_site_config(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        self._require()
        document = await self.db[SITE_CONFIG].find_one_and_update(
            {},
            {"$set": updates},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return _serialize(document)

    # Reviews & gallery

    async def list_reviews(self, destination_id: str, limit: int = 20) -> List[Dict[str, Any]]:
        self._require()
        cursor = self.db[REVIEWS].find({"destination_id": destination_id}).sort("created_at", DESCENDING).limit(limit)
        return [_serialize(doc) for doc in await cursor.to_list(length=limit)]

    async def add_review(self, review: Dict[str, Any]) -> Dict[str, Any]:
        self._require()
        document = {
            "is_verified": False,
            "helpful_votes": 0,
            "created_at": datetime.now(timezone.utc),
            **review,
        }
        result = await self.db[REVIEWS].insert_one(document)
        document["_id"] = result.inserted_id
        return _serialize(document)

    async def list_gallery(self, destination_id: str) -> List[Dict[str, Any]]:
        self._require()
        cursor = self.db[GALLERY].find({"destination_id": destination_id}).sort(
            [("is_featured", DESCENDING), ("upload_date", DESCENDING)]
        )
        return [_serialize(doc) for doc in await cursor.to_list(length=100)]
