"""
Document store access

DocumentStore wraps a motor database behind the handful of document
operations the platform relies on. InMemoryDocumentStore honours the same
contract for local runs (STORE_BACKEND=memory) and for the test suite.
"""

import copy
import functools
import logging
import re
import secrets
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from elearn.core.config import settings
from elearn.core.errors import StoreUnavailable

logger = logging.getLogger(__name__)

# ==================== COLLECTIONS ====================

USERS = "users"
COURSES = "courses"
LESSONS = "lessons"
ENROLLMENTS = "enrollments"
FORUM_POSTS = "forum_posts"
POST_REPLIES = "post_replies"

Order = Sequence[Tuple[str, int]]


def generate_id(prefix: str) -> str:
    """Generate unique ID with prefix"""
    return f"{prefix}_{secrets.token_hex(8).upper()}"


def utcnow() -> datetime:
    return datetime.utcnow()


def _to_document(raw: Optional[dict]) -> Optional[dict]:
    if raw is None:
        return None
    doc = dict(raw)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    return doc


def _strip_id(fields: dict) -> dict:
    return {k: v for k, v in fields.items() if k not in ("id", "_id")}


def _store_call(func):
    """Surface driver failures as StoreUnavailable"""

    @functools.wraps(func)
    async def wrapper(self, collection, *args, **kwargs):
        try:
            return await func(self, collection, *args, **kwargs)
        except PyMongoError as e:
            logger.error(f"Store call {func.__name__} on {collection} failed: {e}")
            raise StoreUnavailable(f"Document store unavailable: {e}") from e

    return wrapper


# ==================== MONGO BACKED STORE ====================

class DocumentStore:
    """Async document operations over a motor database"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    @_store_call
    async def get(self, collection: str, doc_id: str) -> Optional[dict]:
        return _to_document(await self.db[collection].find_one({"_id": doc_id}))

    @_store_call
    async def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[Order] = None,
        limit: Optional[int] = None,
    ) -> List[dict]:
        cursor = self.db[collection].find(filters or {})
        if order:
            cursor = cursor.sort(list(order))
        if limit:
            cursor = cursor.limit(limit)
        docs = await cursor.to_list(length=limit)
        return [_to_document(doc) for doc in docs]

    @_store_call
    async def set(self, collection: str, doc_id: str, fields: dict) -> None:
        """Upsert: the document becomes exactly `fields`"""
        await self.db[collection].replace_one(
            {"_id": doc_id}, {"_id": doc_id, **_strip_id(fields)}, upsert=True
        )

    @_store_call
    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict,
        where: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Merge `fields` into an existing document.

        `where` adds conditions the stored document must satisfy; returns
        False when the document is missing or the conditions do not hold.
        """
        result = await self.db[collection].update_one(
            {"_id": doc_id, **(where or {})}, {"$set": _strip_id(fields)}
        )
        return result.matched_count > 0

    @_store_call
    async def increment(self, collection: str, doc_id: str, field: str, amount: int = 1) -> bool:
        result = await self.db[collection].update_one({"_id": doc_id}, {"$inc": {field: amount}})
        return result.matched_count > 0

    @_store_call
    async def add_to_set(self, collection: str, doc_id: str, field: str, value: Any) -> bool:
        """Returns True only when `value` was not already present"""
        result = await self.db[collection].update_one({"_id": doc_id}, {"$addToSet": {field: value}})
        return result.modified_count > 0

    @_store_call
    async def pull(self, collection: str, doc_id: str, field: str, value: Any) -> bool:
        """Returns True only when `value` was present and removed"""
        result = await self.db[collection].update_one({"_id": doc_id}, {"$pull": {field: value}})
        return result.modified_count > 0

    @_store_call
    async def delete(self, collection: str, doc_id: str) -> bool:
        result = await self.db[collection].delete_one({"_id": doc_id})
        return result.deleted_count > 0

    @_store_call
    async def delete_many(self, collection: str, filters: Dict[str, Any]) -> int:
        result = await self.db[collection].delete_many(filters)
        return result.deleted_count

    async def ping(self) -> bool:
        try:
            await self.db.command("ping")
            return True
        except PyMongoError:
            return False

    async def create_indexes(self):
        """Create MongoDB indexes for the pushed-down dashboard queries"""
        try:
            await self.db[USERS].create_index("role")
            await self.db[USERS].create_index([("created_at", DESCENDING)])
            await self.db[COURSES].create_index("created_by")
            await self.db[COURSES].create_index([("created_at", DESCENDING)])
            await self.db[LESSONS].create_index([("course_id", ASCENDING), ("order", ASCENDING)], unique=True)
            await self.db[ENROLLMENTS].create_index([("user_id", ASCENDING), ("course_id", ASCENDING)], unique=True)
            await self.db[ENROLLMENTS].create_index("course_id")
            await self.db[FORUM_POSTS].create_index([("course_id", ASCENDING), ("created_at", DESCENDING)])
            await self.db[FORUM_POSTS].create_index([("lesson_id", ASCENDING), ("created_at", DESCENDING)])
            await self.db[FORUM_POSTS].create_index([("reply_count", DESCENDING)])
            await self.db[POST_REPLIES].create_index([("post_id", ASCENDING), ("created_at", ASCENDING)])
            await self.db[POST_REPLIES].create_index("author_id")
        except PyMongoError as e:
            raise StoreUnavailable(f"Index creation failed: {e}") from e
        logger.info("Document store indexes created")


# ==================== IN-MEMORY STORE ====================

def _matches_operators(actual: Any, spec: Dict[str, Any]) -> bool:
    if "$in" in spec and actual not in spec["$in"]:
        return False
    if "$nin" in spec and actual in spec["$nin"]:
        return False
    if "$regex" in spec:
        flags = re.IGNORECASE if "i" in spec.get("$options", "") else 0
        if not isinstance(actual, str) or re.search(spec["$regex"], actual, flags) is None:
            return False
    return True


def _matches(doc: dict, filters: Dict[str, Any]) -> bool:
    """Subset of the MongoDB query language: equality, $in, $nin, $regex, $or"""
    for field, expected in filters.items():
        if field == "$or":
            if not any(_matches(doc, clause) for clause in expected):
                return False
            continue
        actual = doc.get(field)
        if isinstance(expected, dict) and any(key.startswith("$") for key in expected):
            if not _matches_operators(actual, expected):
                return False
        elif actual != expected:
            return False
    return True


def _sort_key(field: str):
    # None sorts before any value, as in MongoDB
    return lambda doc: (doc.get(field) is not None, doc.get(field))


class InMemoryDocumentStore:
    """Process local store with the DocumentStore contract"""

    def __init__(self):
        self._collections: Dict[str, Dict[str, dict]] = {}

    def _collection(self, name: str) -> Dict[str, dict]:
        return self._collections.setdefault(name, {})

    def _out(self, doc_id: str, doc: dict) -> dict:
        return {"id": doc_id, **copy.deepcopy(doc)}

    async def get(self, collection: str, doc_id: str) -> Optional[dict]:
        doc = self._collection(collection).get(doc_id)
        return None if doc is None else self._out(doc_id, doc)

    async def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[Order] = None,
        limit: Optional[int] = None,
    ) -> List[dict]:
        docs = [
            self._out(doc_id, doc)
            for doc_id, doc in self._collection(collection).items()
            if _matches({"_id": doc_id, **doc}, filters or {})
        ]
        for field, direction in reversed(list(order or [])):
            docs.sort(key=_sort_key(field), reverse=direction == DESCENDING)
        return docs[:limit] if limit else docs

    async def set(self, collection: str, doc_id: str, fields: dict) -> None:
        self._collection(collection)[doc_id] = copy.deepcopy(_strip_id(fields))

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: dict,
        where: Optional[Dict[str, Any]] = None,
    ) -> bool:
        doc = self._collection(collection).get(doc_id)
        if doc is None or not _matches(doc, where or {}):
            return False
        doc.update(copy.deepcopy(_strip_id(fields)))
        return True

    async def increment(self, collection: str, doc_id: str, field: str, amount: int = 1) -> bool:
        doc = self._collection(collection).get(doc_id)
        if doc is None:
            return False
        doc[field] = (doc.get(field) or 0) + amount
        return True

    async def add_to_set(self, collection: str, doc_id: str, field: str, value: Any) -> bool:
        doc = self._collection(collection).get(doc_id)
        if doc is None:
            return False
        values = doc.setdefault(field, [])
        if value in values:
            return False
        values.append(value)
        return True

    async def pull(self, collection: str, doc_id: str, field: str, value: Any) -> bool:
        doc = self._collection(collection).get(doc_id)
        if doc is None or value not in doc.get(field, []):
            return False
        doc[field] = [v for v in doc[field] if v != value]
        return True

    async def delete(self, collection: str, doc_id: str) -> bool:
        return self._collection(collection).pop(doc_id, None) is not None

    async def delete_many(self, collection: str, filters: Dict[str, Any]) -> int:
        docs = self._collection(collection)
        doomed = [doc_id for doc_id, doc in docs.items() if _matches({"_id": doc_id, **doc}, filters)]
        for doc_id in doomed:
            del docs[doc_id]
        return len(doomed)

    async def ping(self) -> bool:
        return True

    async def create_indexes(self):
        return None


# ==================== CONNECTION LIFECYCLE ====================

class DatabaseManager:
    """Manages the store connection lifecycle"""

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.store = None

    def connect(self):
        """Initialize the configured store backend"""
        if settings.STORE_BACKEND == "memory":
            self.store = InMemoryDocumentStore()
            logger.warning("Using in-memory document store; data is not persisted")
            return

        self.client = AsyncIOMotorClient(settings.MONGO_URL)
        self.store = DocumentStore(self.client[settings.DATABASE_NAME])
        logger.info(f"MongoDB connected ({settings.DATABASE_NAME})")

    def disconnect(self):
        """Close MongoDB connection"""
        if self.client:
            self.client.close()
            logger.info("MongoDB disconnected")
        self.client = None
        self.store = None

    def get_store(self):
        if self.store is None:
            raise RuntimeError("Database not initialized. Call connect() first.")
        return self.store


# Global database manager
db_manager = DatabaseManager()


def get_store():
    """FastAPI dependency for store access"""
    return db_manager.get_store()
