"""Document store connection for MongoDB."""

import asyncio
from typing import Optional

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from app.config import settings
from app.utils.logging import get_logger

logger = get_logger("database")

INQUIRIES = "inquiries"
PROJECTS = "projects"
BLOGS = "blogs"
NEWS = "news"
TESTIMONIALS = "testimonials"
ADMINS = "admins"


class DocumentStore:
    """Owns the MongoDB client and hands out collections.

    One instance is created per application and injected into request
    handlers through ``get_store``. Passing ``database`` skips the network
    connection entirely, which is how tests plug in an in-memory database.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        db_name: Optional[str] = None,
        *,
        database: Optional[AsyncIOMotorDatabase] = None,
        max_retries: Optional[int] = None,
        retry_delay: float = 1.0,
    ):
        self.url = url or settings.mongodb_url
        self.db_name = db_name or settings.mongodb_db
        self.max_retries = max_retries or settings.mongodb_connect_retries
        self.retry_delay = retry_delay
        self._client: Optional[AsyncIOMotorClient] = None
        self._db: Optional[AsyncIOMotorDatabase] = database

    def _build_client(self) -> AsyncIOMotorClient:
        return AsyncIOMotorClient(
            self.url,
            maxPoolSize=settings.mongodb_max_pool_size,
            minPoolSize=settings.mongodb_min_pool_size,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=30000,
            socketTimeoutMS=45000,
            retryWrites=True,
            retryReads=True,
            tz_aware=True,
        )

    async def connect(self) -> None:
        if self._db is not None:
            return

        attempt = 0
        while True:
            attempt += 1
            client = self._build_client()
            try:
                await client.admin.command("ping")
            except PyMongoError as e:
                client.close()
                logger.error(
                    "mongodb_connect_failed",
                    attempt=attempt,
                    max_retries=self.max_retries,
                    error=str(e),
                )
                if attempt >= self.max_retries:
                    raise
                await asyncio.sleep(self.retry_delay * (2 ** (attempt - 1)))
                continue

            self._client = client
            self._db = client[self.db_name]
            logger.info("mongodb_connected", db=self.db_name, attempt=attempt)
            return

    @property
    def db(self) -> AsyncIOMotorDatabase:
        if self._db is None:
            raise RuntimeError("Document store is not connected")
        return self._db

    def collection(self, name: str) -> AsyncIOMotorCollection:
        return self.db[name]

    async def ping(self) -> bool:
        try:
            await self.db.command("ping")
            return True
        except (PyMongoError, RuntimeError) as e:
            logger.warning("mongodb_ping_failed", error=str(e))
            return False

    async def ensure_indexes(self) -> None:
        await self.collection(INQUIRIES).create_index([("createdAt", DESCENDING)])
        await self.collection(INQUIRIES).create_index([("stripeSessionId", ASCENDING)])
        await self.collection(INQUIRIES).create_index([("email", ASCENDING)])
        for name in (PROJECTS, BLOGS, NEWS):
            await self.collection(name).create_index([("slug", ASCENDING)])
        await self.collection(TESTIMONIALS).create_index([("email", ASCENDING)], unique=True)
        await self.collection(TESTIMONIALS).create_index(
            [("phoneNumber", ASCENDING)],
            unique=True,
            partialFilterExpression={"phoneNumber": {"$type": "string"}},
        )
        await self.collection(ADMINS).create_index([("email", ASCENDING)], unique=True)

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            self._db = None
            logger.info("mongodb_disconnected")


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store

