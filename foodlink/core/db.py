# foodlink/core/db.py
from functools import lru_cache

from motor.motor_asyncio import AsyncIOMotorClient

from foodlink.core.config import settings

@lru_cache
def get_client() -> AsyncIOMotorClient:
    # tz_aware so stored windows compare cleanly with aware datetimes
    return AsyncIOMotorClient(settings.mongo_uri, tz_aware=True, uuidRepresentation="standard")

def get_db():
    return get_client()[settings.mongo_db]
