from fastapi import HTTPException, Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from .config import Settings


def connect(settings: Settings) -> AsyncIOMotorClient | None:
    """Build the Motor client for the process, or None when no URI is configured."""
    if not settings.mongodb_uri:
        return None
    return AsyncIOMotorClient(settings.mongodb_uri)


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    await db.bookings.create_index([("user_id", 1), ("created_at", -1)])
    await db.bookings.create_index([("email_key", 1), ("created_at", -1)])
    await db.booking_messages.create_index([("booking_id", 1), ("created_at", 1)])
    await db.profiles.create_index("username", unique=True, sparse=True)
    await db.custom_links.create_index([("user_id", 1), ("display_order", 1)])
    await db.images.create_index([("album_id", 1), ("created_at", 1)])


async def get_db(request: Request) -> AsyncIOMotorDatabase:
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return db
