# modelfolio/routers/profiles.py
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError
from typing import Optional
from datetime import datetime
import logging

from ..config import get_settings
from ..db import get_db
from ..schemas.common import Envelope, ok
from ..schemas.profile import ProfileOut, ProfileUpdate
from ..security import Identity, get_current_user
from ..storage import MediaStorage, get_storage, read_image_upload
from ..utils import to_id

logger = logging.getLogger(__name__)

# Two routers: the caller's own settings under /me, public lookup under /profiles.
me_router = APIRouter()
router = APIRouter()
settings = get_settings()

IMAGE_FIELDS = {
    "profile_photo": "profile_photo_path",
    "profile_header": "profile_header_path",
}

def _duplicate_field(exc: DuplicateKeyError) -> str | None:
    pattern = (exc.details or {}).get("keyPattern") or {}
    return next(iter(pattern), None)

def _defaults(user_id: str) -> dict:
    return {
        "id": user_id,
        "profile_photo_path": None,
        "profile_header_path": None,
        "show_profile_photo": True,
        "show_profile_header": True,
        "show_description": True,
        "updated_at": None,
    }

@me_router.get("/profile", response_model=Envelope[ProfileOut])
async def get_my_profile(
    db: AsyncIOMotorDatabase = Depends(get_db),
    current: Identity = Depends(get_current_user),
):
    doc = await db.profiles.find_one({"_id": current.id})
    return ok(to_id(doc) if doc else _defaults(current.id))

@me_router.put("/profile", response_model=Envelope[ProfileOut])
async def update_my_profile(
    payload: ProfileUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    current: Identity = Depends(get_current_user),
):
    changes = payload.model_dump(exclude_unset=True)
    for flag in ("show_profile_photo", "show_profile_header", "show_description"):
        if changes.get(flag) is None:
            changes.pop(flag, None)
    changes["updated_at"] = datetime.utcnow()
    update = {"$set": changes}
    # the username index is sparse; a cleared username must leave the field out entirely
    if "username" in changes and changes["username"] is None:
        changes.pop("username")
        update["$unset"] = {"username": ""}

    for attempt in range(2):
        try:
            doc = await db.profiles.find_one_and_update(
                {"_id": current.id},
                update,
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
            break
        except DuplicateKeyError as exc:
            if _duplicate_field(exc) != "_id":
                raise HTTPException(409, "Username already taken")
            # a concurrent first save created the document; the retry updates it
            if attempt:
                raise
    return ok(to_id(doc))

@me_router.post("/profile/upload", response_model=Envelope[ProfileOut])
async def upload_profile_image(
    kind: Optional[str] = Form(None, alias="type"),
    image: Optional[UploadFile] = File(None),
    db: AsyncIOMotorDatabase = Depends(get_db),
    storage: MediaStorage = Depends(get_storage),
    current: Identity = Depends(get_current_user),
):
    """Stores a profile photo or header and points the matching path field at it."""
    kind = (kind or "").strip()
    if not kind:
        raise HTTPException(400, "type is required")
    field = IMAGE_FIELDS.get(kind)
    if field is None:
        raise HTTPException(400, 'type must be either "profile_photo" or "profile_header"')
    data = await read_image_upload(image, settings.max_upload_bytes)

    previous = await db.profiles.find_one({"_id": current.id}, {field: 1})
    url = await storage.save(data, image.filename, folder="profiles")
    try:
        doc = await db.profiles.find_one_and_update(
            {"_id": current.id},
            {"$set": {field: url, "updated_at": datetime.utcnow()}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
    except PyMongoError:
        await storage.delete(url)
        raise

    old_url = (previous or {}).get(field)
    if old_url and old_url != url:
        await storage.delete(old_url)
    logger.info("Profile %s %s replaced by %s", current.id, kind, url)
    return ok(to_id(doc))

@router.get("/{username}", response_model=Envelope[ProfileOut])
async def get_public_profile(username: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    doc = await db.profiles.find_one({"username": username.strip().lower()})
    if not doc:
        raise HTTPException(404, "Profile not found")
    return ok(to_id(doc))
