# modelfolio/routers/images.py
from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from ..db import get_db
from ..schemas.common import Envelope, ok
from ..security import Identity, get_current_user
from ..storage import MediaStorage, get_storage
from ..utils import to_object_id
from .albums import reassign_cover
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

@router.delete("/{image_id}", response_model=Envelope[None])
async def delete_image(
    image_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    storage: MediaStorage = Depends(get_storage),
    current: Identity = Depends(get_current_user),
):
    oid = to_object_id(image_id, "Image not found")
    image = await db.images.find_one({"_id": oid})
    if not image:
        raise HTTPException(404, "Image not found")

    await db.images.delete_one({"_id": oid})
    was_cover = await reassign_cover(db, image["album_id"], str(oid))
    await storage.delete(image.get("url"))

    logger.info("Image %s deleted by %s (was cover: %s)", image_id, current.id, was_cover)
    return ok(message="Image deleted successfully")
