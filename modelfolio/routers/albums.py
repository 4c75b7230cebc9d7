# modelfolio/routers/albums.py
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File
from typing import List, Optional
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError
from datetime import datetime

from ..config import get_settings
from ..db import get_db
from ..schemas.album import AlbumCreate, AlbumOut, AlbumUpdate, CoverPatch, ImageOut
from ..schemas.common import Envelope, ok
from ..security import Identity, get_current_user
from ..storage import MediaStorage, get_storage, read_image_upload
from ..utils import to_id, to_object_id
import logging

logger = logging.getLogger(__name__)

router = APIRouter()
settings = get_settings()

ALBUM_NOT_FOUND = "Album not found"
IMAGE_NOT_IN_ALBUM = "Image not found or does not belong to this album"
OLDEST_FIRST = [("created_at", 1), ("_id", 1)]

# ---------- cover maintenance ----------
# An album without a cover adopts its first uploaded image; when the cover
# image goes away the oldest remaining image takes its place.

async def claim_cover_if_empty(db: AsyncIOMotorDatabase, album_oid, image_id: str) -> bool:
    res = await db.albums.update_one(
        {"_id": album_oid, "cover_image_id": None},
        {"$set": {"cover_image_id": image_id}},
    )
    return res.modified_count == 1

async def reassign_cover(db: AsyncIOMotorDatabase, album_id: str, removed_image_id: str) -> bool:
    """Returns True when the removed image was the cover and a replacement was written."""
    album_oid = to_object_id(album_id, ALBUM_NOT_FOUND)
    nxt = await db.images.find_one({"album_id": album_id}, sort=OLDEST_FIRST)
    res = await db.albums.update_one(
        {"_id": album_oid, "cover_image_id": removed_image_id},
        {"$set": {"cover_image_id": str(nxt["_id"]) if nxt else None}},
    )
    return res.matched_count == 1

# ---------- helpers ----------

async def _get_album(db: AsyncIOMotorDatabase, album_id: str) -> dict:
    album = await db.albums.find_one({"_id": to_object_id(album_id, ALBUM_NOT_FOUND)})
    if not album:
        raise HTTPException(404, ALBUM_NOT_FOUND)
    return album

async def _album_out(db: AsyncIOMotorDatabase, album: dict) -> dict:
    d = to_id(album)
    d["cover_image_url"] = None
    cover_id = album.get("cover_image_id")
    if cover_id:
        cover = await db.images.find_one({"_id": to_object_id(cover_id)}, {"url": 1})
        d["cover_image_url"] = cover.get("url") if cover else None
    return d

# ---------- Endpoints ----------

@router.get("", response_model=Envelope[List[AlbumOut]])
async def list_albums(db: AsyncIOMotorDatabase = Depends(get_db)):
    albums = await db.albums.find().sort([("created_at", -1), ("_id", -1)]).to_list(None)

    cover_oids = [to_object_id(a["cover_image_id"]) for a in albums if a.get("cover_image_id")]
    urls = {}
    if cover_oids:
        covers = await db.images.find({"_id": {"$in": cover_oids}}, {"url": 1}).to_list(None)
        urls = {str(c["_id"]): c.get("url") for c in covers}

    items = []
    for a in albums:
        d = to_id(a)
        d["cover_image_url"] = urls.get(a.get("cover_image_id"))
        items.append(d)
    return ok(items)

@router.post("", response_model=Envelope[AlbumOut], status_code=status.HTTP_201_CREATED)
async def create_album(
    payload: AlbumCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    current: Identity = Depends(get_current_user),
):
    doc = {
        "title": payload.title,
        "description": payload.description,
        "cover_image_id": None,
        "created_at": datetime.utcnow(),
    }
    res = await db.albums.insert_one(doc)
    logger.info("Album %s created by %s", res.inserted_id, current.id)
    created = await db.albums.find_one({"_id": res.inserted_id})
    return ok(await _album_out(db, created))

@router.get("/{album_id}", response_model=Envelope[AlbumOut])
async def get_album(album_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    album = await _get_album(db, album_id)
    return ok(await _album_out(db, album))

@router.put("/{album_id}", response_model=Envelope[AlbumOut])
async def update_album(
    album_id: str,
    payload: AlbumUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    current: Identity = Depends(get_current_user),
):
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(400, "No fields to update")

    album = await _get_album(db, album_id)
    cover_id = changes.get("cover_image_id")
    if cover_id is not None:
        image = await db.images.find_one({
            "_id": to_object_id(cover_id, IMAGE_NOT_IN_ALBUM),
            "album_id": str(album["_id"]),
        })
        if not image:
            raise HTTPException(404, IMAGE_NOT_IN_ALBUM)

    await db.albums.update_one({"_id": album["_id"]}, {"$set": changes})
    updated = await _get_album(db, album_id)
    return ok(await _album_out(db, updated))

@router.delete("/{album_id}", response_model=Envelope[None])
async def delete_album(
    album_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    storage: MediaStorage = Depends(get_storage),
    current: Identity = Depends(get_current_user),
):
    album = await _get_album(db, album_id)
    images = await db.images.find({"album_id": str(album["_id"])}, {"url": 1}).to_list(None)

    await db.albums.delete_one({"_id": album["_id"]})
    await db.images.delete_many({"album_id": str(album["_id"])})
    for img in images:
        await storage.delete(img.get("url"))

    logger.info("Album %s deleted with %d images by %s", album_id, len(images), current.id)
    return ok(message="Album and all its images deleted successfully")

@router.get("/{album_id}/images", response_model=Envelope[List[ImageOut]])
async def list_album_images(album_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    album = await _get_album(db, album_id)
    docs = await db.images.find({"album_id": str(album["_id"])}).sort(OLDEST_FIRST).to_list(None)
    return ok([to_id(d) for d in docs])

@router.post("/{album_id}/images", response_model=Envelope[ImageOut], status_code=status.HTTP_201_CREATED)
async def upload_album_image(
    album_id: str,
    image: Optional[UploadFile] = File(None),
    db: AsyncIOMotorDatabase = Depends(get_db),
    storage: MediaStorage = Depends(get_storage),
    current: Identity = Depends(get_current_user),
):
    data = await read_image_upload(image, settings.max_upload_bytes)

    album = await _get_album(db, album_id)
    url = await storage.save(data, image.filename)
    try:
        res = await db.images.insert_one({
            "album_id": str(album["_id"]),
            "url": url,
            "created_at": datetime.utcnow(),
        })
    except PyMongoError:
        await storage.delete(url)
        raise

    image_id = str(res.inserted_id)
    is_cover = await claim_cover_if_empty(db, album["_id"], image_id)
    logger.info("Image %s added to album %s (cover=%s)", image_id, album_id, is_cover)

    out = to_id(await db.images.find_one({"_id": res.inserted_id}))
    out["is_cover"] = is_cover
    return ok(out)

@router.put("/{album_id}/cover", response_model=Envelope[AlbumOut])
async def set_cover_image(
    album_id: str,
    payload: CoverPatch,
    db: AsyncIOMotorDatabase = Depends(get_db),
    current: Identity = Depends(get_current_user),
):
    album = await _get_album(db, album_id)
    image = await db.images.find_one({
        "_id": to_object_id(payload.image_id, IMAGE_NOT_IN_ALBUM),
        "album_id": str(album["_id"]),
    })
    if not image:
        raise HTTPException(404, IMAGE_NOT_IN_ALBUM)

    await db.albums.update_one({"_id": album["_id"]}, {"$set": {"cover_image_id": str(image["_id"])}})
    updated = await _get_album(db, album_id)
    return ok(await _album_out(db, updated), message="Cover image updated successfully")
