# modelfolio/routers/custom_links.py
from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime

from ..db import get_db
from ..schemas.common import Envelope, ok
from ..schemas.link import CustomLinkCreate, CustomLinkOut, CustomLinkUpdate
from ..security import Identity, get_current_user
from ..utils import to_id, to_object_id
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

LINK_NOT_FOUND = "Custom link not found"

@router.get("", response_model=Envelope[List[CustomLinkOut]])
async def list_links(
    db: AsyncIOMotorDatabase = Depends(get_db),
    current: Identity = Depends(get_current_user),
):
    docs = await db.custom_links.find({"user_id": current.id}).sort(
        [("display_order", 1), ("created_at", 1)]
    ).to_list(None)
    return ok([to_id(d) for d in docs])

@router.post("", response_model=Envelope[CustomLinkOut], status_code=status.HTTP_201_CREATED)
async def create_link(
    payload: CustomLinkCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    current: Identity = Depends(get_current_user),
):
    last = await db.custom_links.find_one({"user_id": current.id}, sort=[("display_order", -1)])
    next_order = (last.get("display_order") or 0) + 1 if last else 0

    now = datetime.utcnow()
    doc = payload.model_dump()
    doc.update({
        "user_id": current.id,
        "display_order": next_order,
        "created_at": now,
        "updated_at": now,
    })
    res = await db.custom_links.insert_one(doc)
    created = await db.custom_links.find_one({"_id": res.inserted_id})
    return ok(to_id(created))

@router.put("/{link_id}", response_model=Envelope[CustomLinkOut])
async def update_link(
    link_id: str,
    payload: CustomLinkUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    current: Identity = Depends(get_current_user),
):
    owned = {"_id": to_object_id(link_id, LINK_NOT_FOUND), "user_id": current.id}
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("enabled") is None:
        changes.pop("enabled", None)
    if changes.get("display_order") is None:
        changes.pop("display_order", None)
    changes["updated_at"] = datetime.utcnow()

    res = await db.custom_links.update_one(owned, {"$set": changes})
    if res.matched_count == 0:
        raise HTTPException(404, LINK_NOT_FOUND)
    return ok(to_id(await db.custom_links.find_one(owned)))

@router.delete("/{link_id}", response_model=Envelope[None])
async def delete_link(
    link_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    current: Identity = Depends(get_current_user),
):
    owned = {"_id": to_object_id(link_id, LINK_NOT_FOUND), "user_id": current.id}
    res = await db.custom_links.delete_one(owned)
    if res.deleted_count == 0:
        raise HTTPException(404, LINK_NOT_FOUND)
    logger.info("Custom link %s deleted by %s", link_id, current.id)
    return ok(message="Custom link deleted successfully")
