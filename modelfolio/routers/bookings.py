# modelfolio/routers/bookings.py
from fastapi import APIRouter, Depends, HTTPException, status, Request
from typing import List
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime

from ..config import get_settings
from ..db import get_db
from ..guards import BOOKING_NOT_FOUND, get_owned_booking
from ..schemas.booking import (
    BookingCreate, BookingOut, BookingUpdate, ClientBookingOut, GuestBookingCreate,
)
from ..schemas.common import Envelope, ok
from ..security import Identity, get_current_user
from ..utils import to_id, to_object_id, normalize_email
from ..middleware.rate_limit import apply_rate_limit
import logging

logger = logging.getLogger(__name__)

router = APIRouter()
settings = get_settings()

GUEST_SCOPE = "guest-booking"
NEWEST_FIRST = [("created_at", -1), ("_id", -1)]

def _to_out(doc: dict) -> dict:
    d = to_id(doc)
    d.pop("email_key", None)
    return d

def _new_booking(owner_id: str, payload: BookingCreate, email: str) -> dict:
    now = datetime.utcnow()
    return {
        "user_id": owner_id,
        "name": payload.name,
        "email": email,
        "email_key": normalize_email(email),
        "job_type": payload.job_type,
        "dates": payload.dates,
        "location": payload.location,
        "pay_rate": payload.pay_rate,
        "details": payload.details,
        "status": payload.status,
        "created_at": now,
        "updated_at": now,
    }

async def _resolve_owner(db: AsyncIOMotorDatabase, payload: GuestBookingCreate) -> str:
    if payload.model_id and payload.model_id.strip():
        return payload.model_id.strip()
    username = (payload.username or "").strip().lower()
    if username:
        profile = await db.profiles.find_one({"username": username}, {"_id": 1})
        if not profile:
            raise HTTPException(404, "Model not found")
        return str(profile["_id"])
    raise HTTPException(400, "model_id or username is required")

# ---------- Endpoints ----------

@router.get("", response_model=Envelope[List[BookingOut]])
async def list_my_bookings(
    db: AsyncIOMotorDatabase = Depends(get_db),
    current: Identity = Depends(get_current_user),
):
    """Bookings received by the authenticated model."""
    docs = await db.bookings.find({"user_id": current.id}).sort(NEWEST_FIRST).to_list(None)
    return ok([_to_out(d) for d in docs])

@router.get("/as-client", response_model=Envelope[List[ClientBookingOut]])
async def list_bookings_as_client(
    db: AsyncIOMotorDatabase = Depends(get_db),
    current: Identity = Depends(get_current_user),
):
    """Bookings the authenticated user made as a client, matched by email."""
    email_key = normalize_email(current.email)
    if not email_key:
        return ok([])

    docs = await db.bookings.find({"email_key": email_key}).sort(NEWEST_FIRST).to_list(None)
    if not docs:
        return ok([])

    model_ids = list({d["user_id"] for d in docs})
    rows = await db.profiles.find(
        {"_id": {"$in": model_ids}}, {"display_name": 1, "username": 1}
    ).to_list(None)
    profiles = {str(p["_id"]): p for p in rows}

    items = []
    for d in docs:
        profile = profiles.get(d["user_id"], {})
        out = _to_out(d)
        out["model_display_name"] = profile.get("display_name")
        out["model_username"] = profile.get("username")
        items.append(out)
    return ok(items)

@router.post("", response_model=Envelope[BookingOut], status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    current: Identity = Depends(get_current_user),
):
    doc = _new_booking(current.id, payload, payload.email)
    res = await db.bookings.insert_one(doc)
    created = await db.bookings.find_one({"_id": res.inserted_id})
    logger.info("Booking %s created by owner %s", res.inserted_id, current.id)
    return ok(_to_out(created))

@router.post("/guest", response_model=Envelope[BookingOut], status_code=status.HTTP_201_CREATED)
async def create_guest_booking(
    request: Request,
    payload: GuestBookingCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    """Public "book me" form: no token, the owner comes from model_id or username."""
    apply_rate_limit(request, settings.guest_rate_limit, GUEST_SCOPE)
    owner_id = await _resolve_owner(db, payload)

    doc = _new_booking(owner_id, payload, payload.email.lower())
    res = await db.bookings.insert_one(doc)
    created = await db.bookings.find_one({"_id": res.inserted_id})
    logger.info("Guest booking %s created for model %s", res.inserted_id, owner_id)
    return ok(_to_out(created))

@router.get("/{booking_id}", response_model=Envelope[BookingOut])
async def get_booking(
    booking_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    current: Identity = Depends(get_current_user),
):
    booking = await get_owned_booking(db, booking_id, current.id)
    return ok(_to_out(booking))

@router.put("/{booking_id}", response_model=Envelope[BookingOut])
async def update_booking(
    booking_id: str,
    payload: BookingUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    current: Identity = Depends(get_current_user),
):
    oid = to_object_id(booking_id, BOOKING_NOT_FOUND)
    owned = {"_id": oid, "user_id": current.id}

    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        return ok(_to_out(await get_owned_booking(db, booking_id, current.id)))

    if "email" in changes:
        changes["email_key"] = normalize_email(changes["email"])
    changes["updated_at"] = datetime.utcnow()

    res = await db.bookings.update_one(owned, {"$set": changes})
    if res.matched_count == 0:
        raise HTTPException(404, BOOKING_NOT_FOUND)
    updated = await db.bookings.find_one(owned)
    if not updated:
        # deleted between the update and the read
        raise HTTPException(404, BOOKING_NOT_FOUND)
    return ok(_to_out(updated))

@router.delete("/{booking_id}", response_model=Envelope[None])
async def delete_booking(
    booking_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    current: Identity = Depends(get_current_user),
):
    oid = to_object_id(booking_id, BOOKING_NOT_FOUND)
    res = await db.bookings.delete_one({"_id": oid, "user_id": current.id})
    if res.deleted_count == 0:
        raise HTTPException(404, BOOKING_NOT_FOUND)
    removed = await db.booking_messages.delete_many({"booking_id": str(oid)})
    logger.info("Booking %s deleted with %d messages", oid, removed.deleted_count)
    return ok(message="Booking deleted successfully")
