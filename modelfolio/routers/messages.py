# modelfolio/routers/messages.py
from fastapi import APIRouter, Depends, status, Query, Request
from typing import List, Optional
from datetime import datetime
from motor.motor_asyncio import AsyncIOMotorDatabase

from ..config import get_settings
from ..db import get_db
from ..guards import ClaimantVerifier, get_claimant_verifier, get_owned_booking
from ..middleware.rate_limit import apply_rate_limit
from ..schemas.common import Envelope, ok
from ..schemas.message import GuestMessageCreate, MessageCreate, MessageOut, SenderType
from ..security import Identity, get_current_user
from ..utils import to_id
import logging

logger = logging.getLogger(__name__)

router = APIRouter()
settings = get_settings()

GUEST_SCOPE = "guest-message"

# One thread per booking, shared by the model and the client.
async def _thread(db: AsyncIOMotorDatabase, booking: dict) -> list[dict]:
    docs = await db.booking_messages.find(
        {"booking_id": str(booking["_id"])}
    ).sort([("created_at", 1), ("_id", 1)]).to_list(None)
    return [to_id(d) for d in docs]

async def _append(db: AsyncIOMotorDatabase, booking: dict, sender_type: SenderType,
                  sender_id: Optional[str], body: str) -> dict:
    doc = {
        "booking_id": str(booking["_id"]),
        "sender_type": sender_type.value,
        "sender_id": sender_id,
        "body": body,
        "created_at": datetime.utcnow(),
    }
    res = await db.booking_messages.insert_one(doc)
    return to_id(await db.booking_messages.find_one({"_id": res.inserted_id}))

# ---------- model thread (authenticated owner) ----------

@router.get("/{booking_id}/messages", response_model=Envelope[List[MessageOut]])
async def list_messages(
    booking_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    current: Identity = Depends(get_current_user),
):
    booking = await get_owned_booking(db, booking_id, current.id)
    return ok(await _thread(db, booking))

@router.post("/{booking_id}/messages", response_model=Envelope[MessageOut],
             status_code=status.HTTP_201_CREATED)
async def send_message(
    booking_id: str,
    payload: MessageCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    current: Identity = Depends(get_current_user),
):
    booking = await get_owned_booking(db, booking_id, current.id)
    message = await _append(db, booking, SenderType.model, current.id, payload.body)
    return ok(message)

# ---------- guest thread (anonymous client, email claim) ----------

@router.get("/{booking_id}/guest-messages", response_model=Envelope[List[MessageOut]])
async def list_guest_messages(
    booking_id: str,
    email: Optional[str] = Query(None),
    db: AsyncIOMotorDatabase = Depends(get_db),
    claimant: ClaimantVerifier = Depends(get_claimant_verifier),
):
    booking = await claimant.verify(db, booking_id, email)
    return ok(await _thread(db, booking))

@router.post("/{booking_id}/guest-messages", response_model=Envelope[MessageOut],
             status_code=status.HTTP_201_CREATED)
async def send_guest_message(
    request: Request,
    booking_id: str,
    payload: GuestMessageCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    claimant: ClaimantVerifier = Depends(get_claimant_verifier),
):
    apply_rate_limit(request, settings.guest_rate_limit, GUEST_SCOPE)
    booking = await claimant.verify(db, booking_id, payload.email)
    message = await _append(db, booking, SenderType.client, None, payload.body)
    logger.info("Client message on booking %s", booking_id)
    return ok(message)
