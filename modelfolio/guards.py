"""
Access rules for bookings and their message thread.

Two disjoint regimes:
  * owner rule - the verified identity owns the booking (user_id);
  * claimant rule - an anonymous caller proves association with a booking
    by presenting the email the booking was made with.
"""
from abc import ABC, abstractmethod

from fastapi import HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from .utils import normalize_email, to_object_id

BOOKING_NOT_FOUND = "Booking not found"


async def get_owned_booking(db: AsyncIOMotorDatabase, booking_id: str, user_id: str) -> dict:
    """Ownership is part of the lookup, so "not yours" is reported as 404."""
    oid = to_object_id(booking_id, BOOKING_NOT_FOUND)
    booking = await db.bookings.find_one({"_id": oid, "user_id": user_id})
    if not booking:
        raise HTTPException(404, BOOKING_NOT_FOUND)
    return booking


class ClaimantVerifier(ABC):
    """Decides whether an anonymous caller may act on a booking."""

    @abstractmethod
    async def verify(self, db: AsyncIOMotorDatabase, booking_id: str, claim: str) -> dict:
        """Returns the booking, or raises HTTPException (400, 403 or 404)."""


class EmailClaimantVerifier(ClaimantVerifier):
    """
    The claim is the requester's email. Both sides are trimmed and lowercased.
    A missing booking is 404 and a mismatch is 403, so a caller can learn that
    an id exists but nothing about its contents.
    """

    async def verify(self, db: AsyncIOMotorDatabase, booking_id: str, claim: str) -> dict:
        email = normalize_email(claim)
        if not email:
            raise HTTPException(400, "Email is required")
        oid = to_object_id(booking_id, BOOKING_NOT_FOUND)
        booking = await db.bookings.find_one({"_id": oid})
        if not booking:
            raise HTTPException(404, BOOKING_NOT_FOUND)
        if normalize_email(booking.get("email")) != email:
            raise HTTPException(403, "Email does not match this booking")
        return booking


_email_claimant = EmailClaimantVerifier()

def get_claimant_verifier() -> ClaimantVerifier:
    return _email_claimant
