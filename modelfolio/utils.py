# modelfolio/utils.py
from typing import Any, Dict, Optional
import re
from bson import ObjectId
from datetime import datetime
from fastapi import HTTPException

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

def to_id(doc: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Converts _id -> id (str) and every ObjectId to a string.
    Datetimes become ISO strings. Returns {} for None.
    """
    if doc is None:
        return {}
    d = dict(doc)

    if "_id" in d:
        d["id"] = str(d.pop("_id"))

    for key, value in d.items():
        if isinstance(value, ObjectId):
            d[key] = str(value)
        elif isinstance(value, datetime):
            d[key] = value.isoformat()
        elif isinstance(value, dict):
            d[key] = to_id(value)
        elif isinstance(value, list):
            d[key] = [
                str(item) if isinstance(item, ObjectId)
                else item.isoformat() if isinstance(item, datetime)
                else to_id(item) if isinstance(item, dict)
                else item
                for item in value
            ]

    return d

def to_object_id(value: str, detail: str = "Not found") -> ObjectId:
    """
    Parses a path id. Malformed ids cannot name an existing record,
    so they are reported as 404 rather than 400.
    """
    if not ObjectId.is_valid(value):
        raise HTTPException(status_code=404, detail=detail)
    return ObjectId(value)

# ==================== Text helpers ====================

def normalize_email(value: Optional[str]) -> str:
    return (value or "").strip().lower()

def is_valid_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value))

def blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value if value.strip() else None
