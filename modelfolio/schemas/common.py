from pydantic import BaseModel
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

class Envelope(BaseModel, Generic[T]):
    """Shape of every JSON response: {success, data?, message?}."""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None

def ok(data=None, message: Optional[str] = None) -> dict:
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return body
