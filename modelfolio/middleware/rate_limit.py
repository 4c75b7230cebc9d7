"""
Per-endpoint rate limiting on top of slowapi's limiter.
"""
from fastapi import Request, HTTPException
from limits import parse
from slowapi.util import get_remote_address

def apply_rate_limit(request: Request, limit: str, scope: str):
    """
    Counts one hit for the caller's address against `limit` (e.g. "20/minute").
    Hits are shared by every path that passes the same `scope`.
    Does nothing when app.state.limiter is None (tests).
    """
    limiter = getattr(request.app.state, "limiter", None)
    if limiter is None:
        return

    key = get_remote_address(request)
    if not limiter.limiter.hit(parse(limit), scope, key):
        raise HTTPException(
            status_code=429,
            detail=f"Too many requests. Limit: {limit}. Try again later.",
        )
