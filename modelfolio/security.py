from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
import logging

import httpx
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError

from .config import Settings

logger = logging.getLogger(__name__)

ALGO = "HS256"
DEFAULT_TIMEOUT = 3.0
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    id: str
    email: Optional[str] = None


class InvalidToken(Exception):
    """Raised by verifiers for every kind of rejection."""


class TokenVerifier(ABC):
    @abstractmethod
    async def verify(self, token: str) -> Identity:
        """Returns the identity behind `token` or raises InvalidToken."""

    async def aclose(self) -> None:
        return None


class JWTTokenVerifier(TokenVerifier):
    """Checks tokens locally with the identity provider's shared signing secret."""

    def __init__(self, secret: str, audience: Optional[str] = "authenticated"):
        self.secret = secret
        self.audience = audience

    async def verify(self, token: str) -> Identity:
        options = {"verify_aud": bool(self.audience)}
        try:
            payload = jwt.decode(
                token, self.secret, algorithms=[ALGO], audience=self.audience, options=options
            )
        except JWTError as exc:
            raise InvalidToken(str(exc)) from exc
        sub = payload.get("sub")
        if not sub:
            raise InvalidToken("token has no subject")
        return Identity(id=str(sub), email=payload.get("email"))


class RemoteTokenVerifier(TokenVerifier):
    """Asks the identity provider who the token belongs to (GET /auth/v1/user)."""

    def __init__(self, base_url: str, api_key: str, client: Optional[httpx.AsyncClient] = None):
        self.url = base_url.rstrip("/") + "/auth/v1/user"
        self.api_key = api_key
        self.client = client or httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)

    async def verify(self, token: str) -> Identity:
        headers = {"Authorization": f"Bearer {token}", "apikey": self.api_key}
        try:
            resp = await self.client.get(self.url, headers=headers)
        except httpx.HTTPError as exc:
            # unreachable provider is reported to the caller exactly like a bad token
            logger.warning("Identity provider call failed: %s", exc)
            raise InvalidToken("identity provider unavailable") from exc
        if resp.status_code != 200:
            raise InvalidToken(f"identity provider answered {resp.status_code}")
        try:
            user = resp.json()
        except ValueError as exc:
            raise InvalidToken("identity provider returned a non-JSON body") from exc
        if not isinstance(user, dict) or not user.get("id"):
            raise InvalidToken("identity provider returned no user")
        return Identity(id=str(user["id"]), email=user.get("email"))

    async def aclose(self) -> None:
        await self.client.aclose()


def build_token_verifier(settings: Settings) -> Optional[TokenVerifier]:
    if settings.supabase_url and settings.supabase_anon_key:
        return RemoteTokenVerifier(settings.supabase_url, settings.supabase_anon_key)
    if settings.jwt_secret:
        return JWTTokenVerifier(settings.jwt_secret, settings.jwt_audience or None)
    return None


async def get_token_verifier(request: Request) -> TokenVerifier:
    verifier = getattr(request.app.state, "token_verifier", None)
    if verifier is None:
        raise HTTPException(status_code=500, detail="Authentication not configured")
    return verifier


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> Identity:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Access token required")
    try:
        return await verifier.verify(credentials.credentials)
    except InvalidToken as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise HTTPException(status_code=401, detail="Invalid or expired token")
