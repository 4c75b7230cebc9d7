from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.staticfiles import StaticFiles
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
import logging

from .config import get_settings
from .db import connect, ensure_indexes
from .errors import register_error_handlers
from .routers import bookings, messages, albums, images, custom_links, profiles
from .security import build_token_verifier
from .storage import MediaStorage

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

settings = get_settings()

limiter = Limiter(key_func=get_remote_address)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Store, token verifier and storage are built once here and reached
    # through dependencies; nothing else holds process-wide clients.
    client = connect(settings)
    app.state.db = client[settings.db_name] if client is not None else None
    if app.state.db is not None:
        await ensure_indexes(app.state.db)
    else:
        logger.warning("MONGODB_URI not set: data endpoints will answer 500")

    app.state.token_verifier = build_token_verifier(settings)
    if app.state.token_verifier is None:
        logger.warning("No identity provider configured: authenticated endpoints will answer 500")

    app.state.storage = MediaStorage(settings.media_dir, settings.media_url)
    try:
        yield
    finally:
        if app.state.token_verifier is not None:
            await app.state.token_verifier.aclose()
        if client is not None:
            client.close()


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_error_handlers(app)
app.mount(settings.media_url, StaticFiles(directory=settings.media_dir), name="media")

# CORS by environment
if settings.env == "dev":
    cors_origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    cors_regex = r"https?://(localhost|127\.0\.0\.1)(:\d+)?"
    cors_headers = ["Authorization", "Content-Type", "Accept", "Origin", "X-Requested-With"]
else:
    frontend_url = settings.frontend_base_url
    cors_origins = [frontend_url] if frontend_url else []
    cors_regex = None
    cors_headers = ["Authorization", "Content-Type", "Accept"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_origin_regex=cors_regex,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=cors_headers,
    expose_headers=["Content-Type"],
)

@app.get("/health")
async def health():
    return {
        "status": "ok",
        "env": settings.env,
        "database": getattr(app.state, "db", None) is not None,
        "auth": getattr(app.state, "token_verifier", None) is not None,
    }

# Routers
api = settings.api_prefix.rstrip("/")
app.include_router(bookings.router, prefix=f"{api}/bookings", tags=["bookings"])
app.include_router(messages.router, prefix=f"{api}/bookings", tags=["booking-messages"])
app.include_router(albums.router, prefix=f"{api}/albums", tags=["albums"])
app.include_router(images.router, prefix=f"{api}/images", tags=["images"])
app.include_router(custom_links.router, prefix=f"{api}/custom-links", tags=["custom-links"])
app.include_router(profiles.me_router, prefix=f"{api}/me", tags=["profile"])
app.include_router(profiles.router, prefix=f"{api}/profiles", tags=["profile"])
