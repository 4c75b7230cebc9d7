from pydantic import BaseModel
import os
from pathlib import Path
from dotenv import load_dotenv
load_dotenv()  # loads .env from the project root

class Settings(BaseModel):
    app_name: str = os.getenv("APP_NAME", "Modelfolio")
    env: str = os.getenv("APP_ENV", "dev")
    api_prefix: str = os.getenv("API_PREFIX", "/api")

    # store; no default so a missing URI surfaces as "not configured"
    mongodb_uri: str | None = os.getenv("MONGODB_URI") or None
    db_name: str = os.getenv("DB_NAME", "modelfolio")

    # identity provider
    jwt_secret: str | None = os.getenv("SUPABASE_JWT_SECRET") or os.getenv("JWT_SECRET") or None
    jwt_audience: str = os.getenv("JWT_AUDIENCE", "authenticated")
    supabase_url: str | None = os.getenv("SUPABASE_URL") or None
    supabase_anon_key: str | None = os.getenv("SUPABASE_ANON_KEY") or None

    media_dir: str = os.getenv("MEDIA_DIR", str(Path(__file__).resolve().parents[1] / "media"))
    media_url: str = os.getenv("MEDIA_URL", "/media")
    max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

    frontend_base_url: str = os.getenv("FRONTEND_BASE_URL", "http://localhost:3000")
    guest_rate_limit: str = os.getenv("GUEST_RATE_LIMIT", "20/minute")


_settings: Settings | None = None
def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
        Path(_settings.media_dir, "albums").mkdir(parents=True, exist_ok=True)
    return _settings
