import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    session_max_age_days: int
    unarchive_note_min_length: int

    admin_email: str
    admin_password: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer (got {raw!r}).") from None


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///backoffice.db"),
        session_max_age_days=_getenv_int("SESSION_MAX_AGE_DAYS", 7),
        unarchive_note_min_length=_getenv_int("UNARCHIVE_NOTE_MIN_LENGTH", 10),
        admin_email=_getenv("ADMIN_EMAIL", "admin@backoffice.local"),
        admin_password=os.environ.get("ADMIN_PASSWORD") or "change-me",
    )


def load_config() -> dict:
    s = load_settings()
    is_production = s.env in ("prod", "production")
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "SESSION_MAX_AGE_DAYS": s.session_max_age_days,
        "UNARCHIVE_NOTE_MIN_LENGTH": s.unarchive_note_min_length,
        # session cookie defaults
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": is_production,  # Require HTTPS in production
    }
