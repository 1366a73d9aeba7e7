import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    jwt_secret: str
    token_ttl_hours: int

    similarity_threshold: float

    notifications_enabled: bool
    smtp_host: str
    smtp_port: int
    smtp_username: str
    smtp_password: str
    smtp_use_tls: bool
    email_from: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getbool(name: str, default: bool) -> bool:
    raw = _getenv(name)
    if not raw:
        return default
    return raw.lower() in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    secret_key = _getenv("SECRET_KEY", "change-me")
    return Settings(
        secret_key=secret_key,
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///ctms.db"),
        jwt_secret=_getenv("JWT_SECRET", secret_key),
        token_ttl_hours=int(_getenv("TOKEN_TTL_HOURS", "24")),
        similarity_threshold=float(_getenv("SIMILARITY_THRESHOLD", "0.8")),
        notifications_enabled=_getbool("NOTIFICATIONS_ENABLED", True),
        smtp_host=_getenv("SMTP_HOST", ""),
        smtp_port=int(_getenv("SMTP_PORT", "587")),
        smtp_username=_getenv("SMTP_USERNAME", ""),
        smtp_password=_getenv("SMTP_PASSWORD", ""),
        smtp_use_tls=_getbool("SMTP_USE_TLS", True),
        email_from=_getenv("EMAIL_FROM", ""),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "JWT_SECRET": s.jwt_secret,
        "TOKEN_TTL_HOURS": s.token_ttl_hours,
        "SIMILARITY_THRESHOLD": s.similarity_threshold,
        "NOTIFICATIONS_ENABLED": s.notifications_enabled,
        "SMTP_HOST": s.smtp_host,
        "SMTP_PORT": s.smtp_port,
        "SMTP_USERNAME": s.smtp_username,
        "SMTP_PASSWORD": s.smtp_password,
        "SMTP_USE_TLS": s.smtp_use_tls,
        "EMAIL_FROM": s.email_from,
        # JSON bodies only; 1MB is plenty for links and instructions
        "MAX_CONTENT_LENGTH": 1 * 1024 * 1024,
    }
