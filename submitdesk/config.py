# submitdesk/config.py
import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

BASE_DIR = os.path.dirname(__file__)

DEFAULT_SECRET = "dev-secret-for-jwt"
DEFAULT_ALGO = "HS256"
ACCESS_MINUTES = 60 * 8
MAX_UPLOAD_BYTES = 16 * 1024 * 1024


def _split_csv(value: str) -> List[str]:
    return [p.strip() for p in value.split(",") if p.strip()]


@dataclass(frozen=True)
class Config:
    """Process-wide settings, built once at startup and handed to the app."""

    secret_key: str = DEFAULT_SECRET
    algorithm: str = DEFAULT_ALGO
    access_minutes: int = ACCESS_MINUTES
    database_url: str = f"sqlite:///{os.path.join(BASE_DIR, 'submitdesk.db')}"
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    admin_username: str = "admin"
    admin_password: str = "admin"
    admin_name: str = "Administrator"

    @classmethod
    def from_env(cls) -> "Config":
        load_dotenv()
        default = cls()
        return cls(
            secret_key=os.getenv("SECRET_KEY", default.secret_key),
            algorithm=os.getenv("JWT_ALGORITHM", default.algorithm),
            access_minutes=int(os.getenv("ACCESS_MINUTES", default.access_minutes)),
            database_url=os.getenv("DATABASE_URL", default.database_url),
            max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", default.max_upload_bytes)),
            cors_origins=_split_csv(os.getenv("CORS_ORIGINS", "*")),
            log_level=os.getenv("LOG_LEVEL", default.log_level).upper(),
            admin_username=os.getenv("ADMIN_USERNAME", default.admin_username),
            admin_password=os.getenv("ADMIN_PASSWORD", default.admin_password),
            admin_name=os.getenv("ADMIN_NAME", default.admin_name),
        )
