"""
Application settings.

Values come from the environment (a local .env file is honoured). Handlers
receive them through the get_settings() dependency so tests can override
them without touching os.environ.
"""

import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


def _split_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    database_url: Optional[str] = None
    database_name: str = "storefront"

    jwt_secret: str = "dev-secret-change"
    jwt_algorithm: str = "HS256"
    token_ttl_minutes: int = Field(60 * 24, gt=0)  # 1 day

    # Emails that are given the admin role when they register
    admin_emails: List[str] = Field(default_factory=list)
    bcrypt_rounds: int = Field(12, ge=4, le=31)

    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:5173"])
    log_level: str = "INFO"
    port: int = 8000

    def is_admin_email(self, email: str) -> bool:
        return email in self.admin_emails


def load_settings() -> Settings:
    """Build settings from environment variables."""
    return Settings(
        database_url=os.getenv("DATABASE_URL") or None,
        database_name=os.getenv("DATABASE_NAME", "storefront"),
        jwt_secret=os.getenv("JWT_SECRET", "dev-secret-change"),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        token_ttl_minutes=int(os.getenv("TOKEN_TTL_MINUTES", 60 * 24)),
        admin_emails=_split_list(os.getenv("ADMIN_EMAILS")),
        bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", 12)),
        cors_origins=_split_list(os.getenv("CORS_ORIGINS")) or ["http://localhost:5173"],
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        port=int(os.getenv("PORT", 8000)),
    )


@lru_cache()
def get_settings() -> Settings:
    return load_settings()
