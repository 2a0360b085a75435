"""
Configuration - Environment-driven settings.

Variables:
    CARDCAST_BASE_URL             Address share links are built on
    ALLOWED_ORIGINS               Comma-separated CORS origins
    CARDCAST_LOG_LEVEL            DEBUG, INFO, WARNING, ERROR
    CARDCAST_COPY_RESET_SECONDS   How long "Link Copied" stays up
"""

from __future__ import annotations
from dataclasses import dataclass, field
import os


@dataclass
class Settings:
    base_url: str = "http://localhost:8000/"
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    copy_reset_seconds: float = 2.0

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            base_url=os.getenv("CARDCAST_BASE_URL", "http://localhost:8000/"),
            allowed_origins=[
                origin.strip()
                for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",")
                if origin.strip()
            ],
            log_level=os.getenv("CARDCAST_LOG_LEVEL", "INFO"),
            copy_reset_seconds=float(os.getenv("CARDCAST_COPY_RESET_SECONDS", "2.0")),
        )
