from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
GEMINI_URL_TEMPLATE = (
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
)


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here.
    """

    def __init__(self) -> None:
        self.app_env: str = os.getenv("APP_ENV", "development")
        self.gemini_api_key: Optional[str] = os.getenv("GEMINI_API_KEY") or os.getenv(
            "GOOGLE_API_KEY"
        )
        self.gemini_model: str = os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL)
        self.gemini_api_url: str = os.getenv(
            "GEMINI_API_URL", GEMINI_URL_TEMPLATE.format(model=self.gemini_model)
        )
        self.gemini_timeout_seconds: float = float(os.getenv("GEMINI_TIMEOUT_SECONDS", "60"))
        self.host: str = os.getenv("HOST", "0.0.0.0")
        self.port: int = int(os.getenv("PORT", "3000"))
        self.upload_dir: str = os.getenv("UPLOAD_DIR", "uploads")
        self.public_dir: str = os.getenv("PUBLIC_DIR", "public")
        self.max_body_bytes: int = int(os.getenv("MAX_BODY_BYTES", str(20 * 1024 * 1024)))
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
