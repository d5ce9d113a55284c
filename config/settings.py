from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here.
    """

    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    port: int = int(os.getenv("PORT", "5000"))

    google_api_key: Optional[str] = os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_KEY")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    temperature: float = float(os.getenv("MODEL_TEMPERATURE", "0.7"))
    top_p: float = float(os.getenv("MODEL_TOP_P", "0.9"))
    backend_timeout: float = float(os.getenv("BACKEND_TIMEOUT_SECONDS", "30"))

    line_channel_secret: Optional[str] = os.getenv("LINE_CHANNEL_SECRET")
    line_channel_token: Optional[str] = os.getenv("LINE_CHANNEL_TOKEN")

    # Empty means use the built-in persona from relay.core.prompt
    persona_prompt: Optional[str] = os.getenv("PERSONA_PROMPT")
    persona_acknowledgement: Optional[str] = os.getenv("PERSONA_ACKNOWLEDGEMENT")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
