from dotenv import load_dotenv
import os
from typing import List, Tuple
from pydantic import BaseModel, Field


class Settings(BaseModel):
    """Process-wide configuration, built once at startup.

    Components receive the instance they need explicitly; nothing in the
    scraper reads the environment on its own.
    """
    openai_api_key: str
    openai_model: str = "gpt-4o-mini"
    port: int = 3100
    session_timeout: float = 180.0
    verification_timeout: float = 120.0
    navigation_timeout_ms: int = 30_000
    settle_delay: float = 2.0
    verification_mode: str = "api"
    fatal_sections: Tuple[str, ...] = ("education",)
    max_concurrent_sessions: int = 3
    allowed_origins: List[str] = Field(default_factory=lambda: ["http://localhost:8080"])
    browser_data_root: str | None = None
    revert_to_headless: bool = True


def _csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def load_settings() -> Settings:
    """Read `.env` and the environment into a `Settings` instance."""
    load_dotenv()

    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("Couldn't find OpenAI API key")

    return Settings(
        openai_api_key=api_key,
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        port=int(os.getenv("PORT", "3100")),
        session_timeout=float(os.getenv("SESSION_TIMEOUT_SECONDS", "180")),
        verification_timeout=float(os.getenv("VERIFICATION_TIMEOUT_SECONDS", "120")),
        navigation_timeout_ms=int(os.getenv("NAVIGATION_TIMEOUT_MS", "30000")),
        settle_delay=float(os.getenv("SETTLE_DELAY_SECONDS", "2")),
        verification_mode=os.getenv("VERIFICATION_MODE", "api").lower(),
        fatal_sections=tuple(s.lower() for s in _csv(os.getenv("FATAL_SECTIONS", "education"))),
        max_concurrent_sessions=int(os.getenv("MAX_CONCURRENT_SESSIONS", "3")),
        allowed_origins=_csv(os.getenv("ALLOWED_ORIGINS", "http://localhost:8080")),
        browser_data_root=os.getenv("BROWSER_DATA_ROOT") or None,
    )
