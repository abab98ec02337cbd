"""Centralised configuration loaded from environment variables and dotenv."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ── Paths ──────────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# ── Source APIs ────────────────────────────────────────────────────────────
RAPIDAPI_KEY: str = os.getenv("RAPIDAPI_KEY", "").strip()
SERPAPI_KEY: str = os.getenv("SERPAPI_KEY", "").strip()
RAPIDAPI_FB_SEARCH_URL: str = os.getenv(
    "RAPIDAPI_FB_SEARCH_URL", "https://facebook-scraper3.p.rapidapi.com/search/posts"
)
RAPIDAPI_FB_SEARCH_HOST: str = os.getenv(
    "RAPIDAPI_FB_SEARCH_HOST", "facebook-scraper3.p.rapidapi.com"
)
HTTP_TIMEOUT: float = float(os.getenv("REPWATCH_HTTP_TIMEOUT", "30"))

# ── LLM ────────────────────────────────────────────────────────────────────
LLM_API_KEY: str = (os.getenv("OPENAI_API_KEY") or os.getenv("LLM_API_KEY", "")).strip()
LLM_MODEL: str = os.getenv("LLM_MODEL", "gpt-4o-mini")

# ── Storage ────────────────────────────────────────────────────────────────
_DEFAULT_DB = str(PROJECT_ROOT / "var" / "repwatch.sqlite3")


def db_path() -> Path | None:
    """Return the SQLite path, or ``None`` when persistence is disabled.

    Setting ``REPWATCH_DB_PATH`` to an empty string disables storage.
    """
    raw = os.getenv("REPWATCH_DB_PATH", _DEFAULT_DB).strip()
    return Path(raw) if raw else None


# ── Pipeline ───────────────────────────────────────────────────────────────
HIGH_RISK_THRESHOLD: int = 8
