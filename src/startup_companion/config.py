"""
config.py — Central settings for StartUP Companion
===================================================
All configuration is loaded from environment variables / .env file.
Copy .env.example → .env and fill in your values.

Live mode activates automatically when OPENROUTER_API_KEY contains a real
(non-placeholder) value and FORCE_MOCK_MODE is not set.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env into os.environ (no-op if already set, safe to call multiple times)
load_dotenv(override=False)

_ROOT_DIR = Path(__file__).resolve().parent.parent.parent


# ─── Helpers ────────────────────────────────────────────────────────────────

def _is_placeholder(value: str) -> bool:
    """Return True if the value looks like an unfilled template placeholder."""
    return not value or "<" in value or value.startswith("your-") or value == "PLACEHOLDER"


# ─── OpenRouter (LLM) ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class OpenRouterConfig:
    api_key:     str
    base_url:    str
    model:       str
    temperature: float
    max_tokens:  int
    referer:     str
    app_title:   str

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key) and not _is_placeholder(self.api_key)


# ─── Remote guide functions ──────────────────────────────────────────────────

@dataclass(frozen=True)
class FunctionsConfig:
    """Where the per-type guide endpoints live when they run out of process."""
    url:     str
    api_key: str

    @property
    def is_configured(self) -> bool:
        return bool(self.url) and not _is_placeholder(self.url)


# ─── Storage ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class StorageConfig:
    db_path:         Path
    pdf_dir:         Path
    public_base_url: str   # empty → stored PDFs are referenced by file path


# ─── Conversation pacing ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class FlowConfig:
    documents_delay: float   # documents → rating
    feedback_delay:  float   # low rating → feedback request
    closing_delay:   float   # high rating → closing message
    mentor_delay:    float   # feedback → mentor cards


# ─── App-level settings ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class AppConfig:
    force_mock_mode: bool
    admin_username:  str
    admin_password:  str


# ─── Master settings object ──────────────────────────────────────────────────

@dataclass(frozen=True)
class Settings:
    openrouter: OpenRouterConfig
    functions:  FunctionsConfig
    storage:    StorageConfig
    flow:       FlowConfig
    app:        AppConfig

    @property
    def live_mode(self) -> bool:
        """True when OpenRouter creds are real and FORCE_MOCK_MODE is false."""
        return self.openrouter.is_configured and not self.app.force_mock_mode

    def status_summary(self) -> dict[str, str]:
        """Return a dict of service → status badge for the UI."""
        def badge(ok: bool) -> str:
            return "🟢 Live" if ok else "⚪ Not configured"

        return {
            "OpenRouter LLM":   badge(self.openrouter.is_configured),
            "Guide Functions":  badge(self.functions.is_configured),
            "Mock Mode":        "🧪 On" if self.app.force_mock_mode else "Off",
        }


def get_settings() -> Settings:
    """Load all configuration from environment variables."""
    _str   = lambda k, d="": os.getenv(k, d).strip()
    _int   = lambda k, d=0: int(os.getenv(k, str(d)) or d)
    _float = lambda k, d=0.0: float(os.getenv(k, str(d)) or d)
    _bool  = lambda k, d=False: os.getenv(k, str(d)).lower() in ("1", "true", "yes")

    return Settings(
        openrouter=OpenRouterConfig(
            api_key     = _str("OPENROUTER_API_KEY"),
            base_url    = _str("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1").rstrip("/"),
            model       = _str("OPENROUTER_MODEL", "openai/gpt-4o-mini"),
            temperature = _float("OPENROUTER_TEMPERATURE", 0.7),
            max_tokens  = _int("OPENROUTER_MAX_TOKENS", 3500),
            referer     = _str("OPENROUTER_REFERER", "https://startup-companion.app"),
            app_title   = _str("OPENROUTER_APP_TITLE", "StartUP Companion"),
        ),
        functions=FunctionsConfig(
            url     = _str("GUIDE_FUNCTIONS_URL").rstrip("/"),
            api_key = _str("GUIDE_FUNCTIONS_KEY"),
        ),
        storage=StorageConfig(
            db_path         = Path(_str("STARTUP_COMPANION_DB", str(_ROOT_DIR / "startup_companion.db"))),
            pdf_dir         = Path(_str("PDF_OUTPUT_DIR", str(_ROOT_DIR / "business-documents"))),
            public_base_url = _str("PDF_PUBLIC_BASE_URL").rstrip("/"),
        ),
        flow=FlowConfig(
            documents_delay = _float("FLOW_DOCUMENTS_DELAY", 3.0),
            feedback_delay  = _float("FLOW_FEEDBACK_DELAY", 1.0),
            closing_delay   = _float("FLOW_CLOSING_DELAY", 1.5),
            mentor_delay    = _float("FLOW_MENTOR_DELAY", 1.5),
        ),
        app=AppConfig(
            force_mock_mode = _bool("FORCE_MOCK_MODE", False),
            admin_username  = _str("ADMIN_USERNAME", "admin"),
            admin_password  = _str("ADMIN_PASSWORD", "companion2026"),
        ),
    )
