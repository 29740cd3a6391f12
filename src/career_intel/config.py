"""
config.py — Central settings for the Career Intelligence conversation engine
===========================================================================
All configuration is loaded from environment variables / .env file.
Copy .env.example → .env and fill in your values.

The controller takes a ModelConfig snapshot when it is constructed and never
re-reads the environment mid-session, so the export metadata always matches
the model and form version that actually ran.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load .env into os.environ (no-op if already set, safe to call multiple times)
load_dotenv(override=False)


DEFAULT_API_ENDPOINT = "https://ai-assisted-pedagogy.netlify.app/.netlify/functions/ai-proxy"
DEFAULT_MODEL = "claude-sonnet-4-6"
DEFAULT_DISCUSSION_MODEL = "claude-haiku-4-5-20251001"
DEFAULT_PLACEHOLDER_TEXT = (
    "Take your time — the more specific you are, "
    "the more useful the response will be."
)


# ─── Helpers ────────────────────────────────────────────────────────────────

def _is_placeholder(value: str) -> bool:
    """Return True if the value looks like an unfilled template placeholder."""
    return not value or "<" in value or value.startswith("your-") or value == "PLACEHOLDER"


# ─── Conversation engine ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class ModelConfig:
    api_endpoint:      str
    model:             str
    max_tokens:        int
    form_version:      str
    dates_placeholder: str
    link_placeholder:  str
    placeholder_text:  str

    @property
    def is_configured(self) -> bool:
        """True when the proxy endpoint is a real (non-placeholder) URL."""
        return bool(self.api_endpoint) and not _is_placeholder(self.api_endpoint)


# ─── Peer discussion helper ──────────────────────────────────────────────────

@dataclass(frozen=True)
class DiscussionConfig:
    model:              str
    max_tokens:         int
    max_response_chars: int
    default_questions:  int


# ─── Master settings object ──────────────────────────────────────────────────

@dataclass(frozen=True)
class Settings:
    engine:     ModelConfig
    discussion: DiscussionConfig

    def status_summary(self) -> dict[str, str]:
        """Return a dict of service → status badge for the UI."""
        def badge(ok: bool) -> str:
            return "🟢 Live" if ok else "⚪ Not configured"

        return {
            "AI proxy":         badge(self.engine.is_configured),
            "Conversation model": self.engine.model,
            "Discussion model": self.discussion.model,
        }


def get_settings() -> Settings:
    """Load all configuration from environment variables."""
    _str = lambda k, d="": os.getenv(k, d).strip()
    _int = lambda k, d=0: int(os.getenv(k, str(d)) or d)

    return Settings(
        engine=ModelConfig(
            api_endpoint      = _str("CAREER_INTEL_API_ENDPOINT", DEFAULT_API_ENDPOINT).rstrip("/"),
            model             = _str("CAREER_INTEL_MODEL", DEFAULT_MODEL),
            max_tokens        = _int("CAREER_INTEL_MAX_TOKENS", 1024),
            form_version      = _str("CAREER_INTEL_FORM_VERSION", "1.0"),
            dates_placeholder = _str("CAREER_INTEL_DATES_PLACEHOLDER", "[DATES TBD]"),
            link_placeholder  = _str("CAREER_INTEL_LINK_PLACEHOLDER", "[LINK TBD]"),
            placeholder_text  = _str("CAREER_INTEL_PLACEHOLDER_TEXT", DEFAULT_PLACEHOLDER_TEXT),
        ),
        discussion=DiscussionConfig(
            model              = _str("DISCUSSION_MODEL", DEFAULT_DISCUSSION_MODEL),
            max_tokens         = _int("DISCUSSION_MAX_TOKENS", 512),
            max_response_chars = 3000,
            default_questions  = 3,
        ),
    )


def get_config() -> ModelConfig:
    """Shortcut — returns just the conversation engine block."""
    return get_settings().engine
