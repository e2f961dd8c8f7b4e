"""Centralized configuration for codetective.

Typed constants with environment variable overrides. Defaults are safe so
nothing needs to be configured to import code or run the scheduler.
"""

from __future__ import annotations

import os

# --- Import limits ---
MAX_NUM_FILES: int = 100
MAX_FILE_SIZE: int = 100 * 1024  # 100KB

# --- HTTP ---
USER_AGENT: str = os.getenv("CODETECTIVE_USER_AGENT", "codetective/1.0")
HTTP_TIMEOUT: float = float(os.getenv("CODETECTIVE_HTTP_TIMEOUT", "30"))

# --- GitHub ---
GITHUB_HOST: str = "github.com"
GITHUB_API_BASE: str = "https://api.github.com"
GITHUB_RAW_BASE: str = "https://raw.githubusercontent.com"
GITHUB_API_VERSION: str = "2022-11-28"
GITHUB_TOKEN: str | None = os.getenv("CODETECTIVE_GITHUB_TOKEN") or None

# --- Detection scheduler ---
POLL_INTERVAL_SECONDS: float = float(os.getenv("CODETECTIVE_POLL_INTERVAL", "1.0"))

# --- Free-quota provider keys ---
FREE_QUOTA_KEYS: dict[str, str] = {
    name: value
    for name, value in {
        "openrouter": os.getenv("CODETECTIVE_FREE_OPENROUTER_KEY", ""),
        "groq": os.getenv("CODETECTIVE_FREE_GROQ_KEY", ""),
    }.items()
    if value
}
