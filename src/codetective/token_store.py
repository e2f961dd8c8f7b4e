"""Credential persistence in the OS keychain.

Holds the GitHub token and per-provider API keys between sessions. Every
function degrades to a no-op when no keychain backend is usable.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

SERVICE_NAME = "codetective"
_AVAILABLE = False

try:
    import keyring
    from keyring.errors import PasswordDeleteError

    _AVAILABLE = True
except ImportError:
    logger.warning("keyring not available; credential persistence disabled")


def is_available() -> bool:
    return _AVAILABLE


def api_key_name(provider_value: str) -> str:
    """Keychain entry name for a classification provider's API key."""
    return f"{provider_value}_api_key"


def load(key: str) -> str | None:
    """Load a credential. Returns None if absent or the keychain fails."""
    if not _AVAILABLE:
        return None
    try:
        return keyring.get_password(SERVICE_NAME, key)
    except Exception:
        logger.debug("Could not read %s from keyring", key)
        return None


def save(key: str, value: str) -> bool:
    """Save a credential. Returns True on success."""
    if not _AVAILABLE or not value:
        return False
    try:
        keyring.set_password(SERVICE_NAME, key, value)
    except Exception:
        logger.warning("Failed to save %s to keyring", key)
        return False
    return True


def delete(key: str) -> bool:
    """Forget a credential. Returns True if one was removed."""
    if not _AVAILABLE:
        return False
    try:
        keyring.delete_password(SERVICE_NAME, key)
    except PasswordDeleteError:
        return False
    except Exception:
        logger.warning("Failed to delete %s from keyring", key)
        return False
    return True
