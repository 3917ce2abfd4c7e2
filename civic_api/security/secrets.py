"""Read credentials from the environment and refuse obvious placeholders."""
from __future__ import annotations

import os
from typing import Final

__all__ = ["MissingSecretError", "require_secret", "is_placeholder"]


class MissingSecretError(RuntimeError):
    """A credential environment variable is unset or still holds a template value."""


# Values shipped in .env templates for the JWT key and Spaces credentials.
_TEMPLATE_VALUES: Final[frozenset[str]] = frozenset(
    {
        "changeme",
        "change-me",
        "placeholder",
        "your-secret-key",
        "your-jwt-secret",
        "your-spaces-key",
        "your-spaces-secret",
        "your-bucket-name",
    }
)


def is_placeholder(value: str | None) -> bool:
    cleaned = (value or "").strip().lower()
    return cleaned == "" or cleaned in _TEMPLATE_VALUES


def require_secret(name: str) -> str:
    raw = os.getenv(name)
    if raw is None or is_placeholder(raw):
        raise MissingSecretError(f"{name} must be set to a real value")
    return raw.strip()
