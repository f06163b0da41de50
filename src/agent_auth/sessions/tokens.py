"""Stateless bearer token helpers.

``validate_token_format`` is a cheap structural pre-filter for request
handlers. It never establishes that a token is live; only
:meth:`SessionManager.validate_session` does.
"""
from __future__ import annotations

import re
import time
import uuid

_TOKEN_PATTERN = re.compile(r"[A-Za-z0-9_-]{11,256}")


def generate_token() -> str:
    """Return a new random token: a UUID4 plus a millisecond timestamp suffix."""
    return f"{uuid.uuid4()}_{int(time.time() * 1000)}"


def validate_token_format(token: object) -> bool:
    """Return True if *token* is structurally a bearer token."""
    return isinstance(token, str) and bool(_TOKEN_PATTERN.fullmatch(token))


__all__ = ["generate_token", "validate_token_format"]
