"""Bearer sessions issued after successful agent authentication."""
from __future__ import annotations

from agent_auth.sessions.manager import (
    CleanupResult,
    RevocationResult,
    SessionManager,
    SessionValidation,
)
from agent_auth.sessions.store import FilesystemSessionStore, SessionRecord, SessionStore
from agent_auth.sessions.tokens import generate_token, validate_token_format

__all__ = [
    "CleanupResult",
    "FilesystemSessionStore",
    "RevocationResult",
    "SessionManager",
    "SessionRecord",
    "SessionStore",
    "SessionValidation",
    "generate_token",
    "validate_token_format",
]
