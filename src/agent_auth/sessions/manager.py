"""SessionManager — bearer session lifecycle.

Sessions are short-lived capability leases issued after an agent
authenticates. Validation never extends a session; an expired session is
deleted the moment it is next read, and a periodic
:meth:`SessionManager.cleanup_expired_sessions` sweep removes the rest.
"""
from __future__ import annotations

import datetime
import json
import logging
from dataclasses import dataclass, field

from agent_auth.audit import AuthAuditLogger, token_hint
from agent_auth.certificates.record import utcnow
from agent_auth.exceptions import RecordNotFoundError
from agent_auth.sessions.store import SessionRecord, SessionStore
from agent_auth.sessions.tokens import generate_token, validate_token_format

logger = logging.getLogger(__name__)

ERROR_INVALID_TOKEN = "Invalid session token"
ERROR_INACTIVE = "Session is inactive"
ERROR_EXPIRED = "Session has expired"

_UNREADABLE = (RecordNotFoundError, KeyError, TypeError, ValueError, json.JSONDecodeError, OSError)


@dataclass
class SessionValidation:
    """Result of :meth:`SessionManager.validate_session`."""

    valid: bool
    agent_id: str = ""
    permissions: list[str] = field(default_factory=list)
    expires_at: datetime.datetime | None = None
    error: str = ""

    def to_dict(self) -> dict[str, object]:
        if not self.valid:
            return {"valid": False, "error": self.error}
        return {
            "valid": True,
            "agent_id": self.agent_id,
            "permissions": list(self.permissions),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }


@dataclass
class RevocationResult:
    """Result of :meth:`SessionManager.revoke_session`."""

    success: bool
    error: str = ""

    def to_dict(self) -> dict[str, object]:
        if self.success:
            return {"success": True}
        return {"success": False, "error": self.error}


@dataclass
class CleanupResult:
    """Result of :meth:`SessionManager.cleanup_expired_sessions`.

    ``error`` is set instead of raising when the store cannot be listed.
    """

    cleaned: int = 0
    message: str = ""
    error: str = ""

    def to_dict(self) -> dict[str, object]:
        if self.error:
            return {"error": self.error}
        return {"cleaned": self.cleaned, "message": self.message}


class SessionManager:
    """Creates, validates, revokes and garbage-collects bearer sessions.

    Parameters
    ----------
    store:
        Backend holding session records. The manager is its only user.
    session_ttl_seconds:
        Fixed lifetime of each new session.
    audit:
        Optional audit trail.
    """

    def __init__(
        self,
        store: SessionStore,
        session_ttl_seconds: int = 3600,
        audit: AuthAuditLogger | None = None,
    ) -> None:
        if session_ttl_seconds <= 0:
            raise ValueError(f"session_ttl_seconds must be positive, got {session_ttl_seconds}")
        self._store = store
        self._ttl = datetime.timedelta(seconds=session_ttl_seconds)
        self._audit = audit

    @property
    def store(self) -> SessionStore:
        return self._store

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_session(self, agent_id: str, permissions: list[str]) -> str:
        """Persist a new active session and return its bearer token."""
        return self.open_session(agent_id, permissions).session_id

    def open_session(self, agent_id: str, permissions: list[str]) -> SessionRecord:
        """Persist a new active session and return the full record.

        The token is random and never derived from the agent identity.
        """
        now = utcnow()
        record = SessionRecord(
            session_id=generate_token(),
            agent_id=agent_id,
            permissions=list(permissions),
            created_at=now,
            expires_at=now + self._ttl,
        )
        with self._store.lock(record.session_id):
            self._store.save(record)

        logger.info("Created session %s for agent %s", token_hint(record.session_id), agent_id)
        if self._audit is not None:
            self._audit.log_session(
                "session_created",
                agent_id,
                record.session_id,
                expires_at=record.expires_at.isoformat(),
            )
        return record

    def validate_session(self, token: str) -> SessionValidation:
        """Check that *token* names a live, active session.

        A session found past its expiry is deleted as a side effect.
        """
        if not validate_token_format(token):
            return SessionValidation(valid=False, error=ERROR_INVALID_TOKEN)

        now = utcnow()
        with self._store.lock(token):
            try:
                record = self._store.load(token)
            except _UNREADABLE:
                return SessionValidation(valid=False, error=ERROR_INVALID_TOKEN)

            if not record.active:
                return SessionValidation(valid=False, error=ERROR_INACTIVE)

            if record.is_expired(now):
                self._store.delete(token)
                logger.debug("Deleted expired session %s", token_hint(token))
                if self._audit is not None:
                    self._audit.log_session("session_expired", record.agent_id, token)
                return SessionValidation(valid=False, error=ERROR_EXPIRED)

        return SessionValidation(
            valid=True,
            agent_id=record.agent_id,
            permissions=list(record.permissions),
            expires_at=record.expires_at,
        )

    def revoke_session(self, token: str) -> RevocationResult:
        """Mark a session inactive. The record is kept for the audit trail."""
        if not validate_token_format(token):
            return RevocationResult(success=False, error=ERROR_INVALID_TOKEN)

        with self._store.lock(token):
            try:
                record = self._store.load(token)
            except _UNREADABLE:
                return RevocationResult(success=False, error=ERROR_INVALID_TOKEN)

            if record.active:
                record.active = False
                record.revoked_at = utcnow()
                self._store.save(record)

        logger.info("Revoked session %s for agent %s", token_hint(token), record.agent_id)
        if self._audit is not None:
            self._audit.log_session("session_revoked", record.agent_id, token)
        return RevocationResult(success=True)

    def cleanup_expired_sessions(self) -> CleanupResult:
        """Delete every session past its expiry, active or not.

        Best effort: a storage failure while listing is reported in the
        result, and individual unreadable records are skipped.
        """
        try:
            tokens = self._store.list_tokens()
        except OSError as exc:
            logger.warning("Session cleanup could not list sessions: %s", exc)
            return CleanupResult(error=str(exc))

        now = utcnow()
        cleaned = 0
        for token in tokens:
            with self._store.lock(token):
                try:
                    record = self._store.load(token)
                except RecordNotFoundError:
                    continue
                except _UNREADABLE as exc:
                    logger.warning("Skipping unreadable session %s: %s", token_hint(token), exc)
                    continue
                if record.is_expired(now) and self._store.delete(token):
                    cleaned += 1

        message = f"Cleaned up {cleaned} expired sessions"
        logger.info(message)
        if self._audit is not None and cleaned:
            self._audit.log_event("sessions_cleaned", agent_id="system", cleaned=cleaned)
        return CleanupResult(cleaned=cleaned, message=message)


__all__ = [
    "CleanupResult",
    "ERROR_EXPIRED",
    "ERROR_INACTIVE",
    "ERROR_INVALID_TOKEN",
    "RevocationResult",
    "SessionManager",
    "SessionValidation",
]
