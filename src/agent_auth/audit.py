"""AuthAuditLogger — JSONL audit trail for authority and session events.

Every trust-relevant event (root generation, certificate issuance,
authentication attempt, session creation, revocation, expiry and cleanup)
is appended as a single JSON line to the configured log file. Key material
and session tokens are never written to the trail; sessions are referenced
by a short token prefix.

If no file path is configured the logger emits to an in-memory buffer
that can be drained via :meth:`drain_buffer`.
"""
from __future__ import annotations

import datetime
import json
import threading
from dataclasses import dataclass, field
from pathlib import Path


def token_hint(token: str) -> str:
    """Return a non-reusable prefix of a session token for audit records."""
    return f"{token[:8]}..." if len(token) > 8 else "..."


@dataclass
class AuditEvent:
    """A single auditable event.

    Parameters
    ----------
    event_type:
        Short snake_case string identifying the event (e.g. "certificate_issued").
    agent_id:
        The agent involved in the event, or "ca" for root events.
    details:
        Arbitrary key-value metadata about the event.
    timestamp:
        UTC datetime of the event. Defaults to now.
    """

    event_type: str
    agent_id: str
    details: dict[str, object] = field(default_factory=dict)
    timestamp: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )

    def to_dict(self) -> dict[str, object]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type,
            "agent_id": self.agent_id,
            "details": self.details,
        }


class AuthAuditLogger:
    """Append-only JSONL audit logger.

    Thread-safe. Each call to :meth:`log` appends one JSON line to the
    configured file path (or to the in-memory buffer if no path is set).

    Parameters
    ----------
    log_path:
        Path to the JSONL log file. Parent directories are created on first
        write. If None, events are buffered in memory only.
    """

    def __init__(self, log_path: Path | None = None) -> None:
        self._log_path = log_path
        self._buffer: list[str] = []
        self._lock = threading.Lock()

    def log(self, event: AuditEvent) -> None:
        line = json.dumps(event.to_dict(), separators=(",", ":"), default=str)
        with self._lock:
            if self._log_path is not None:
                self._log_path.parent.mkdir(parents=True, exist_ok=True)
                with self._log_path.open("a", encoding="utf-8") as fh:
                    fh.write(line + "\n")
            else:
                self._buffer.append(line)

    def log_event(self, event_type: str, agent_id: str, **details: object) -> None:
        self.log(AuditEvent(event_type=event_type, agent_id=agent_id, details=dict(details)))

    # ------------------------------------------------------------------
    # Convenience event loggers
    # ------------------------------------------------------------------

    def log_ca_generated(self, subject: str, fingerprint: str) -> None:
        self.log_event("ca_generated", agent_id="ca", subject=subject, fingerprint=fingerprint)

    def log_certificate_issued(
        self, agent_id: str, agent_type: str, fingerprint: str, expires_at: str
    ) -> None:
        self.log_event(
            "certificate_issued",
            agent_id=agent_id,
            agent_type=agent_type,
            fingerprint=fingerprint,
            expires_at=expires_at,
        )

    def log_authentication(self, agent_id: str, success: bool, reason: str = "") -> None:
        """Log an authentication attempt and its outcome."""
        self.log_event(
            "auth_success" if success else "auth_failure",
            agent_id=agent_id,
            reason=reason,
        )

    def log_session(self, event_type: str, agent_id: str, token: str, **details: object) -> None:
        """Log a session lifecycle event (created, revoked, expired)."""
        self.log_event(event_type, agent_id=agent_id, session=token_hint(token), **details)

    # ------------------------------------------------------------------
    # Buffer access
    # ------------------------------------------------------------------

    def drain_buffer(self) -> list[str]:
        """Return and clear the in-memory event buffer."""
        with self._lock:
            events = list(self._buffer)
            self._buffer.clear()
        return events

    def read_log(self, tail: int | None = None) -> list[dict[str, object]]:
        """Read events from the log file (or buffer).

        Parameters
        ----------
        tail:
            If provided, return only the last *tail* events.
        """
        with self._lock:
            if self._log_path is None:
                lines = list(self._buffer)
            elif self._log_path.exists():
                lines = self._log_path.read_text(encoding="utf-8").splitlines()
            else:
                lines = []

        parsed: list[dict[str, object]] = []
        for line in lines:
            stripped = line.strip()
            if not stripped:
                continue
            try:
                parsed.append(json.loads(stripped))
            except json.JSONDecodeError:
                continue

        if tail is not None:
            return parsed[-tail:]
        return parsed


__all__ = ["AuditEvent", "AuthAuditLogger", "token_hint"]
