"""Session storage — record type, abstract interface and filesystem backend.

Sessions are persisted as ``session-<token>.json`` files under the auth
directory. Operations on the same token are serialized through
:meth:`SessionStore.lock`, so a revoke cannot lose an update against a
concurrent lazy-expiry delete.
"""
from __future__ import annotations

import contextlib
import datetime
import json
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from agent_auth.certificates.record import parse_timestamp
from agent_auth.certificates.store import atomic_write_text
from agent_auth.exceptions import RecordNotFoundError
from agent_auth.sessions.tokens import validate_token_format

_LOCK_STRIPES = 64


@dataclass
class SessionRecord:
    """A bearer session issued after successful authentication.

    Parameters
    ----------
    session_id:
        The bearer token itself.
    agent_id:
        The authenticated agent.
    permissions:
        Capabilities copied from the agent's metadata.
    created_at:
        UTC creation time.
    expires_at:
        UTC expiry time; never extended after creation.
    active:
        False once revoked. Revoked records are retained for audit.
    revoked_at:
        UTC revocation time, if revoked.
    """

    session_id: str
    agent_id: str
    permissions: list[str]
    created_at: datetime.datetime
    expires_at: datetime.datetime
    active: bool = True
    revoked_at: datetime.datetime | None = None

    def is_expired(self, now: datetime.datetime) -> bool:
        return now > self.expires_at

    def to_dict(self) -> dict[str, object]:
        return {
            "session_id": self.session_id,
            "agent_id": self.agent_id,
            "permissions": list(self.permissions),
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "active": self.active,
            "revoked_at": self.revoked_at.isoformat() if self.revoked_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "SessionRecord":
        """Reconstruct a record from :meth:`to_dict` output.

        Raises
        ------
        KeyError, TypeError, ValueError
            If required fields are missing or malformed. ``active`` must be
            a JSON boolean.
        """
        active = data.get("active", False)
        if not isinstance(active, bool):
            raise ValueError(f"session 'active' must be a boolean, got {active!r}")
        revoked_at = data.get("revoked_at")
        return cls(
            session_id=str(data["session_id"]),
            agent_id=str(data["agent_id"]),
            permissions=[str(p) for p in (data.get("permissions") or [])],  # type: ignore[union-attr]
            created_at=parse_timestamp(str(data["created_at"])),
            expires_at=parse_timestamp(str(data["expires_at"])),
            active=active,
            revoked_at=parse_timestamp(str(revoked_at)) if revoked_at else None,
        )


class SessionStore(ABC):
    """Abstract base class for session storage backends."""

    def __init__(self) -> None:
        self._stripes = [threading.Lock() for _ in range(_LOCK_STRIPES)]

    @contextlib.contextmanager
    def lock(self, token: str) -> Iterator[None]:
        """Serialize read-modify-write sequences on a single token."""
        with self._stripes[hash(token) % _LOCK_STRIPES]:
            yield

    @abstractmethod
    def ensure_layout(self) -> None:
        """Create any directories the backend needs. Idempotent."""

    @abstractmethod
    def save(self, record: SessionRecord) -> None:
        """Persist *record*, replacing any previous record for its token."""

    @abstractmethod
    def load(self, token: str) -> SessionRecord:
        """Return the session for *token*.

        Raises
        ------
        RecordNotFoundError
            If no session is stored for *token*.
        """

    @abstractmethod
    def delete(self, token: str) -> bool:
        """Remove the session for *token*. Return False if it was absent."""

    @abstractmethod
    def list_tokens(self) -> list[str]:
        """Return all stored session tokens.

        Raises
        ------
        OSError
            If the backing storage is unavailable.
        """


class FilesystemSessionStore(SessionStore):
    """Filesystem-backed session storage.

    Parameters
    ----------
    auth_dir:
        Directory holding ``session-<token>.json`` records.
    """

    _PREFIX = "session-"
    _SUFFIX = ".json"

    def __init__(self, auth_dir: Path) -> None:
        super().__init__()
        self._auth_dir = Path(auth_dir)

    def ensure_layout(self) -> None:
        self._auth_dir.mkdir(parents=True, exist_ok=True)

    def save(self, record: SessionRecord) -> None:
        atomic_write_text(
            self._path(record.session_id), json.dumps(record.to_dict(), indent=2)
        )

    def load(self, token: str) -> SessionRecord:
        if not validate_token_format(token):
            raise RecordNotFoundError("session", str(token))
        try:
            text = self._path(token).read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise RecordNotFoundError("session", token) from exc
        return SessionRecord.from_dict(json.loads(text))

    def delete(self, token: str) -> bool:
        if not validate_token_format(token):
            return False
        try:
            self._path(token).unlink()
        except FileNotFoundError:
            return False
        return True

    def list_tokens(self) -> list[str]:
        return sorted(
            path.name[len(self._PREFIX):-len(self._SUFFIX)]
            for path in self._auth_dir.iterdir()
            if path.name.startswith(self._PREFIX) and path.name.endswith(self._SUFFIX)
        )

    def _path(self, token: str) -> Path:
        return self._auth_dir / f"{self._PREFIX}{token}{self._SUFFIX}"


__all__ = ["FilesystemSessionStore", "SessionRecord", "SessionStore"]
