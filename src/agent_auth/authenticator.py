"""AgentAuthenticator — challenge-signature authentication for agents.

An agent proves its identity by signing challenge data with the private key
matching its issued certificate. Authentication runs ordered checks and
stops at the first failure:

1. the agent's certificate and metadata exist;
2. the certificate has not expired;
3. the certificate chains to the root authority;
4. the signature over the challenge verifies against the certificate key.

Only when all four pass is a session created. Each stage reports a distinct
error message and none of them raise past this module.
"""
from __future__ import annotations

import datetime
import json
import logging
from dataclasses import dataclass, field

from agent_auth.audit import AuthAuditLogger
from agent_auth.certificates.record import CertificateRecord, utcnow
from agent_auth.certificates.store import CertificateStore
from agent_auth.certificates.verifier import verify_certificate_chain
from agent_auth.crypto.signer import PemSigner, Signer
from agent_auth.exceptions import AgentKeyNotFoundError, InvalidAgentIdError, RecordNotFoundError
from agent_auth.sessions.manager import SessionManager

logger = logging.getLogger(__name__)

ERROR_NOT_FOUND = "Agent not found"
ERROR_EXPIRED = "Agent certificate has expired"
ERROR_CHAIN = "Invalid certificate chain"
ERROR_SIGNATURE = "Invalid signature"
ERROR_SESSION = "Failed to create session"

_UNREADABLE = (RecordNotFoundError, KeyError, TypeError, ValueError, json.JSONDecodeError, OSError)


@dataclass
class AuthenticationResult:
    """Outcome of an authentication attempt. Trust is all-or-nothing."""

    authenticated: bool
    agent_id: str = ""
    agent_type: str = ""
    permissions: list[str] = field(default_factory=list)
    session_token: str = ""
    expires_at: datetime.datetime | None = None
    error: str = ""

    def to_dict(self) -> dict[str, object]:
        if not self.authenticated:
            return {"authenticated": False, "error": self.error}
        return {
            "authenticated": True,
            "agent_id": self.agent_id,
            "agent_type": self.agent_type,
            "permissions": list(self.permissions),
            "session_token": self.session_token,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }


def _as_bytes(data: str | bytes) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else bytes(data)


class AgentAuthenticator:
    """Verifies signed challenges and opens sessions for trusted agents.

    Parameters
    ----------
    store:
        Certificate store holding root and agent records.
    sessions:
        Session manager used to mint a token on success.
    signer:
        Verification capability. Defaults to :class:`PemSigner`, which
        handles both the RSA root and Ed25519 agent keys.
    audit:
        Optional audit trail.
    """

    def __init__(
        self,
        store: CertificateStore,
        sessions: SessionManager,
        signer: Signer | None = None,
        audit: AuthAuditLogger | None = None,
    ) -> None:
        self._store = store
        self._sessions = sessions
        self._signer = signer or PemSigner()
        self._audit = audit

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def authenticate_agent(
        self,
        agent_id: str,
        signature: str,
        data: str | bytes,
    ) -> AuthenticationResult:
        """Authenticate *agent_id* by its *signature* over *data*.

        Parameters
        ----------
        agent_id:
            The claimed agent identity.
        signature:
            Base64 signature produced with the agent's private key.
        data:
            The challenge that was signed.

        Returns
        -------
        AuthenticationResult
            On success, carries the agent's issued permissions and a new
            session token; otherwise ``authenticated=False`` and an error.
        """
        if not isinstance(agent_id, str) or not agent_id:
            return self._reject(str(agent_id), ERROR_NOT_FOUND)

        try:
            cert_text = self._store.load_agent_certificate_text(agent_id)
            metadata = self._store.load_agent_metadata(agent_id)
        except _UNREADABLE:
            return self._reject(agent_id, ERROR_NOT_FOUND)
        if metadata.agent_id != agent_id:
            return self._reject(agent_id, ERROR_NOT_FOUND)

        if metadata.is_expired(utcnow()):
            return self._reject(agent_id, ERROR_EXPIRED)

        try:
            root = self._store.load_root_certificate()
        except _UNREADABLE:
            return self._reject(agent_id, ERROR_CHAIN)
        if not verify_certificate_chain(cert_text, root, signer=self._signer):
            return self._reject(agent_id, ERROR_CHAIN)

        cert = CertificateRecord.from_json(cert_text)
        if not isinstance(signature, str) or not isinstance(data, (str, bytes)):
            return self._reject(agent_id, ERROR_SIGNATURE)
        if not self._signer.verify(cert.public_key, _as_bytes(data), signature):
            return self._reject(agent_id, ERROR_SIGNATURE)

        try:
            session = self._sessions.open_session(agent_id, metadata.permissions)
        except OSError as exc:
            logger.error("Could not persist session for agent %s: %s", agent_id, exc)
            return self._reject(agent_id, ERROR_SESSION)

        logger.info("Authenticated agent %s (type=%s)", agent_id, metadata.agent_type)
        if self._audit is not None:
            self._audit.log_authentication(agent_id, success=True)

        return AuthenticationResult(
            authenticated=True,
            agent_id=agent_id,
            agent_type=metadata.agent_type,
            permissions=list(metadata.permissions),
            session_token=session.session_id,
            expires_at=session.expires_at,
        )

    def _reject(self, agent_id: str, reason: str) -> AuthenticationResult:
        logger.warning("Authentication rejected for agent %s: %s", agent_id, reason)
        if self._audit is not None:
            self._audit.log_authentication(agent_id, success=False, reason=reason)
        return AuthenticationResult(authenticated=False, error=reason)

    # ------------------------------------------------------------------
    # Agent-side helper
    # ------------------------------------------------------------------

    def sign_data(self, agent_id: str, data: str | bytes) -> str:
        """Sign *data* with the agent's stored private key.

        This is what an agent process runs locally before presenting
        ``(agent_id, signature, data)`` to :meth:`authenticate_agent`.

        Raises
        ------
        InvalidAgentIdError
            If *agent_id* is not a non-empty string.
        AgentKeyNotFoundError
            If no private key is stored for the agent.
        """
        if not isinstance(agent_id, str) or not agent_id:
            raise InvalidAgentIdError(agent_id)
        try:
            private_key_pem = self._store.load_agent_key(agent_id)
        except RecordNotFoundError as exc:
            raise AgentKeyNotFoundError(agent_id) from exc
        return self._signer.sign(private_key_pem, _as_bytes(data))


__all__ = ["AgentAuthenticator", "AuthenticationResult"]
