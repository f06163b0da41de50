"""AgentAuthService — one object wiring the authority, sessions and audit.

Request handlers and maintenance jobs use this facade. Each instance owns
its own stores; there is no module-level singleton.

Example
-------
::

    from agent_auth import AgentAuthService, AuthSettings

    service = AgentAuthService(AuthSettings(security_root=Path(".security")))
    service.initialize()
    service.generate_agent_certificate("agent-1", "meta-agent")
    signature = service.sign_data("agent-1", "challenge")
    result = service.authenticate_agent("agent-1", signature, "challenge")
    service.validate_session(result.session_token)
"""
from __future__ import annotations

from agent_auth.audit import AuthAuditLogger
from agent_auth.authenticator import AgentAuthenticator, AuthenticationResult
from agent_auth.certificates.authority import CertificateAuthority, InitializationResult
from agent_auth.certificates.record import IssuedCertificate
from agent_auth.certificates.store import CertificateStore, FilesystemCertificateStore
from agent_auth.config import AuthSettings
from agent_auth.crypto.signer import Signer
from agent_auth.permissions import PermissionRegistry
from agent_auth.sessions.manager import (
    CleanupResult,
    RevocationResult,
    SessionManager,
    SessionValidation,
)
from agent_auth.sessions.store import FilesystemSessionStore, SessionStore


class AgentAuthService:
    """Facade over :class:`CertificateAuthority`, :class:`AgentAuthenticator`
    and :class:`SessionManager`.

    Parameters
    ----------
    settings:
        Deployment configuration. Defaults to ``AuthSettings()``.
    cert_store:
        Certificate backend. Defaults to the filesystem under
        ``settings.certs_dir``.
    session_store:
        Session backend. Defaults to the filesystem under
        ``settings.auth_dir``.
    root_signer, agent_signer:
        Injectable signing capabilities (see :class:`CertificateAuthority`).
        ``agent_signer`` also verifies signatures during authentication.
    permissions:
        Permission registry consulted at issuance.
    audit:
        Audit trail. Defaults to ``settings.audit_log_path`` when
        ``settings.audit_log_enabled``, else an in-memory buffer.
    """

    def __init__(
        self,
        settings: AuthSettings | None = None,
        cert_store: CertificateStore | None = None,
        session_store: SessionStore | None = None,
        root_signer: Signer | None = None,
        agent_signer: Signer | None = None,
        permissions: PermissionRegistry | None = None,
        audit: AuthAuditLogger | None = None,
    ) -> None:
        self.settings = settings or AuthSettings()
        if audit is None:
            audit = AuthAuditLogger(
                self.settings.audit_log_path if self.settings.audit_log_enabled else None
            )
        self.audit = audit
        self.cert_store = cert_store or FilesystemCertificateStore(self.settings.certs_dir)
        self.session_store = session_store or FilesystemSessionStore(self.settings.auth_dir)

        self.authority = CertificateAuthority(
            store=self.cert_store,
            settings=self.settings,
            root_signer=root_signer,
            agent_signer=agent_signer,
            permissions=permissions,
            audit=self.audit,
        )
        self.sessions = SessionManager(
            store=self.session_store,
            session_ttl_seconds=self.settings.session_ttl_seconds,
            audit=self.audit,
        )
        self.authenticator = AgentAuthenticator(
            store=self.cert_store,
            sessions=self.sessions,
            signer=agent_signer,
            audit=self.audit,
        )

    # ------------------------------------------------------------------
    # Authority
    # ------------------------------------------------------------------

    def initialize(self) -> InitializationResult:
        result = self.authority.initialize()
        self.session_store.ensure_layout()
        return result

    def generate_agent_certificate(
        self, agent_id: str, agent_type: str = "meta-agent"
    ) -> IssuedCertificate:
        return self.authority.generate_agent_certificate(agent_id, agent_type)

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def authenticate_agent(
        self, agent_id: str, signature: str, data: str | bytes
    ) -> AuthenticationResult:
        return self.authenticator.authenticate_agent(agent_id, signature, data)

    def sign_data(self, agent_id: str, data: str | bytes) -> str:
        return self.authenticator.sign_data(agent_id, data)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def validate_session(self, token: str) -> SessionValidation:
        return self.sessions.validate_session(token)

    def revoke_session(self, token: str) -> RevocationResult:
        return self.sessions.revoke_session(token)

    def cleanup_expired_sessions(self) -> CleanupResult:
        return self.sessions.cleanup_expired_sessions()


__all__ = ["AgentAuthService"]
