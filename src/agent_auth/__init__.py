"""agent-auth — Agent certificate authority and session authentication.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Quick start
-----------
::

    from agent_auth import AgentAuthService, AuthSettings

    service = AgentAuthService(AuthSettings(security_root=Path(".security")))
    service.initialize()
    service.generate_agent_certificate("agent-1", "meta-agent")

    signature = service.sign_data("agent-1", "challenge")
    result = service.authenticate_agent("agent-1", signature, "challenge")
    assert service.validate_session(result.session_token).valid
"""
from __future__ import annotations

__version__: str = "0.1.0"

from agent_auth.audit import AuditEvent, AuthAuditLogger
from agent_auth.authenticator import AgentAuthenticator, AuthenticationResult
from agent_auth.certificates.authority import CertificateAuthority, InitializationResult
from agent_auth.certificates.record import AgentMetadata, CertificateRecord, IssuedCertificate
from agent_auth.certificates.store import CertificateStore, FilesystemCertificateStore
from agent_auth.certificates.verifier import verify_certificate_chain
from agent_auth.config import AuthSettings
from agent_auth.crypto.signer import KeyPair, PemSigner, Signer, fingerprint
from agent_auth.exceptions import (
    AgentAuthError,
    AgentKeyNotFoundError,
    InitializationError,
    InvalidAgentIdError,
    RecordNotFoundError,
    RootNotInitializedError,
)
from agent_auth.permissions import PermissionRegistry
from agent_auth.service import AgentAuthService
from agent_auth.sessions.manager import (
    CleanupResult,
    RevocationResult,
    SessionManager,
    SessionValidation,
)
from agent_auth.sessions.store import FilesystemSessionStore, SessionRecord, SessionStore
from agent_auth.sessions.tokens import generate_token, validate_token_format

__all__ = [
    "__version__",
    # facade
    "AgentAuthService",
    "AuthSettings",
    # certificates
    "AgentMetadata",
    "CertificateAuthority",
    "CertificateRecord",
    "CertificateStore",
    "FilesystemCertificateStore",
    "InitializationResult",
    "IssuedCertificate",
    "verify_certificate_chain",
    # crypto
    "KeyPair",
    "PemSigner",
    "Signer",
    "fingerprint",
    # authentication
    "AgentAuthenticator",
    "AuthenticationResult",
    # sessions
    "CleanupResult",
    "FilesystemSessionStore",
    "RevocationResult",
    "SessionManager",
    "SessionRecord",
    "SessionStore",
    "SessionValidation",
    "generate_token",
    "validate_token_format",
    # permissions
    "PermissionRegistry",
    # audit
    "AuditEvent",
    "AuthAuditLogger",
    # errors
    "AgentAuthError",
    "AgentKeyNotFoundError",
    "InitializationError",
    "InvalidAgentIdError",
    "RecordNotFoundError",
    "RootNotInitializedError",
]
