"""Certificate Authority for agent identity issuance.

Owns the root key material and issues agent certificates bound to an
identity and a permission set. The root is self-signed and generated once,
lazily, by :meth:`CertificateAuthority.initialize`. A partially present
root (key without certificate or the reverse) counts as existing and is
never regenerated.
"""
from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass

from agent_auth.audit import AuthAuditLogger
from agent_auth.certificates.record import (
    AgentMetadata,
    CertificateRecord,
    IssuedCertificate,
    utcnow,
)
from agent_auth.certificates.store import CertificateStore
from agent_auth.config import AuthSettings
from agent_auth.crypto.signer import PemSigner, Signer, fingerprint
from agent_auth.exceptions import (
    InitializationError,
    InvalidAgentIdError,
    RecordNotFoundError,
    RootNotInitializedError,
)
from agent_auth.permissions import PermissionRegistry

logger = logging.getLogger(__name__)


@dataclass
class InitializationResult:
    """Outcome of :meth:`CertificateAuthority.initialize`."""

    success: bool
    message: str
    generated_root: bool = False

    def to_dict(self) -> dict[str, object]:
        return {"success": self.success, "message": self.message}


class CertificateAuthority:
    """Self-signed root authority for agent certificate issuance.

    Parameters
    ----------
    store:
        Backend persisting root and agent records.
    settings:
        Deployment configuration (subjects, lifetimes, directories).
    root_signer:
        Signing capability for the root keypair. Defaults to RSA-2048.
    agent_signer:
        Keypair generator for agent identities. Defaults to Ed25519.
    permissions:
        Registry consulted for default capabilities at issuance.
    audit:
        Optional audit trail.
    """

    def __init__(
        self,
        store: CertificateStore,
        settings: AuthSettings | None = None,
        root_signer: Signer | None = None,
        agent_signer: Signer | None = None,
        permissions: PermissionRegistry | None = None,
        audit: AuthAuditLogger | None = None,
    ) -> None:
        self._store = store
        self._settings = settings or AuthSettings()
        self._root_signer = root_signer or PemSigner("rsa")
        self._agent_signer = agent_signer or PemSigner("ed25519")
        self._permissions = permissions or PermissionRegistry()
        self._audit = audit

    @property
    def store(self) -> CertificateStore:
        return self._store

    @property
    def permissions(self) -> PermissionRegistry:
        return self._permissions

    # ------------------------------------------------------------------
    # Root authority
    # ------------------------------------------------------------------

    def initialize(self) -> InitializationResult:
        """Create the storage layout and, if absent, the root authority.

        Safe to call repeatedly and from several processes at once: the
        existence check is repeated under the store's root-generation lock.

        Raises
        ------
        InitializationError
            If directories or root records cannot be written.
        """
        generated = False
        try:
            self._settings.security_root.mkdir(parents=True, exist_ok=True)
            self._store.ensure_layout()
            self._settings.auth_dir.mkdir(parents=True, exist_ok=True)

            if not self._root_present():
                with self._store.root_generation_lock():
                    if not self._root_present():
                        self.generate_ca_certificate()
                        generated = True
        except OSError as exc:
            raise InitializationError(f"Failed to initialize agent auth: {exc}") from exc

        if not generated:
            logger.debug("Root authority already present; skipping generation")
        return InitializationResult(
            success=True,
            message="Agent authentication system initialized",
            generated_root=generated,
        )

    def generate_ca_certificate(self) -> CertificateRecord:
        """Generate and persist a fresh self-signed root certificate.

        Writes the root private key, the certificate and the public key
        fingerprint as three separate records. Callers normally go through
        :meth:`initialize`, which guarantees this runs at most once.
        """
        keys = self._root_signer.generate_keypair()
        now = utcnow()
        subject = self._settings.ca_subject

        cert = CertificateRecord(
            subject=subject,
            issuer=subject,
            public_key=keys.public_pem,
            not_before=now,
            not_after=now + datetime.timedelta(days=self._settings.ca_validity_days),
            is_ca=True,
        )
        cert.signature = self._root_signer.sign(keys.private_pem, cert.canonical_bytes())
        root_fingerprint = fingerprint(keys.public_pem)

        self._store.save_root(cert, keys.private_pem, root_fingerprint)
        logger.info("Generated root authority %s (fingerprint %s)", subject, root_fingerprint)
        if self._audit is not None:
            self._audit.log_ca_generated(subject, root_fingerprint)
        return cert

    def load_root_certificate(self) -> CertificateRecord:
        """Return the root certificate.

        Raises
        ------
        RootNotInitializedError
            If :meth:`initialize` has not created the root yet.
        """
        try:
            return self._store.load_root_certificate()
        except RecordNotFoundError as exc:
            raise RootNotInitializedError() from exc

    def _root_present(self) -> bool:
        return self._store.has_root_key() or self._store.has_root_certificate()

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    def agent_subject(self, agent_id: str, agent_type: str) -> str:
        return (
            f"CN={agent_id},OU={agent_type},"
            f"O={self._settings.agent_organization},C={self._settings.country}"
        )

    def generate_agent_certificate(
        self,
        agent_id: str,
        agent_type: str = "meta-agent",
    ) -> IssuedCertificate:
        """Issue a root-signed certificate for an agent.

        The agent's private key, certificate and metadata are written under
        the agent's own namespace, metadata last: a reader that finds the
        metadata can rely on the other two records being complete.
        Re-issuing for an existing agent replaces all three.

        Parameters
        ----------
        agent_id:
            Unique, non-empty identifier for the agent.
        agent_type:
            Agent type used to look up default permissions.

        Returns
        -------
        IssuedCertificate
            Certificate JSON, public key fingerprint and expiry. The private
            key is never returned.

        Raises
        ------
        InvalidAgentIdError
            If *agent_id* is not a non-empty string.
        RootNotInitializedError
            If the root authority does not exist yet.
        """
        if not isinstance(agent_id, str) or not agent_id.strip():
            raise InvalidAgentIdError(agent_id)
        if not isinstance(agent_type, str) or not agent_type:
            raise ValueError(f"agent_type must be a non-empty string, got {agent_type!r}")

        root = self.load_root_certificate()
        try:
            root_key = self._store.load_root_key()
        except RecordNotFoundError as exc:
            raise RootNotInitializedError() from exc

        keys = self._agent_signer.generate_keypair()
        now = utcnow()
        expires_at = now + datetime.timedelta(days=self._settings.agent_cert_validity_days)

        cert = CertificateRecord(
            subject=self.agent_subject(agent_id, agent_type),
            issuer=root.subject,
            public_key=keys.public_pem,
            not_before=now,
            not_after=expires_at,
            is_ca=False,
        )
        cert.signature = self._root_signer.sign(root_key, cert.canonical_bytes())
        agent_fingerprint = fingerprint(keys.public_pem)

        metadata = AgentMetadata(
            agent_id=agent_id,
            agent_type=agent_type,
            created_at=now,
            expires_at=expires_at,
            fingerprint=agent_fingerprint,
            permissions=self._permissions.get_default_permissions(agent_type),
        )

        self._store.save_agent_key(agent_id, keys.private_pem)
        self._store.save_agent_certificate(agent_id, cert)
        self._store.save_agent_metadata(metadata)

        logger.info(
            "Issued certificate for agent %s (type=%s, expires=%s)",
            agent_id,
            agent_type,
            expires_at.isoformat(),
        )
        if self._audit is not None:
            self._audit.log_certificate_issued(
                agent_id, agent_type, agent_fingerprint, expires_at.isoformat()
            )

        return IssuedCertificate(
            agent_id=agent_id,
            certificate=cert.to_json(),
            fingerprint=agent_fingerprint,
            expires_at=expires_at,
        )


__all__ = ["CertificateAuthority", "InitializationResult"]
