"""Certificate management for agent identity.

Provides root authority generation, agent certificate issuance, storage and
chain verification.
"""
from __future__ import annotations

from agent_auth.certificates.authority import CertificateAuthority, InitializationResult
from agent_auth.certificates.record import AgentMetadata, CertificateRecord, IssuedCertificate
from agent_auth.certificates.store import CertificateStore, FilesystemCertificateStore
from agent_auth.certificates.verifier import verify_certificate_chain

__all__ = [
    "AgentMetadata",
    "CertificateAuthority",
    "CertificateRecord",
    "CertificateStore",
    "FilesystemCertificateStore",
    "InitializationResult",
    "IssuedCertificate",
    "verify_certificate_chain",
]
