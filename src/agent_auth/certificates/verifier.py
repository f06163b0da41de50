"""Certificate chain verification.

Chain verification is a boolean predicate: any parse failure, malformed
input, issuer mismatch or bad signature yields False, so callers can treat
"untrusted" uniformly regardless of cause.
"""
from __future__ import annotations

import logging

from agent_auth.certificates.record import CertificateRecord
from agent_auth.crypto.signer import PemSigner, Signer

logger = logging.getLogger(__name__)


def _coerce(cert: CertificateRecord | str | bytes) -> CertificateRecord:
    if isinstance(cert, CertificateRecord):
        return cert
    if isinstance(cert, bytes):
        cert = cert.decode("utf-8")
    if not isinstance(cert, str):
        raise TypeError(f"Unsupported certificate type {type(cert).__name__}")
    return CertificateRecord.from_json(cert)


def verify_certificate_chain(
    agent_certificate: CertificateRecord | str | bytes,
    root_certificate: CertificateRecord | str | bytes,
    signer: Signer | None = None,
) -> bool:
    """Return True if *agent_certificate* was issued by *root_certificate*.

    Requires the agent certificate's issuer to equal the root subject and
    its signature to verify against the root public key over the
    certificate's canonical fields. Performs no I/O and never raises.

    Parameters
    ----------
    agent_certificate:
        A :class:`CertificateRecord` or its JSON text.
    root_certificate:
        The trusted root record or its JSON text.
    signer:
        Verification capability. Defaults to :class:`PemSigner`.
    """
    try:
        cert = _coerce(agent_certificate)
        root = _coerce(root_certificate)
    except (KeyError, TypeError, ValueError, UnicodeDecodeError) as exc:
        logger.debug("Certificate chain parse failure: %s", exc)
        return False

    if cert.issuer != root.subject:
        return False
    if not cert.signature:
        return False

    verifier = signer or PemSigner()
    try:
        return bool(verifier.verify(root.public_key, cert.canonical_bytes(), cert.signature))
    except Exception as exc:
        logger.debug("Certificate chain verification error: %s", exc)
        return False


__all__ = ["verify_certificate_chain"]
