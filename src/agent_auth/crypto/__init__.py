"""Asymmetric signing primitives used by the authority and authenticator."""
from __future__ import annotations

from agent_auth.crypto.signer import KeyPair, PemSigner, Signer, fingerprint

__all__ = ["KeyPair", "PemSigner", "Signer", "fingerprint"]
