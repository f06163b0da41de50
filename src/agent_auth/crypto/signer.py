"""Signer — asymmetric key generation, signing, and verification.

A thin wrapper around the ``cryptography`` package. Key material crosses
this boundary as PEM text and signatures as base64 strings, so callers can
persist both without depending on this module's internal types.

The root authority uses RSA-2048 (PKCS#1 v1.5 over SHA-256); agents use
Ed25519. Signing and verification dispatch on the type of the loaded key,
so a single :class:`PemSigner` handles both.
"""
from __future__ import annotations

import base64
import binascii
import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, padding, rsa

_SUPPORTED_ALGORITHMS = ("rsa", "ed25519")


@dataclass(frozen=True)
class KeyPair:
    """A PEM-encoded keypair.

    Parameters
    ----------
    private_pem:
        PKCS#8 PEM text of the private key (unencrypted).
    public_pem:
        SubjectPublicKeyInfo PEM text of the public key.
    """

    private_pem: str
    public_pem: str


class Signer(ABC):
    """Abstract signing capability injected into every component."""

    @abstractmethod
    def generate_keypair(self) -> KeyPair:
        """Generate a fresh keypair."""

    @abstractmethod
    def sign(self, private_key_pem: str, data: bytes) -> str:
        """Sign *data* and return the base64-encoded signature."""

    @abstractmethod
    def verify(self, public_key_pem: str, data: bytes, signature: str) -> bool:
        """Return True if *signature* over *data* matches the public key.

        Implementations must return False rather than raise on malformed keys
        or signatures.
        """


class PemSigner(Signer):
    """Production signer backed by the ``cryptography`` package.

    Parameters
    ----------
    algorithm:
        Algorithm used by :meth:`generate_keypair`: ``"rsa"`` or ``"ed25519"``.
    rsa_key_size:
        Modulus length for RSA keys.

    Example
    -------
    ::

        signer = PemSigner("ed25519")
        keys = signer.generate_keypair()
        sig = signer.sign(keys.private_pem, b"challenge")
        assert signer.verify(keys.public_pem, b"challenge", sig)
    """

    def __init__(self, algorithm: str = "ed25519", rsa_key_size: int = 2048) -> None:
        if algorithm not in _SUPPORTED_ALGORITHMS:
            raise ValueError(
                f"algorithm must be one of {_SUPPORTED_ALGORITHMS}, got {algorithm!r}"
            )
        if rsa_key_size < 2048:
            raise ValueError(f"rsa_key_size must be at least 2048 bits, got {rsa_key_size}")
        self.algorithm = algorithm
        self._rsa_key_size = rsa_key_size

    def generate_keypair(self) -> KeyPair:
        if self.algorithm == "rsa":
            private_key = rsa.generate_private_key(
                public_exponent=65537,
                key_size=self._rsa_key_size,
            )
        else:
            private_key = ed25519.Ed25519PrivateKey.generate()

        private_pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        public_pem = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        return KeyPair(
            private_pem=private_pem.decode("ascii"),
            public_pem=public_pem.decode("ascii"),
        )

    def sign(self, private_key_pem: str, data: bytes) -> str:
        """Sign *data* with an RSA or Ed25519 PEM private key.

        Raises
        ------
        ValueError
            If the key cannot be parsed or is of an unsupported type.
        """
        try:
            private_key = serialization.load_pem_private_key(
                private_key_pem.encode("ascii"), password=None
            )
        except UnsupportedAlgorithm as exc:
            raise ValueError(f"Unsupported private key: {exc}") from exc

        if isinstance(private_key, rsa.RSAPrivateKey):
            raw = private_key.sign(data, padding.PKCS1v15(), hashes.SHA256())
        elif isinstance(private_key, ed25519.Ed25519PrivateKey):
            raw = private_key.sign(data)
        else:
            raise ValueError(f"Unsupported private key type {type(private_key).__name__}")
        return base64.b64encode(raw).decode("ascii")

    def verify(self, public_key_pem: str, data: bytes, signature: str) -> bool:
        try:
            public_key = serialization.load_pem_public_key(public_key_pem.encode("ascii"))
            raw = base64.b64decode(signature, validate=True)
        except (ValueError, TypeError, AttributeError, UnsupportedAlgorithm, binascii.Error):
            return False

        try:
            if isinstance(public_key, rsa.RSAPublicKey):
                public_key.verify(raw, data, padding.PKCS1v15(), hashes.SHA256())
            elif isinstance(public_key, ed25519.Ed25519PublicKey):
                public_key.verify(raw, data)
            else:
                return False
        except InvalidSignature:
            return False
        return True


def fingerprint(public_key_pem: str) -> str:
    """Return the SHA-256 hex digest of a PEM public key."""
    return hashlib.sha256(public_key_pem.encode("ascii")).hexdigest()


__all__ = ["KeyPair", "PemSigner", "Signer", "fingerprint"]
