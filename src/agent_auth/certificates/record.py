"""Certificate and metadata records.

Certificates are structured JSON records rather than X.509 encodings: the
requirement is a verifiable identity binding with a chain of trust. The
signature covers a deterministic serialization of every field except the
signature itself.
"""
from __future__ import annotations

import datetime
import json
import uuid
from dataclasses import dataclass, field

CA_KEY_USAGE = ["keyCertSign", "cRLSign"]
AGENT_KEY_USAGE = ["digitalSignature", "keyEncipherment"]


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def parse_timestamp(value: str) -> datetime.datetime:
    """Parse an ISO-8601 timestamp; values without an offset are taken as UTC."""
    parsed = datetime.datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed


@dataclass
class CertificateRecord:
    """A signed identity certificate for the root authority or an agent.

    Parameters
    ----------
    subject:
        Distinguished name of the certificate holder.
    issuer:
        Distinguished name of the signing authority. Equal to *subject* for
        the self-signed root.
    public_key:
        PEM-encoded public key of the holder.
    not_before:
        Validity start.
    not_after:
        Validity end.
    is_ca:
        Whether the holder may sign other certificates.
    serial_number:
        Random serial assigned at issuance.
    version:
        Record format version.
    signature:
        Base64 signature by the issuer over :meth:`canonical_bytes`. Empty
        until signed.
    """

    subject: str
    issuer: str
    public_key: str
    not_before: datetime.datetime
    not_after: datetime.datetime
    is_ca: bool = False
    serial_number: str = field(default_factory=lambda: str(uuid.uuid4()))
    version: int = 3
    signature: str = ""

    @property
    def key_usage(self) -> list[str]:
        return list(CA_KEY_USAGE if self.is_ca else AGENT_KEY_USAGE)

    @property
    def basic_constraints(self) -> dict[str, bool]:
        return {"cA": self.is_ca}

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def unsigned_dict(self) -> dict[str, object]:
        """Return every field covered by the issuer's signature."""
        return {
            "version": self.version,
            "serial_number": self.serial_number,
            "subject": self.subject,
            "issuer": self.issuer,
            "not_before": self.not_before.isoformat(),
            "not_after": self.not_after.isoformat(),
            "public_key": self.public_key,
            "is_ca": self.is_ca,
            "key_usage": self.key_usage,
            "basic_constraints": self.basic_constraints,
        }

    def canonical_bytes(self) -> bytes:
        """Deterministic byte representation of the signable fields."""
        return json.dumps(
            self.unsigned_dict(), sort_keys=True, separators=(",", ":")
        ).encode("utf-8")

    def to_dict(self) -> dict[str, object]:
        data = self.unsigned_dict()
        data["signature"] = self.signature
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "CertificateRecord":
        """Reconstruct a record from :meth:`to_dict` output.

        Raises
        ------
        KeyError, TypeError, ValueError
            If required fields are missing or malformed.
        """
        return cls(
            subject=str(data["subject"]),
            issuer=str(data["issuer"]),
            public_key=str(data["public_key"]),
            not_before=parse_timestamp(str(data["not_before"])),
            not_after=parse_timestamp(str(data["not_after"])),
            is_ca=bool(data.get("is_ca", False)),
            serial_number=str(data["serial_number"]),
            version=int(data.get("version", 3)),  # type: ignore[arg-type]
            signature=str(data.get("signature", "")),
        )

    @classmethod
    def from_json(cls, text: str) -> "CertificateRecord":
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("Certificate JSON must be an object")
        return cls.from_dict(data)


@dataclass
class AgentMetadata:
    """Issuance metadata stored next to an agent certificate.

    Permissions are baked in at issuance; later registry changes never
    alter an already-issued agent.
    """

    agent_id: str
    agent_type: str
    created_at: datetime.datetime
    expires_at: datetime.datetime
    fingerprint: str
    permissions: list[str] = field(default_factory=list)

    def is_expired(self, now: datetime.datetime | None = None) -> bool:
        return (now or utcnow()) >= self.expires_at

    def to_dict(self) -> dict[str, object]:
        return {
            "agent_id": self.agent_id,
            "agent_type": self.agent_type,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "fingerprint": self.fingerprint,
            "permissions": list(self.permissions),
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "AgentMetadata":
        return cls(
            agent_id=str(data["agent_id"]),
            agent_type=str(data["agent_type"]),
            created_at=parse_timestamp(str(data["created_at"])),
            expires_at=parse_timestamp(str(data["expires_at"])),
            fingerprint=str(data.get("fingerprint", "")),
            permissions=[str(p) for p in (data.get("permissions") or [])],  # type: ignore[union-attr]
        )


@dataclass
class IssuedCertificate:
    """Returned by certificate issuance. Never carries the private key."""

    agent_id: str
    certificate: str
    fingerprint: str
    expires_at: datetime.datetime

    def to_dict(self) -> dict[str, object]:
        return {
            "agent_id": self.agent_id,
            "certificate": self.certificate,
            "fingerprint": self.fingerprint,
            "expires_at": self.expires_at.isoformat(),
        }


__all__ = [
    "AGENT_KEY_USAGE",
    "AgentMetadata",
    "CA_KEY_USAGE",
    "CertificateRecord",
    "IssuedCertificate",
    "utcnow",
]
