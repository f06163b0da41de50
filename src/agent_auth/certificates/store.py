"""Certificate storage — abstract interface and filesystem implementation.

CertificateStore defines the storage contract for the root authority and
for per-agent records. FilesystemCertificateStore persists them under a
configurable base directory::

    <base_dir>/ca-private.pem
    <base_dir>/ca-cert.json
    <base_dir>/ca-fingerprint.txt
    <base_dir>/agents/<encoded agent_id>/private.pem
    <base_dir>/agents/<encoded agent_id>/cert.json
    <base_dir>/agents/<encoded agent_id>/metadata.json

Agent ids are percent-encoded into directory names: distinct ids never
share a directory and no id resolves outside ``agents/``.

Every write goes through a temporary file and an atomic rename, so readers
never observe a half-written record.
"""
from __future__ import annotations

import contextlib
import fcntl
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator
from urllib.parse import quote, unquote

from agent_auth.certificates.record import AgentMetadata, CertificateRecord
from agent_auth.exceptions import RecordNotFoundError

CA_KEY_FILE = "ca-private.pem"
CA_CERT_FILE = "ca-cert.json"
CA_FINGERPRINT_FILE = "ca-fingerprint.txt"
CA_LOCK_FILE = ".ca.lock"
AGENT_KEY_FILE = "private.pem"
AGENT_CERT_FILE = "cert.json"
AGENT_METADATA_FILE = "metadata.json"


def atomic_write_text(path: Path, text: str, mode: int = 0o644) -> None:
    """Write *text* to *path* via a sibling temp file and ``os.replace``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise


class CertificateStore(ABC):
    """Abstract base class for certificate storage backends."""

    @abstractmethod
    def ensure_layout(self) -> None:
        """Create any directories the backend needs. Idempotent."""

    @abstractmethod
    @contextlib.contextmanager
    def root_generation_lock(self) -> Iterator[None]:
        """Hold an exclusive lock while the root authority is created."""

    # ------------------------------------------------------------------
    # Root authority
    # ------------------------------------------------------------------

    @abstractmethod
    def has_root_certificate(self) -> bool:
        """Return True if a root certificate record exists."""

    @abstractmethod
    def has_root_key(self) -> bool:
        """Return True if a root private key record exists."""

    @abstractmethod
    def save_root(self, cert: CertificateRecord, private_key_pem: str, fingerprint: str) -> None:
        """Persist the root private key, certificate and fingerprint."""

    @abstractmethod
    def load_root_certificate(self) -> CertificateRecord:
        """Return the root certificate.

        Raises
        ------
        RecordNotFoundError
            If the root certificate has not been generated.
        """

    @abstractmethod
    def load_root_key(self) -> str:
        """Return the root private key PEM.

        Raises
        ------
        RecordNotFoundError
            If the root key has not been generated.
        """

    @abstractmethod
    def load_root_fingerprint(self) -> str:
        """Return the stored root public key fingerprint."""

    # ------------------------------------------------------------------
    # Agents
    # ------------------------------------------------------------------

    @abstractmethod
    def save_agent_key(self, agent_id: str, private_key_pem: str) -> None:
        """Persist an agent's private key."""

    @abstractmethod
    def save_agent_certificate(self, agent_id: str, cert: CertificateRecord) -> None:
        """Persist an agent's certificate, replacing any previous one."""

    @abstractmethod
    def save_agent_metadata(self, metadata: AgentMetadata) -> None:
        """Persist an agent's metadata. Written after key and certificate."""

    @abstractmethod
    def load_agent_key(self, agent_id: str) -> str:
        """Return an agent's private key PEM. Raises RecordNotFoundError."""

    @abstractmethod
    def load_agent_certificate_text(self, agent_id: str) -> str:
        """Return an agent's raw certificate JSON. Raises RecordNotFoundError."""

    @abstractmethod
    def load_agent_metadata(self, agent_id: str) -> AgentMetadata:
        """Return an agent's metadata. Raises RecordNotFoundError."""

    @abstractmethod
    def list_agents(self) -> list[str]:
        """Return the ids of all agents with stored metadata."""

    def load_agent_certificate(self, agent_id: str) -> CertificateRecord:
        """Return an agent's parsed certificate. Raises RecordNotFoundError."""
        return CertificateRecord.from_json(self.load_agent_certificate_text(agent_id))

    def agent_exists(self, agent_id: str) -> bool:
        """Return True if the agent's metadata record exists."""
        try:
            self.load_agent_metadata(agent_id)
        except RecordNotFoundError:
            return False
        return True


class FilesystemCertificateStore(CertificateStore):
    """Filesystem-backed certificate storage.

    Parameters
    ----------
    base_dir:
        Root directory for certificate storage.
    """

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = Path(base_dir)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def ensure_layout(self) -> None:
        self._base_dir.mkdir(parents=True, exist_ok=True)
        (self._base_dir / "agents").mkdir(exist_ok=True)

    @contextlib.contextmanager
    def root_generation_lock(self) -> Iterator[None]:
        self._base_dir.mkdir(parents=True, exist_ok=True)
        with (self._base_dir / CA_LOCK_FILE).open("a", encoding="utf-8") as fh:
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(fh.fileno(), fcntl.LOCK_UN)

    # ------------------------------------------------------------------
    # Root authority
    # ------------------------------------------------------------------

    def has_root_certificate(self) -> bool:
        return (self._base_dir / CA_CERT_FILE).exists()

    def has_root_key(self) -> bool:
        return (self._base_dir / CA_KEY_FILE).exists()

    def save_root(self, cert: CertificateRecord, private_key_pem: str, fingerprint: str) -> None:
        atomic_write_text(self._base_dir / CA_KEY_FILE, private_key_pem, mode=0o600)
        atomic_write_text(self._base_dir / CA_CERT_FILE, cert.to_json())
        atomic_write_text(self._base_dir / CA_FINGERPRINT_FILE, fingerprint)

    def load_root_certificate(self) -> CertificateRecord:
        return CertificateRecord.from_json(self._read(self._base_dir / CA_CERT_FILE, "root certificate", "ca"))

    def load_root_key(self) -> str:
        return self._read(self._base_dir / CA_KEY_FILE, "root key", "ca")

    def load_root_fingerprint(self) -> str:
        return self._read(self._base_dir / CA_FINGERPRINT_FILE, "root fingerprint", "ca").strip()

    # ------------------------------------------------------------------
    # Agents
    # ------------------------------------------------------------------

    def save_agent_key(self, agent_id: str, private_key_pem: str) -> None:
        atomic_write_text(self._agent_dir(agent_id) / AGENT_KEY_FILE, private_key_pem, mode=0o600)

    def save_agent_certificate(self, agent_id: str, cert: CertificateRecord) -> None:
        atomic_write_text(self._agent_dir(agent_id) / AGENT_CERT_FILE, cert.to_json())

    def save_agent_metadata(self, metadata: AgentMetadata) -> None:
        atomic_write_text(
            self._agent_dir(metadata.agent_id) / AGENT_METADATA_FILE,
            json.dumps(metadata.to_dict(), indent=2),
        )

    def load_agent_key(self, agent_id: str) -> str:
        return self._read(self._agent_dir(agent_id) / AGENT_KEY_FILE, "agent key", agent_id)

    def load_agent_certificate_text(self, agent_id: str) -> str:
        return self._read(self._agent_dir(agent_id) / AGENT_CERT_FILE, "agent certificate", agent_id)

    def load_agent_metadata(self, agent_id: str) -> AgentMetadata:
        text = self._read(self._agent_dir(agent_id) / AGENT_METADATA_FILE, "agent metadata", agent_id)
        return AgentMetadata.from_dict(json.loads(text))

    def list_agents(self) -> list[str]:
        """Return sorted agent ids whose directories hold metadata."""
        agents_dir = self._base_dir / "agents"
        if not agents_dir.is_dir():
            return []
        return sorted(
            unquote(d.name) for d in agents_dir.iterdir() if (d / AGENT_METADATA_FILE).is_file()
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _agent_dir(self, agent_id: str) -> Path:
        """Return the directory path for a given agent_id."""
        safe_name = quote(agent_id, safe="")
        if safe_name in (".", ".."):
            safe_name = safe_name.replace(".", "%2E")
        return self._base_dir / "agents" / safe_name

    @staticmethod
    def _read(path: Path, kind: str, key: str) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise RecordNotFoundError(kind, key) from exc


__all__ = [
    "CertificateStore",
    "FilesystemCertificateStore",
    "atomic_write_text",
]
