"""Tests for agent_auth.authenticator — AgentAuthenticator."""
from __future__ import annotations

import datetime
import hashlib
import itertools
import json
from pathlib import Path

import pytest

from agent_auth.audit import AuthAuditLogger
from agent_auth.authenticator import AgentAuthenticator, AuthenticationResult
from agent_auth.certificates.authority import CertificateAuthority
from agent_auth.certificates.record import utcnow
from agent_auth.certificates.store import FilesystemCertificateStore
from agent_auth.config import AuthSettings
from agent_auth.crypto.signer import KeyPair, Signer
from agent_auth.exceptions import AgentKeyNotFoundError, InvalidAgentIdError
from agent_auth.permissions import PermissionRegistry
from agent_auth.sessions.manager import SessionManager
from agent_auth.sessions.store import FilesystemSessionStore


class FakeSigner(Signer):
    """Deterministic test double: the 'public' key equals the private key."""

    _counter = itertools.count()

    def generate_keypair(self) -> KeyPair:
        key = f"fake-key-{next(self._counter)}"
        return KeyPair(private_pem=key, public_pem=key)

    def sign(self, private_key_pem: str, data: bytes) -> str:
        return hashlib.sha256(private_key_pem.encode() + data).hexdigest()

    def verify(self, public_key_pem: str, data: bytes, signature: str) -> bool:
        return self.sign(public_key_pem, data) == signature


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _build(tmp_path: Path, signer: Signer | None) -> tuple[CertificateAuthority, AgentAuthenticator, AuthAuditLogger]:
    settings = AuthSettings(security_root=tmp_path / ".security")
    store = FilesystemCertificateStore(settings.certs_dir)
    audit = AuthAuditLogger()
    ca = CertificateAuthority(
        store=store,
        settings=settings,
        root_signer=signer,
        agent_signer=signer,
        audit=audit,
    )
    ca.initialize()
    sessions = SessionManager(FilesystemSessionStore(settings.auth_dir), audit=audit)
    return ca, AgentAuthenticator(store=store, sessions=sessions, signer=signer, audit=audit), audit


@pytest.fixture()
def fake_env(tmp_path: Path) -> tuple[CertificateAuthority, AgentAuthenticator, AuthAuditLogger]:
    return _build(tmp_path, FakeSigner())


@pytest.fixture()
def real_env(tmp_path: Path) -> tuple[CertificateAuthority, AgentAuthenticator, AuthAuditLogger]:
    return _build(tmp_path, None)


# ---------------------------------------------------------------------------
# Successful authentication
# ---------------------------------------------------------------------------


class TestSuccess:
    @pytest.mark.parametrize("agent_type", ["meta-agent", "security-agent", "system-agent", "other"])
    def test_permissions_match_registry(self, fake_env, agent_type: str) -> None:
        ca, auth, _ = fake_env
        ca.generate_agent_certificate("agent-1", agent_type)
        signature = auth.sign_data("agent-1", "challenge")
        result = auth.authenticate_agent("agent-1", signature, "challenge")
        assert result.authenticated is True
        assert result.agent_type == agent_type
        assert result.permissions == PermissionRegistry().get_default_permissions(agent_type)

    def test_returns_session_token(self, fake_env) -> None:
        ca, auth, _ = fake_env
        ca.generate_agent_certificate("agent-1")
        result = auth.authenticate_agent("agent-1", auth.sign_data("agent-1", b"x"), b"x")
        assert result.session_token
        assert result.expires_at is not None and result.expires_at > utcnow()

    def test_real_crypto_roundtrip(self, real_env) -> None:
        ca, auth, _ = real_env
        ca.generate_agent_certificate("agent-real", "meta-agent")
        signature = auth.sign_data("agent-real", "nonce-123")
        result = auth.authenticate_agent("agent-real", signature, "nonce-123")
        assert result.authenticated is True
        assert "research:perform" in result.permissions

    def test_str_and_bytes_data_equivalent(self, real_env) -> None:
        ca, auth, _ = real_env
        ca.generate_agent_certificate("agent-real")
        signature = auth.sign_data("agent-real", "nonce")
        assert auth.authenticate_agent("agent-real", signature, b"nonce").authenticated is True

    def test_to_dict_success_shape(self, fake_env) -> None:
        ca, auth, _ = fake_env
        ca.generate_agent_certificate("agent-1")
        data = auth.authenticate_agent("agent-1", auth.sign_data("agent-1", "c"), "c").to_dict()
        assert set(data) == {
            "authenticated",
            "agent_id",
            "agent_type",
            "permissions",
            "session_token",
            "expires_at",
        }

    def test_success_is_audited(self, fake_env) -> None:
        ca, auth, audit = fake_env
        ca.generate_agent_certificate("agent-1")
        auth.authenticate_agent("agent-1", auth.sign_data("agent-1", "c"), "c")
        events = [e["event_type"] for e in audit.read_log()]
        assert "auth_success" in events
        assert "session_created" in events


# ---------------------------------------------------------------------------
# Ordered failure stages
# ---------------------------------------------------------------------------


class TestFailures:
    def test_unknown_agent(self, fake_env) -> None:
        _, auth, _ = fake_env
        result = auth.authenticate_agent("ghost", "sig", "data")
        assert result.authenticated is False
        assert result.error == "Agent not found"

    @pytest.mark.parametrize("bad_id", ["", None, 7])
    def test_invalid_agent_id_is_not_found(self, fake_env, bad_id: object) -> None:
        _, auth, _ = fake_env
        result = auth.authenticate_agent(bad_id, "sig", "data")  # type: ignore[arg-type]
        assert result.error == "Agent not found"

    def test_expired_certificate(self, fake_env) -> None:
        ca, auth, _ = fake_env
        ca.generate_agent_certificate("agent-1")
        meta = ca.store.load_agent_metadata("agent-1")
        meta.expires_at = utcnow() - datetime.timedelta(seconds=1)
        ca.store.save_agent_metadata(meta)
        result = auth.authenticate_agent("agent-1", auth.sign_data("agent-1", "c"), "c")
        assert result.authenticated is False
        assert "expired" in result.error

    def test_expiry_checked_before_chain(self, fake_env) -> None:
        ca, auth, _ = fake_env
        ca.generate_agent_certificate("agent-1")
        cert = ca.store.load_agent_certificate("agent-1")
        cert.issuer = "CN=Elsewhere"
        ca.store.save_agent_certificate("agent-1", cert)
        meta = ca.store.load_agent_metadata("agent-1")
        meta.expires_at = utcnow() - datetime.timedelta(days=1)
        ca.store.save_agent_metadata(meta)
        result = auth.authenticate_agent("agent-1", "whatever", "c")
        assert result.error == "Agent certificate has expired"

    def test_tampered_issuer_is_chain_error(self, real_env) -> None:
        ca, auth, _ = real_env
        ca.generate_agent_certificate("agent-1")
        signature = auth.sign_data("agent-1", "c")
        cert = ca.store.load_agent_certificate("agent-1")
        cert.issuer = "CN=Rogue CA,O=Rogue,C=XX"
        ca.store.save_agent_certificate("agent-1", cert)
        result = auth.authenticate_agent("agent-1", signature, "c")
        assert result.authenticated is False
        assert result.error == "Invalid certificate chain"

    def test_tampered_public_key_is_chain_error(self, real_env) -> None:
        ca, auth, _ = real_env
        ca.generate_agent_certificate("agent-1")
        ca.generate_agent_certificate("agent-2")
        signature = auth.sign_data("agent-2", "c")
        path = ca.store.base_dir / "agents" / "agent-1" / "cert.json"
        data = json.loads(path.read_text())
        data["public_key"] = ca.store.load_agent_certificate("agent-2").public_key
        path.write_text(json.dumps(data))
        result = auth.authenticate_agent("agent-1", signature, "c")
        assert result.error == "Invalid certificate chain"

    def test_missing_root_is_chain_error(self, fake_env) -> None:
        ca, auth, _ = fake_env
        ca.generate_agent_certificate("agent-1")
        (ca.store.base_dir / "ca-cert.json").unlink()
        result = auth.authenticate_agent("agent-1", auth.sign_data("agent-1", "c"), "c")
        assert result.error == "Invalid certificate chain"

    def test_wrong_data_is_signature_error(self, real_env) -> None:
        ca, auth, _ = real_env
        ca.generate_agent_certificate("agent-1")
        signature = auth.sign_data("agent-1", "original")
        result = auth.authenticate_agent("agent-1", signature, "forged")
        assert result.authenticated is False
        assert result.error == "Invalid signature"

    def test_other_agents_signature_rejected(self, real_env) -> None:
        ca, auth, _ = real_env
        ca.generate_agent_certificate("agent-1")
        ca.generate_agent_certificate("agent-2")
        signature = auth.sign_data("agent-2", "c")
        assert auth.authenticate_agent("agent-1", signature, "c").error == "Invalid signature"

    def test_non_string_signature(self, fake_env) -> None:
        ca, auth, _ = fake_env
        ca.generate_agent_certificate("agent-1")
        result = auth.authenticate_agent("agent-1", None, "c")  # type: ignore[arg-type]
        assert result.error == "Invalid signature"

    def test_failure_carries_no_session(self, fake_env) -> None:
        ca, auth, _ = fake_env
        ca.generate_agent_certificate("agent-1")
        result = auth.authenticate_agent("agent-1", "bad", "c")
        assert result.session_token == ""
        assert result.permissions == []
        assert result.to_dict() == {"authenticated": False, "error": "Invalid signature"}

    def test_similar_ids_keep_separate_credentials(self, fake_env) -> None:
        ca, auth, _ = fake_env
        ca.generate_agent_certificate("ops_admin", "meta-agent")
        ca.generate_agent_certificate("ops/admin", "security-agent")
        result = auth.authenticate_agent("ops_admin", auth.sign_data("ops_admin", "c"), "c")
        assert result.authenticated is True
        assert result.agent_type == "meta-agent"
        assert "certificates:manage" not in result.permissions

    def test_metadata_for_another_agent_is_not_found(self, fake_env) -> None:
        ca, auth, _ = fake_env
        ca.generate_agent_certificate("agent-1")
        signature = auth.sign_data("agent-1", "c")
        path = ca.store.base_dir / "agents" / "agent-1" / "metadata.json"
        data = json.loads(path.read_text())
        data["agent_id"] = "agent-2"
        path.write_text(json.dumps(data))
        assert auth.authenticate_agent("agent-1", signature, "c").error == "Agent not found"

    def test_naive_expiry_timestamp_read_as_utc(self, fake_env) -> None:
        ca, auth, _ = fake_env
        ca.generate_agent_certificate("agent-1")
        path = ca.store.base_dir / "agents" / "agent-1" / "metadata.json"
        data = json.loads(path.read_text())
        data["expires_at"] = "2099-01-01T00:00:00"
        path.write_text(json.dumps(data))
        result = auth.authenticate_agent("agent-1", auth.sign_data("agent-1", "c"), "c")
        assert result.authenticated is True

    def test_naive_past_expiry_is_expired(self, fake_env) -> None:
        ca, auth, _ = fake_env
        ca.generate_agent_certificate("agent-1")
        path = ca.store.base_dir / "agents" / "agent-1" / "metadata.json"
        data = json.loads(path.read_text())
        data["expires_at"] = "2000-01-01T00:00:00"
        path.write_text(json.dumps(data))
        result = auth.authenticate_agent("agent-1", auth.sign_data("agent-1", "c"), "c")
        assert result.error == "Agent certificate has expired"

    def test_failure_is_audited(self, fake_env) -> None:
        _, auth, audit = fake_env
        auth.authenticate_agent("ghost", "sig", "data")
        last = audit.read_log()[-1]
        assert last["event_type"] == "auth_failure"
        assert last["details"] == {"reason": "Agent not found"}


# ---------------------------------------------------------------------------
# sign_data
# ---------------------------------------------------------------------------


class TestSignData:
    def test_missing_key_raises(self, fake_env) -> None:
        _, auth, _ = fake_env
        with pytest.raises(AgentKeyNotFoundError, match="ghost"):
            auth.sign_data("ghost", "data")

    def test_invalid_agent_id_raises(self, fake_env) -> None:
        _, auth, _ = fake_env
        with pytest.raises(InvalidAgentIdError):
            auth.sign_data("", "data")

    def test_returns_string_signature(self, real_env) -> None:
        ca, auth, _ = real_env
        ca.generate_agent_certificate("agent-1")
        assert isinstance(auth.sign_data("agent-1", "data"), str)


def test_result_defaults_are_unauthenticated() -> None:
    result = AuthenticationResult(authenticated=False, error="x")
    assert result.expires_at is None
    assert result.agent_id == ""
