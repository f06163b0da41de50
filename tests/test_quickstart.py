"""Test that the quickstart API works end to end for agent-auth."""
from __future__ import annotations

import datetime
import json
from pathlib import Path

import pytest

from agent_auth import AgentAuthService, AuthSettings


@pytest.fixture()
def service(tmp_path: Path) -> AgentAuthService:
    service = AgentAuthService(AuthSettings(security_root=tmp_path / ".security"))
    service.initialize()
    return service


def test_quickstart_import() -> None:
    import agent_auth

    assert agent_auth.__version__


def test_full_session_lifecycle(service: AgentAuthService) -> None:
    issued = service.generate_agent_certificate("agent-1", "meta-agent")
    assert issued.agent_id == "agent-1"

    signature = service.sign_data("agent-1", "hello")
    result = service.authenticate_agent("agent-1", signature, "hello")
    assert result.authenticated is True
    assert result.permissions == [
        "claude-md:read",
        "claude-md:propose-changes",
        "task:create",
        "task:monitor",
        "research:perform",
    ]

    validation = service.validate_session(result.session_token)
    assert validation.valid is True
    assert validation.agent_id == "agent-1"

    assert service.revoke_session(result.session_token).success is True
    after = service.validate_session(result.session_token)
    assert after.valid is False
    assert after.error == "Session is inactive"


def test_session_past_expiry_is_invalid(service: AgentAuthService, tmp_path: Path) -> None:
    service.generate_agent_certificate("agent-1")
    signature = service.sign_data("agent-1", "hello")
    token = service.authenticate_agent("agent-1", signature, "hello").session_token

    path = tmp_path / ".security" / "auth" / f"session-{token}.json"
    record = json.loads(path.read_text())
    past = datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(minutes=1)
    record["expires_at"] = past.isoformat()
    path.write_text(json.dumps(record))

    assert service.validate_session(token).error == "Session has expired"
    assert not path.exists()


def test_signature_from_one_agent_rejected_for_another(service: AgentAuthService) -> None:
    service.generate_agent_certificate("agent-a")
    service.generate_agent_certificate("agent-b")
    signature = service.sign_data("agent-a", "hello")
    result = service.authenticate_agent("agent-b", signature, "hello")
    assert result.authenticated is False
    assert result.error == "Invalid signature"


def test_reissue_invalidates_old_signatures(service: AgentAuthService) -> None:
    service.generate_agent_certificate("agent-1")
    old_signature = service.sign_data("agent-1", "hello")
    service.generate_agent_certificate("agent-1")
    assert service.authenticate_agent("agent-1", old_signature, "hello").error == "Invalid signature"


def test_audit_trail_written(service: AgentAuthService, tmp_path: Path) -> None:
    service.generate_agent_certificate("agent-1")
    service.authenticate_agent("agent-1", "bogus", "hello")
    events = [e["event_type"] for e in service.audit.read_log()]
    assert events[0] == "ca_generated"
    assert "certificate_issued" in events
    assert events[-1] == "auth_failure"
    assert (tmp_path / ".security" / "audit.jsonl").exists()


def test_reinitialize_keeps_root(service: AgentAuthService) -> None:
    before = service.cert_store.load_root_fingerprint()
    result = service.initialize()
    assert result.success is True
    assert result.generated_root is False
    assert service.cert_store.load_root_fingerprint() == before
