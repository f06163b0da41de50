#!/usr/bin/env python3
"""Example: Quickstart

Demonstrates the full agent-auth flow: create the root authority, issue a
certificate, authenticate by signing a challenge, then validate and revoke
the resulting session.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install agent-auth
"""
from __future__ import annotations

import tempfile
from pathlib import Path

import agent_auth
from agent_auth import AgentAuthService, AuthSettings


def main() -> None:
    print(f"agent-auth version: {agent_auth.__version__}")

    with tempfile.TemporaryDirectory() as tmp:
        service = AgentAuthService(AuthSettings(security_root=Path(tmp) / ".security"))

        # Step 1: Create the layout and the self-signed root
        init = service.initialize()
        print(f"{init.message} (root generated: {init.generated_root})")

        # Step 2: Issue an agent certificate
        issued = service.generate_agent_certificate("quickstart-agent", "meta-agent")
        print(f"Issued certificate: fingerprint={issued.fingerprint[:16]}...")

        # Step 3: The agent signs a challenge; the server authenticates it
        challenge = "login-challenge-42"
        signature = service.sign_data("quickstart-agent", challenge)
        result = service.authenticate_agent("quickstart-agent", signature, challenge)
        print(f"Authenticated: {result.authenticated}, permissions={result.permissions}")

        # Step 4: Validate and revoke the session
        token = result.session_token
        print(f"Session valid: {service.validate_session(token).valid}")
        service.revoke_session(token)
        print(f"After revoke: {service.validate_session(token).to_dict()}")


if __name__ == "__main__":
    main()
