"""Exception hierarchy for agent-auth.

Only structural and fatal storage failures are raised past the public
boundary. Unknown agents, expiry and trust failures are reported as
boolean-style result objects instead.
"""
from __future__ import annotations


class AgentAuthError(Exception):
    """Base exception for all agent-auth errors."""


class InitializationError(AgentAuthError):
    """Raised when the certificate authority cannot persist its root."""


class InvalidAgentIdError(AgentAuthError, ValueError):
    """Raised when an agent_id is missing, empty, or not a string."""

    def __init__(self, agent_id: object) -> None:
        super().__init__(
            f"Agent ID is required and must be a non-empty string, got {agent_id!r}"
        )


class RootNotInitializedError(AgentAuthError):
    """Raised when issuance is attempted before the root authority exists."""

    def __init__(self) -> None:
        super().__init__(
            "Root certificate authority is not initialized. "
            "Call initialize() before issuing agent certificates."
        )


class RecordNotFoundError(AgentAuthError, KeyError):
    """Raised by a store when a requested record does not exist."""

    def __init__(self, kind: str, key: str) -> None:
        super().__init__(f"No {kind} record stored for {key!r}")
        self.kind = kind
        self.key = key


class AgentKeyNotFoundError(AgentAuthError, KeyError):
    """Raised when an agent's private key record is missing."""

    def __init__(self, agent_id: str) -> None:
        super().__init__(
            f"No private key stored for agent {agent_id!r}. "
            "Issue a certificate with generate_agent_certificate() first."
        )


__all__ = [
    "AgentAuthError",
    "AgentKeyNotFoundError",
    "InitializationError",
    "InvalidAgentIdError",
    "RecordNotFoundError",
    "RootNotInitializedError",
]
