"""AuthSettings — deployment configuration for the agent authority.

Sensible defaults are provided for all parameters. Operators can override
them in code or through ``AGENT_AUTH_*`` environment variables, which
pydantic-settings loads and validates; keyword arguments win over the
environment.
"""
from __future__ import annotations

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_SECONDS_PER_DAY = 86400


class AuthSettings(BaseSettings):
    """Configuration shared by the CA, authenticator and session manager.

    Parameters
    ----------
    security_root:
        Directory holding certificates, sessions and the audit log.
    session_ttl_seconds:
        Lifetime of a bearer session. Must be shorter than the agent
        certificate lifetime.
    agent_cert_validity_days:
        Fixed lifetime of an issued agent certificate.
    ca_validity_days:
        Lifetime recorded in the self-signed root certificate.
    ca_common_name:
        Common name of the root authority subject.
    ca_organization:
        Organization of the root authority subject.
    agent_organization:
        Organization written into every agent certificate subject.
    country:
        Country code written into certificate subjects.
    audit_log_enabled:
        Whether audit events are appended to ``<security_root>/audit.jsonl``.
    """

    model_config = SettingsConfigDict(env_prefix="AGENT_AUTH_")

    security_root: Path = Field(default_factory=lambda: Path.cwd() / ".security")
    session_ttl_seconds: int = Field(default=3600, gt=0)
    agent_cert_validity_days: int = Field(default=90, gt=0)
    ca_validity_days: int = Field(default=3650, gt=0)
    ca_common_name: str = "Agent Root CA"
    ca_organization: str = "Agent Security"
    agent_organization: str = "Agent Platform"
    country: str = "US"
    audit_log_enabled: bool = True

    @model_validator(mode="after")
    def check_session_outlived_by_certificate(self) -> "AuthSettings":
        """Sessions are leases under a certificate and must expire first."""
        if self.session_ttl_seconds >= self.agent_cert_validity_days * _SECONDS_PER_DAY:
            raise ValueError(
                "session_ttl_seconds must be shorter than agent_cert_validity_days, got "
                f"{self.session_ttl_seconds}s >= {self.agent_cert_validity_days}d"
            )
        return self

    @property
    def certs_dir(self) -> Path:
        return self.security_root / "certificates"

    @property
    def auth_dir(self) -> Path:
        return self.security_root / "auth"

    @property
    def audit_log_path(self) -> Path:
        return self.security_root / "audit.jsonl"

    @property
    def ca_subject(self) -> str:
        """Distinguished name of the root authority."""
        return f"CN={self.ca_common_name},O={self.ca_organization},C={self.country}"


__all__ = ["AuthSettings"]
