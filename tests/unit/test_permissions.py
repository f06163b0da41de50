"""Tests for agent_auth.permissions — PermissionRegistry."""
from __future__ import annotations

import pytest

from agent_auth.permissions import (
    BUILTIN_PERMISSIONS,
    DEFAULT_PERMISSION,
    PermissionRegistry,
)


@pytest.fixture()
def registry() -> PermissionRegistry:
    return PermissionRegistry()


class TestDefaults:
    def test_meta_agent(self, registry: PermissionRegistry) -> None:
        assert registry.get_default_permissions("meta-agent") == [
            "claude-md:read",
            "claude-md:propose-changes",
            "task:create",
            "task:monitor",
            "research:perform",
        ]

    def test_security_agent(self, registry: PermissionRegistry) -> None:
        perms = registry.get_default_permissions("security-agent")
        assert "certificates:manage" in perms
        assert "security:audit" in perms

    def test_system_agent(self, registry: PermissionRegistry) -> None:
        assert registry.get_default_permissions("system-agent") == [
            "claude-md:read",
            "system:monitor",
            "logs:read",
        ]

    def test_unknown_type_is_read_only(self, registry: PermissionRegistry) -> None:
        assert registry.get_default_permissions("mystery") == [DEFAULT_PERMISSION]

    def test_returns_copy(self, registry: PermissionRegistry) -> None:
        perms = registry.get_default_permissions("meta-agent")
        perms.append("root:everything")
        assert "root:everything" not in registry.get_default_permissions("meta-agent")

    def test_builtin_table_matches_registry(self, registry: PermissionRegistry) -> None:
        for agent_type, permissions in BUILTIN_PERMISSIONS.items():
            assert registry.get_default_permissions(agent_type) == list(permissions)


class TestRegister:
    def test_register_new_type(self, registry: PermissionRegistry) -> None:
        registry.register("research-agent", ["research:perform"])
        assert registry.get_default_permissions("research-agent") == ["research:perform"]

    def test_register_is_per_instance(self, registry: PermissionRegistry) -> None:
        registry.register("meta-agent", ["only-this"])
        assert PermissionRegistry().get_default_permissions("meta-agent") != ["only-this"]

    def test_extra_in_constructor(self) -> None:
        registry = PermissionRegistry(extra={"ops-agent": ["ops:run"]})
        assert "ops-agent" in registry.agent_types()

    def test_empty_type_rejected(self, registry: PermissionRegistry) -> None:
        with pytest.raises(ValueError):
            registry.register("", ["x"])

    def test_agent_types_sorted(self, registry: PermissionRegistry) -> None:
        assert registry.agent_types() == ["meta-agent", "security-agent", "system-agent"]
