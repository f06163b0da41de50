"""PermissionRegistry — default capability sets per agent type.

Consulted only when a certificate is issued. Permissions are copied into
the agent's metadata, so changing the registry never alters the rights of
agents that already hold a certificate.
"""
from __future__ import annotations

import threading

DEFAULT_PERMISSION = "claude-md:read"

BUILTIN_PERMISSIONS: dict[str, tuple[str, ...]] = {
    "meta-agent": (
        "claude-md:read",
        "claude-md:propose-changes",
        "task:create",
        "task:monitor",
        "research:perform",
    ),
    "security-agent": (
        "claude-md:read",
        "claude-md:integrity-check",
        "security:audit",
        "certificates:manage",
    ),
    "system-agent": (
        "claude-md:read",
        "system:monitor",
        "logs:read",
    ),
}


class PermissionRegistry:
    """Lookup table from agent type to its default capability list.

    Parameters
    ----------
    extra:
        Additional or overriding agent-type entries layered on top of
        :data:`BUILTIN_PERMISSIONS`.

    Example
    -------
    ::

        registry = PermissionRegistry()
        registry.get_default_permissions("meta-agent")
        registry.get_default_permissions("unknown")  # ["claude-md:read"]
    """

    def __init__(self, extra: dict[str, list[str]] | None = None) -> None:
        self._table: dict[str, tuple[str, ...]] = dict(BUILTIN_PERMISSIONS)
        self._lock = threading.Lock()
        for agent_type, permissions in (extra or {}).items():
            self.register(agent_type, permissions)

    def register(self, agent_type: str, permissions: list[str]) -> None:
        """Add or replace the default permissions for *agent_type*."""
        if not agent_type:
            raise ValueError("agent_type must be a non-empty string")
        with self._lock:
            self._table[agent_type] = tuple(permissions)

    def get_default_permissions(self, agent_type: str) -> list[str]:
        """Return a fresh copy of the defaults for *agent_type*.

        Unrecognized types get the single read-only permission.
        """
        with self._lock:
            permissions = self._table.get(agent_type)
        if permissions is None:
            return [DEFAULT_PERMISSION]
        return list(permissions)

    def agent_types(self) -> list[str]:
        """Return the sorted list of recognized agent types."""
        with self._lock:
            return sorted(self._table)


__all__ = [
    "BUILTIN_PERMISSIONS",
    "DEFAULT_PERMISSION",
    "PermissionRegistry",
]
