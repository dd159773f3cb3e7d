from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Literal, Mapping, Optional, Union

logger = logging.getLogger(__name__)

Action = Literal["view", "create", "edit", "delete"]
ACTIONS: tuple[str, ...] = ("view", "create", "edit", "delete")


class PermissionDeniedError(PermissionError):
    def __init__(self, action: str, resource: str) -> None:
        super().__init__(f"Not allowed to {action} {resource}")
        self.action = action
        self.resource = resource


# resource name -> (permission noun, supported actions)
RESOURCE_PERMISSIONS: dict[str, tuple[str, tuple[str, ...]]] = {
    "zones": ("zones", ACTIONS),
    "mehfils": ("mehfils", ACTIONS),
    "naat_shareefs": ("naats", ACTIONS),
    "messages": ("messages", ACTIONS),
    "karkun_join_requests": ("karkunan", ACTIONS),
    "tarteeb_requests": ("karkunan", ACTIONS),
    "khatoot": ("karkunan", ACTIONS),
    "tags": ("tags", ("view", "delete")),
    "categories": ("categories", ACTIONS),
    "wazaif": ("wazaifs", ACTIONS),
    "parhaiyan": ("parhaiyan", ACTIONS),
    "namaz": ("namaz", ("view",)),
    "feedback": ("feedback", ACTIONS),
    "mehfil_directory": ("mehfil directory", ACTIONS),
    "karkunan": ("karkunan", ACTIONS),
    "message_schedules": ("messages", ACTIONS),
    "taleemat": ("taleemat", ACTIONS),
}


def permission_name(action: str, resource: str) -> Optional[str]:
    entry = RESOURCE_PERMISSIONS.get(resource)
    if entry is None:
        return None
    noun, actions = entry
    if action not in actions:
        return None
    return f"{action} {noun}"


def _role_permissions(role: Any) -> list[str]:
    if not isinstance(role, Mapping):
        return []
    names: list[str] = []
    for permission in role.get("permissions") or []:
        if isinstance(permission, Mapping) and permission.get("name"):
            names.append(str(permission["name"]))
        elif isinstance(permission, str):
            names.append(permission)
    return names


@dataclass(frozen=True, slots=True)
class Capabilities:
    is_super_admin: bool = False
    permissions: frozenset[str] = frozenset()
    is_zone_admin: bool = False
    is_mehfil_admin: bool = False
    is_region_admin: bool = False

    @classmethod
    def anonymous(cls) -> "Capabilities":
        return cls()

    @classmethod
    def from_user(cls, user: Optional[Mapping[str, Any]]) -> "Capabilities":
        """Union the permission names granted by every role of ``user``."""
        if not user:
            return cls.anonymous()
        names: set[str] = set()
        roles = user.get("roles") or []
        if roles:
            for role in roles:
                names.update(_role_permissions(role))
        else:
            names.update(_role_permissions(user.get("role")))
        return cls(
            is_super_admin=bool(user.get("is_super_admin")),
            permissions=frozenset(names),
            is_zone_admin=bool(user.get("is_zone_admin")),
            is_mehfil_admin=bool(user.get("is_mehfil_admin")),
            is_region_admin=bool(user.get("is_region_admin")),
        )

    @property
    def is_admin(self) -> bool:
        return self.is_super_admin or self.is_zone_admin or self.is_mehfil_admin or self.is_region_admin

    def has_permission(self, permission: Union[str, Iterable[str]]) -> bool:
        """Any-of check; super admins hold every permission."""
        if self.is_super_admin:
            return True
        if isinstance(permission, str):
            return permission in self.permissions
        return any(name in self.permissions for name in permission)

    def has_all_permissions(self, permissions: Iterable[str]) -> bool:
        if self.is_super_admin:
            return True
        return all(name in self.permissions for name in permissions)


def can(capabilities: Capabilities, action: str, resource: str) -> bool:
    """Single gate for both affordance rendering and action handlers."""
    name = permission_name(action, resource)
    if name is None:
        return False
    return capabilities.has_permission(name)


def require(capabilities: Capabilities, action: str, resource: str) -> None:
    if not can(capabilities, action, resource):
        logger.warning("Denied %s on %s", action, resource)
        raise PermissionDeniedError(action, resource)
