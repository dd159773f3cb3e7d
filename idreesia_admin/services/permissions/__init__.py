from .service import (
    ACTIONS,
    RESOURCE_PERMISSIONS,
    Capabilities,
    PermissionDeniedError,
    can,
    permission_name,
    require,
)

__all__ = [
    "ACTIONS",
    "RESOURCE_PERMISSIONS",
    "Capabilities",
    "PermissionDeniedError",
    "can",
    "permission_name",
    "require",
]
