from enum import Enum
from typing import Set


class Permission(str, Enum):
    """All application permissions (fine-grained access control)"""

    VIEW_CATALOG = "view:catalog"
    MANAGE_VEHICLES = "manage:vehicles"
    MANAGE_TAXONOMY = "manage:taxonomy"
    MANAGE_SERVICE_CENTERS = "manage:service_centers"


class Role(str, Enum):
    """Application roles (coarse-grained)"""
    USER = "user"
    OWNER = "owner"


# Permission matrix - what each role can do
ROLE_PERMISSIONS: dict[Role, Set[Permission]] = {
    Role.USER: {
        Permission.VIEW_CATALOG,
    },
    Role.OWNER: set(Permission),  # All permissions
}


def has_permission(role: str, permission: Permission) -> bool:
    try:
        resolved = Role(role)
    except ValueError:
        return False
    return permission in ROLE_PERMISSIONS[resolved]
