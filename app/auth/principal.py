import logging
from dataclasses import dataclass

from fastapi import Depends, HTTPException

from auth.auth_bearer import JWTBearer
from auth.rbac import Permission, Role, has_permission

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """Identity of the caller, passed explicitly into every service call."""
    user_id: str
    role: str


async def get_current_principal(payload: dict = Depends(JWTBearer())) -> Principal:
    user_id = payload.get("user_id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return Principal(user_id=user_id, role=payload.get("role") or Role.USER.value)


def require_permission(permission: Permission):
    async def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not has_permission(principal.role, permission):
            logger.warning(
                "Permission denied",
                extra={"user_id": principal.user_id, "role": principal.role, "permission": permission.value},
            )
            raise HTTPException(status_code=401, detail="Unauthorized")
        return principal
    return dependency


require_vehicle_manager = require_permission(Permission.MANAGE_VEHICLES)
require_taxonomy_manager = require_permission(Permission.MANAGE_TAXONOMY)
require_service_center_manager = require_permission(Permission.MANAGE_SERVICE_CENTERS)
