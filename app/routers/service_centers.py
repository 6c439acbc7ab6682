from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from auth.principal import Principal, require_service_center_manager
from core.db import get_db
from models.service_center import ServiceCenterStatus
from schemas.common import MessageOut, Page, build_pagination
from schemas.service_center import ServiceCenterIn, ServiceCenterOptions, ServiceCenterOut
from services.service_center_service import ServiceCenterService

router = APIRouter(prefix="/service-centers", tags=["service-centers"])


@router.get("", response_model=Page[ServiceCenterOut])
async def list_service_centers(
    search: Optional[str] = None,
    status: Optional[ServiceCenterStatus] = None,
    type_id: Optional[str] = Query(None, alias="typeId"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_service_center_manager),
):
    rows, total = await ServiceCenterService(db).list_centers(
        search=search, status=status, type_id=type_id, page=page, limit=limit
    )
    return {"data": rows, "pagination": build_pagination(total, page, limit)}


# Declared before /{center_id} so "options" is not read as an id
@router.get("/options", response_model=ServiceCenterOptions)
async def get_service_center_options(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_service_center_manager),
):
    return await ServiceCenterService(db).get_options()


@router.post("", response_model=ServiceCenterOut, status_code=201)
async def create_service_center(
    payload: ServiceCenterIn,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_service_center_manager),
):
    return await ServiceCenterService(db).create_center(payload)


@router.get("/{center_id}", response_model=ServiceCenterOut)
async def get_service_center(
    center_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_service_center_manager),
):
    return await ServiceCenterService(db).get_center(center_id)


@router.put("/{center_id}", response_model=ServiceCenterOut)
async def update_service_center(
    center_id: str,
    payload: ServiceCenterIn,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_service_center_manager),
):
    return await ServiceCenterService(db).update_center(center_id, payload)


@router.delete("/{center_id}", response_model=MessageOut)
async def delete_service_center(
    center_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_service_center_manager),
):
    await ServiceCenterService(db).delete_center(center_id)
    return {"message": "Service center deleted successfully"}
