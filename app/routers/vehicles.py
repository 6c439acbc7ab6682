from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from auth.principal import Principal, require_vehicle_manager
from core.db import get_db
from models.vehicle import VehicleCondition, VehicleStatus
from schemas.common import MessageOut, Page, build_pagination
from schemas.vehicle import VehicleCreate, VehicleOut, VehicleUpdate
from services.vehicle_service import VehicleFilters, VehicleService, normalize_page_size

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


def vehicle_filters(
    search: Optional[str] = None,
    condition: Optional[VehicleCondition] = None,
    make_id: Optional[str] = Query(None, alias="makeId"),
    model_id: Optional[str] = Query(None, alias="modelId"),
    body_type_id: Optional[str] = Query(None, alias="bodyTypeId"),
    axle_config_id: Optional[str] = Query(None, alias="axleConfigId"),
    fuel_type_id: Optional[str] = Query(None, alias="fuelTypeId"),
    emission_norm_id: Optional[str] = Query(None, alias="emissionNormId"),
    status: Optional[VehicleStatus] = None,
    city: Optional[str] = None,
    state: Optional[str] = None,
    year_min: Optional[int] = Query(None, alias="yearMin"),
    year_max: Optional[int] = Query(None, alias="yearMax"),
    price_min: Optional[float] = Query(None, alias="priceMin"),
    price_max: Optional[float] = Query(None, alias="priceMax"),
) -> VehicleFilters:
    return VehicleFilters(
        search=search,
        condition=condition,
        make_id=make_id,
        model_id=model_id,
        body_type_id=body_type_id,
        axle_config_id=axle_config_id,
        fuel_type_id=fuel_type_id,
        emission_norm_id=emission_norm_id,
        status=status,
        city=city,
        state=state,
        year_min=year_min,
        year_max=year_max,
        price_min=price_min,
        price_max=price_max,
    )


@router.get("", response_model=Page[VehicleOut])
async def list_vehicles(
    filters: VehicleFilters = Depends(vehicle_filters),
    sort_by: str = Query("updatedAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = 10,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_vehicle_manager),
):
    limit = normalize_page_size(limit)
    rows, total = await VehicleService(db).list_vehicles(
        filters, sort_by=sort_by, sort_order=sort_order, page=page, limit=limit
    )
    return {"data": rows, "pagination": build_pagination(total, page, limit)}


@router.post("", response_model=VehicleOut, status_code=201)
async def create_vehicle(
    payload: VehicleCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_vehicle_manager),
):
    return await VehicleService(db).create_vehicle(payload, principal)


@router.get("/{vehicle_id}", response_model=VehicleOut)
async def get_vehicle(
    vehicle_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_vehicle_manager),
):
    return await VehicleService(db).get_vehicle(vehicle_id)


@router.patch("/{vehicle_id}", response_model=VehicleOut)
async def update_vehicle(
    vehicle_id: str,
    payload: VehicleUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_vehicle_manager),
):
    return await VehicleService(db).update_vehicle(vehicle_id, payload, principal)


@router.delete("/{vehicle_id}", response_model=MessageOut)
async def archive_vehicle(
    vehicle_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_vehicle_manager),
):
    await VehicleService(db).archive_vehicle(vehicle_id, principal)
    return {"message": "Vehicle archived successfully"}
