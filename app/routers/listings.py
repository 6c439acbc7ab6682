from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.db import get_db
from models.vehicle import VehicleStatus
from schemas.common import Page, build_pagination
from schemas.vehicle import VehiclePublicOut
from services.vehicle_service import VehicleFilters, VehicleService, normalize_page_size

router = APIRouter(prefix="/listings", tags=["listings"])


@router.get("", response_model=Page[VehiclePublicOut])
async def list_published(
    search: Optional[str] = None,
    city: Optional[str] = None,
    state: Optional[str] = None,
    sort_by: str = Query("updatedAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = 10,
    db: AsyncSession = Depends(get_db),
):
    """Storefront listing: published and visible vehicles only."""
    limit = normalize_page_size(limit)
    filters = VehicleFilters(search=search, city=city, state=state, status=VehicleStatus.PUBLISHED, visible_only=True)
    rows, total = await VehicleService(db).list_vehicles(
        filters, sort_by=sort_by, sort_order=sort_order, page=page, limit=limit
    )
    return {"data": rows, "pagination": build_pagination(total, page, limit)}


@router.get("/{slug}", response_model=VehiclePublicOut)
async def get_published(slug: str, db: AsyncSession = Depends(get_db)):
    return await VehicleService(db).get_published_by_slug(slug)
