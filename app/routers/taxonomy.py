from typing import Optional, Type

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from auth.principal import Principal, require_taxonomy_manager
from core.db import get_db
from models.base import RecordStatus
from schemas.common import Page, build_pagination
from schemas.taxonomy import (
    BrandedCreate,
    BrandedOut,
    BrandedUpdate,
    DeleteOut,
    ModelCreate,
    ModelOut,
    ModelUpdate,
    TaxonomyCreate,
    TaxonomyOut,
    TaxonomyUpdate,
    VariantCreate,
    VariantOut,
    VariantUpdate,
)
from services import taxonomy_service as kinds
from services.taxonomy_service import TaxonomyKind, TaxonomyService


def build_taxonomy_router(
    prefix: str,
    kind: TaxonomyKind,
    create_schema: Type[BaseModel] = TaxonomyCreate,
    update_schema: Type[BaseModel] = TaxonomyUpdate,
    out_schema: Type[BaseModel] = TaxonomyOut,
) -> APIRouter:
    """CRUD routes for one lookup table. Every route is owner only."""
    router = APIRouter(prefix=prefix, tags=["taxonomy"])

    @router.get("", response_model=Page[out_schema])
    async def list_entries(
        search: Optional[str] = None,
        status: Optional[RecordStatus] = None,
        make_id: Optional[str] = Query(None, alias="makeId"),
        model_id: Optional[str] = Query(None, alias="modelId"),
        sort_by: str = Query("updatedAt", alias="sortBy"),
        sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
        page: int = Query(1, ge=1),
        page_size: int = Query(10, ge=1, le=100, alias="pageSize"),
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_taxonomy_manager),
    ):
        parent_id = {"make_id": make_id, "model_id": model_id}.get(kind.parent_attr)
        rows, total = await TaxonomyService(db, kind).list_entries(
            search=search,
            status=status,
            parent_id=parent_id,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            page_size=page_size,
        )
        return {"data": rows, "pagination": build_pagination(total, page, page_size)}

    @router.post("", response_model=out_schema, status_code=201)
    async def create_entry(
        payload: create_schema,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_taxonomy_manager),
    ):
        return await TaxonomyService(db, kind).create_entry(payload)

    @router.get("/{entry_id}", response_model=out_schema)
    async def get_entry(
        entry_id: str,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_taxonomy_manager),
    ):
        return await TaxonomyService(db, kind).get_entry(entry_id)

    @router.patch("/{entry_id}", response_model=out_schema)
    async def update_entry(
        entry_id: str,
        payload: update_schema,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_taxonomy_manager),
    ):
        return await TaxonomyService(db, kind).update_entry(entry_id, payload)

    @router.delete("/{entry_id}", response_model=DeleteOut)
    async def delete_entry(
        entry_id: str,
        db: AsyncSession = Depends(get_db),
        principal: Principal = Depends(require_taxonomy_manager),
    ):
        return await TaxonomyService(db, kind).delete_entry(entry_id)

    return router


routers = [
    build_taxonomy_router("/makes", kinds.MAKES, BrandedCreate, BrandedUpdate, BrandedOut),
    build_taxonomy_router("/models", kinds.MODELS, ModelCreate, ModelUpdate, ModelOut),
    build_taxonomy_router("/variants", kinds.VARIANTS, VariantCreate, VariantUpdate, VariantOut),
    build_taxonomy_router("/body-types", kinds.BODY_TYPES),
    build_taxonomy_router("/axle-configs", kinds.AXLE_CONFIGS),
    build_taxonomy_router("/fuel-types", kinds.FUEL_TYPES),
    build_taxonomy_router("/emission-norms", kinds.EMISSION_NORMS),
    build_taxonomy_router("/transmissions", kinds.TRANSMISSIONS),
    build_taxonomy_router("/feature-tags", kinds.FEATURE_TAGS),
    build_taxonomy_router("/vehicle-brands", kinds.VEHICLE_BRANDS, BrandedCreate, BrandedUpdate, BrandedOut),
    build_taxonomy_router("/service-center-types", kinds.SERVICE_CENTER_TYPES),
    build_taxonomy_router("/service-types", kinds.SERVICE_TYPES),
]
