import logging
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.metrics import track_performance
from models.base import new_id
from models.service_center import (
    ServiceCenter,
    ServiceCenterStatus,
    ServiceCenterType,
    ServiceType,
    VehicleBrand,
)
from schemas.service_center import ServiceCenterIn
from services.exceptions import DatabaseQueryError, InvalidReferenceError, NotFoundError, SlugConflictError
from services.slugs import fallback_slug, generate_slug, with_suffix
from services.taxonomy_service import (
    SERVICE_CENTER_TYPES,
    SERVICE_TYPES,
    VEHICLE_BRANDS,
    TaxonomyService,
    adjust_usage_counts,
)

logger = logging.getLogger(__name__)


def service_center_query():
    return select(ServiceCenter).options(
        selectinload(ServiceCenter.type),
        selectinload(ServiceCenter.brands),
        selectinload(ServiceCenter.service_types),
    )


class ServiceCenterService:
    """Service center directory with brand and service type associations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @track_performance(service_name="ServiceCenterService")
    async def get_center(self, center_id: str) -> ServiceCenter:
        stmt = (
            service_center_query()
            .where(ServiceCenter.id == center_id)
            .execution_options(populate_existing=True)
        )
        center = (await self.db.execute(stmt)).scalar_one_or_none()
        if center is None:
            raise NotFoundError("Service center not found")
        return center

    @track_performance(service_name="ServiceCenterService")
    async def list_centers(
        self,
        search: Optional[str] = None,
        status: Optional[ServiceCenterStatus] = None,
        type_id: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ):
        filters = []
        if search:
            pattern = f"%{search}%"
            filters.append(or_(ServiceCenter.name.ilike(pattern), ServiceCenter.city.ilike(pattern)))
        if status:
            filters.append(ServiceCenter.status == status)
        if type_id:
            filters.append(ServiceCenter.type_id == type_id)

        try:
            total = (await self.db.execute(
                select(func.count()).select_from(ServiceCenter).where(*filters)
            )).scalar_one()
            rows = (await self.db.execute(
                service_center_query()
                .where(*filters)
                .order_by(ServiceCenter.updated_at.desc(), ServiceCenter.id)
                .offset((page - 1) * limit)
                .limit(limit)
            )).scalars().all()
        except SQLAlchemyError as e:
            raise DatabaseQueryError(str(e))

        return list(rows), total

    @track_performance(service_name="ServiceCenterService")
    async def get_options(self) -> dict:
        """Active types, brands and service types for the admin form dropdowns."""
        return {
            "types": await TaxonomyService(self.db, SERVICE_CENTER_TYPES).list_active(),
            "brands": await TaxonomyService(self.db, VEHICLE_BRANDS).list_active(),
            "service_types": await TaxonomyService(self.db, SERVICE_TYPES).list_active(),
        }

    async def ensure_unique_slug(self, base_slug: str, exclude_id: Optional[str] = None) -> str:
        counter = 0
        while True:
            candidate = with_suffix(base_slug, counter)
            stmt = select(ServiceCenter.id).where(ServiceCenter.slug == candidate)
            if exclude_id:
                stmt = stmt.where(ServiceCenter.id != exclude_id)
            if (await self.db.execute(stmt.limit(1))).scalar_one_or_none() is None:
                return candidate
            counter += 1

    async def _load_many(self, model, ids: List[str], field: str) -> list:
        if not ids:
            return []
        rows = (await self.db.execute(select(model).where(model.id.in_(ids)))).scalars().all()
        by_id = {row.id: row for row in rows}
        missing = [entry_id for entry_id in ids if entry_id not in by_id]
        if missing:
            raise InvalidReferenceError(f"Unknown {field}: {', '.join(missing)}", field=field)
        return [by_id[entry_id] for entry_id in ids]

    async def _resolve(self, data: dict):
        center_type = await self.db.get(ServiceCenterType, data["type_id"])
        if center_type is None:
            raise InvalidReferenceError("The specified service center type does not exist", field="typeId")
        brands = await self._load_many(VehicleBrand, data["brand_ids"], "brandIds")
        service_types = await self._load_many(ServiceType, data["service_type_ids"], "serviceTypeIds")
        return brands, service_types

    async def _slug_conflict(self, slug: str) -> SlugConflictError:
        await self.db.rollback()
        return SlugConflictError("A service center with this slug already exists", conflict={"slug": slug})

    @staticmethod
    def _columns(data: dict) -> dict:
        return {key: value for key, value in data.items() if key not in ("brand_ids", "service_type_ids", "slug")}

    @track_performance(service_name="ServiceCenterService")
    async def create_center(self, payload: ServiceCenterIn) -> ServiceCenter:
        data = payload.model_dump()
        brands, service_types = await self._resolve(data)

        center_id = new_id()
        base_slug = generate_slug(data["slug"] or data["name"]) or fallback_slug(center_id, prefix="service-center")
        slug = await self.ensure_unique_slug(base_slug)

        center = ServiceCenter(
            id=center_id,
            slug=slug,
            brands=brands,
            service_types=service_types,
            **self._columns(data),
        )
        try:
            self.db.add(center)
            await self.db.flush()

            await adjust_usage_counts(self.db, ServiceCenterType, [data["type_id"]], 1)
            await adjust_usage_counts(self.db, VehicleBrand, data["brand_ids"], 1)
            await adjust_usage_counts(self.db, ServiceType, data["service_type_ids"], 1)
            await self.db.commit()
        except IntegrityError as e:
            raise await self._slug_conflict(slug) from e

        logger.info("Service center created", extra={"service_center_id": center_id, "slug": slug})
        return await self.get_center(center_id)

    @track_performance(service_name="ServiceCenterService")
    async def update_center(self, center_id: str, payload: ServiceCenterIn) -> ServiceCenter:
        center = await self.get_center(center_id)
        data = payload.model_dump()
        brands, service_types = await self._resolve(data)

        slug = center.slug
        requested = generate_slug(data["slug"] or "")
        if requested and requested != center.slug:
            slug = await self.ensure_unique_slug(requested, exclude_id=center_id)

        previous_type = center.type_id
        previous_brands = {brand.id for brand in center.brands}
        previous_services = {service.id for service in center.service_types}

        try:
            for field, value in self._columns(data).items():
                setattr(center, field, value)
            center.slug = slug
            center.brands = brands
            center.service_types = service_types
            await self.db.flush()

            if previous_type != data["type_id"]:
                await adjust_usage_counts(self.db, ServiceCenterType, [previous_type], -1)
                await adjust_usage_counts(self.db, ServiceCenterType, [data["type_id"]], 1)

            new_brands = set(data["brand_ids"])
            await adjust_usage_counts(self.db, VehicleBrand, previous_brands - new_brands, -1)
            await adjust_usage_counts(self.db, VehicleBrand, new_brands - previous_brands, 1)

            new_services = set(data["service_type_ids"])
            await adjust_usage_counts(self.db, ServiceType, previous_services - new_services, -1)
            await adjust_usage_counts(self.db, ServiceType, new_services - previous_services, 1)

            await self.db.commit()
        except IntegrityError as e:
            raise await self._slug_conflict(slug) from e

        logger.info("Service center updated", extra={"service_center_id": center_id})
        return await self.get_center(center_id)

    @track_performance(service_name="ServiceCenterService")
    async def delete_center(self, center_id: str) -> None:
        center = await self.get_center(center_id)

        await adjust_usage_counts(self.db, ServiceCenterType, [center.type_id], -1)
        await adjust_usage_counts(self.db, VehicleBrand, [brand.id for brand in center.brands], -1)
        await adjust_usage_counts(self.db, ServiceType, [service.id for service in center.service_types], -1)

        await self.db.delete(center)
        await self.db.commit()
        logger.info("Service center deleted", extra={"service_center_id": center_id})
