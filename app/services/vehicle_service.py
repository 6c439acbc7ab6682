import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from auth.principal import Principal
from core.metrics import track_performance
from core.prometheus_metrics import prometheus_collector
from models.base import new_id
from models.taxonomy import (
    VehicleAxleConfig,
    VehicleBodyType,
    VehicleEmissionNorm,
    VehicleFeatureTag,
    VehicleFuelType,
    VehicleMake,
    VehicleModel,
    VehicleTransmission,
    VehicleVariant,
)
from models.vehicle import Vehicle, VehicleCondition, VehicleFeatureMap, VehicleStatus
from schemas.vehicle import VehicleCreate, VehicleUpdate
from services.exceptions import (
    DatabaseQueryError,
    DuplicateRegistrationError,
    InvalidReferenceError,
    NotFoundError,
    PublishReadinessError,
    SlugConflictError,
)
from services.slugs import build_key_specs, build_title, fallback_slug, generate_slug, with_suffix
from services.taxonomy_service import adjust_usage_counts
from services.validators import BusinessRules

logger = logging.getLogger(__name__)


# (column, api name, taxonomy model)
RELATIONS = (
    ("make_id", "makeId", VehicleMake),
    ("model_id", "modelId", VehicleModel),
    ("variant_id", "variantId", VehicleVariant),
    ("body_type_id", "bodyTypeId", VehicleBodyType),
    ("axle_config_id", "axleConfigId", VehicleAxleConfig),
    ("fuel_type_id", "fuelTypeId", VehicleFuelType),
    ("emission_norm_id", "emissionNormId", VehicleEmissionNorm),
    ("transmission_id", "transmissionId", VehicleTransmission),
)

# Attributes the publish gate and duplicate guard look at
GATED_ATTRIBUTES = (
    "condition", "make_id", "model_id", "model_year", "body_type_id", "axle_config_id",
    "city", "state", "pincode", "asking_price_inr", "cover_url", "slug", "reg_no", "status",
)

SORTABLE_COLUMNS = {
    "updatedAt": Vehicle.updated_at,
    "modelYear": Vehicle.model_year,
    "askingPriceInr": Vehicle.asking_price_inr,
    "title": Vehicle.title,
}

VALID_PAGE_SIZES = (10, 25, 50, 100)
DEFAULT_PAGE_SIZE = 10

DUPLICATE_REGISTRATION_MESSAGE = (
    "A published used vehicle with this registration number and state already exists"
)


@dataclass
class VehicleFilters:
    search: Optional[str] = None
    condition: Optional[VehicleCondition] = None
    make_id: Optional[str] = None
    model_id: Optional[str] = None
    body_type_id: Optional[str] = None
    axle_config_id: Optional[str] = None
    fuel_type_id: Optional[str] = None
    emission_norm_id: Optional[str] = None
    status: Optional[VehicleStatus] = None
    city: Optional[str] = None
    state: Optional[str] = None
    year_min: Optional[int] = None
    year_max: Optional[int] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    visible_only: bool = False


def normalize_page_size(limit: Optional[int]) -> int:
    return limit if limit in VALID_PAGE_SIZES else DEFAULT_PAGE_SIZE


def vehicle_query():
    """Vehicle select with every relation the API returns eagerly loaded."""
    return select(Vehicle).options(
        selectinload(Vehicle.make),
        selectinload(Vehicle.model),
        selectinload(Vehicle.variant),
        selectinload(Vehicle.body_type),
        selectinload(Vehicle.axle_config),
        selectinload(Vehicle.fuel_type),
        selectinload(Vehicle.emission_norm),
        selectinload(Vehicle.transmission),
        selectinload(Vehicle.features).selectinload(VehicleFeatureMap.feature_tag),
    )


class VehicleService:
    """
    Vehicle record lifecycle: create, partial update, archive, listing.

    Every mutation runs in one transaction in this order:
    derive title/slug -> publish gate -> duplicate registration guard ->
    unique slug -> single write (with key specs, usage counts and feature tags).
    Nothing is written when any step rejects the request.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # Reads

    @track_performance(service_name="VehicleService")
    async def get_vehicle(self, vehicle_id: str) -> Vehicle:
        stmt = (
            vehicle_query()
            .where(Vehicle.id == vehicle_id)
            .execution_options(populate_existing=True)
        )
        vehicle = (await self.db.execute(stmt)).scalar_one_or_none()
        if vehicle is None:
            raise NotFoundError("Vehicle not found")
        return vehicle

    @track_performance(service_name="VehicleService")
    async def list_vehicles(
        self,
        filters: VehicleFilters,
        sort_by: str = "updatedAt",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ):
        conditions = self._filter_conditions(filters)

        column = SORTABLE_COLUMNS.get(sort_by)
        if column is None:
            order = Vehicle.updated_at.desc()
        else:
            order = column.asc() if sort_order == "asc" else column.desc()

        try:
            total = (await self.db.execute(
                select(func.count()).select_from(Vehicle).where(*conditions)
            )).scalar_one()
            rows = (await self.db.execute(
                vehicle_query()
                .where(*conditions)
                .order_by(order, Vehicle.id)
                .offset((page - 1) * limit)
                .limit(limit)
            )).scalars().all()
        except SQLAlchemyError as e:
            raise DatabaseQueryError(str(e))

        return list(rows), total

    @track_performance(service_name="VehicleService")
    async def get_published_by_slug(self, slug: str) -> Vehicle:
        stmt = vehicle_query().where(
            Vehicle.slug == slug,
            Vehicle.status == VehicleStatus.PUBLISHED,
            Vehicle.visibility.is_(True),
        )
        vehicle = (await self.db.execute(stmt)).scalar_one_or_none()
        if vehicle is None:
            raise NotFoundError("Vehicle not found")
        return vehicle

    def _filter_conditions(self, filters: VehicleFilters) -> list:
        conditions = []
        if filters.search:
            pattern = f"%{filters.search}%"
            conditions.append(or_(
                Vehicle.title.ilike(pattern),
                Vehicle.slug.ilike(pattern),
                Vehicle.reg_no.ilike(pattern),
                Vehicle.city.ilike(pattern),
                Vehicle.state.ilike(pattern),
                Vehicle.make.has(VehicleMake.name.ilike(pattern)),
                Vehicle.model.has(VehicleModel.name.ilike(pattern)),
            ))

        for attr in ("condition", "make_id", "model_id", "body_type_id", "axle_config_id",
                     "fuel_type_id", "emission_norm_id", "status", "city", "state"):
            value = getattr(filters, attr)
            if value:
                conditions.append(getattr(Vehicle, attr) == value)

        if filters.year_min is not None:
            conditions.append(Vehicle.model_year >= filters.year_min)
        if filters.year_max is not None:
            conditions.append(Vehicle.model_year <= filters.year_max)
        if filters.price_min is not None:
            conditions.append(Vehicle.asking_price_inr >= filters.price_min)
        if filters.price_max is not None:
            conditions.append(Vehicle.asking_price_inr <= filters.price_max)
        if filters.visible_only:
            conditions.append(Vehicle.visibility.is_(True))
        return conditions

    # Derivation and guards

    async def ensure_unique_slug(self, base_slug: str, exclude_id: Optional[str] = None) -> str:
        """Probe base, base-1, base-2, ... until no other vehicle holds the slug."""
        counter = 0
        while True:
            candidate = with_suffix(base_slug, counter)
            stmt = select(Vehicle.id).where(Vehicle.slug == candidate)
            if exclude_id:
                stmt = stmt.where(Vehicle.id != exclude_id)
            if (await self.db.execute(stmt.limit(1))).scalar_one_or_none() is None:
                if counter:
                    prometheus_collector.record_slug_collision(counter)
                return candidate
            counter += 1

    async def _resolve_references(self, ids: Dict[str, Optional[str]]) -> dict:
        """Loads every referenced taxonomy row in `ids`, keyed by column name."""
        resolved = {}
        for column, api_name, model in RELATIONS:
            entry_id = ids.get(column)
            if not entry_id:
                continue
            entry = await self.db.get(model, entry_id)
            if entry is None:
                raise InvalidReferenceError(f"Referenced {api_name} does not exist", field=api_name)
            resolved[column] = entry
        return resolved

    @staticmethod
    def _check_hierarchy(merged: dict, resolved: dict) -> None:
        model = resolved.get("model_id")
        if model is not None and model.make_id != merged.get("make_id"):
            raise InvalidReferenceError("The selected model does not belong to the selected make", field="modelId")
        variant = resolved.get("variant_id")
        if variant is not None and variant.model_id != merged.get("model_id"):
            raise InvalidReferenceError("The selected variant does not belong to the selected model", field="variantId")

    async def _ensure_feature_tags_exist(self, tag_ids: List[str]) -> None:
        if not tag_ids:
            return
        found = set((await self.db.execute(
            select(VehicleFeatureTag.id).where(VehicleFeatureTag.id.in_(tag_ids))
        )).scalars().all())
        missing = [tag_id for tag_id in tag_ids if tag_id not in found]
        if missing:
            raise InvalidReferenceError(
                f"Unknown feature tags: {', '.join(missing)}", field="featureTagIds"
            )

    async def _check_publish_readiness(self, merged: dict, vehicle_id: Optional[str]) -> None:
        missing = BusinessRules.missing_publish_fields(merged)
        if missing:
            logger.info(
                "Publish rejected, required fields missing",
                extra={"vehicle_id": vehicle_id, "missing_fields": missing},
            )
            raise PublishReadinessError(missing)

    async def _check_duplicate_registration(self, merged: dict, exclude_id: Optional[str] = None) -> None:
        stmt = select(Vehicle).where(
            Vehicle.reg_no == merged["reg_no"],
            Vehicle.state == merged["state"],
            Vehicle.condition == VehicleCondition.USED,
            Vehicle.status == VehicleStatus.PUBLISHED,
        )
        if exclude_id:
            stmt = stmt.where(Vehicle.id != exclude_id)
        duplicate = (await self.db.execute(stmt.limit(1))).scalar_one_or_none()
        if duplicate is not None:
            logger.warning(
                "Duplicate registration rejected",
                extra={"vehicle_id": exclude_id, "reg_no": merged["reg_no"], "duplicate_id": duplicate.id},
            )
            raise DuplicateRegistrationError(
                DUPLICATE_REGISTRATION_MESSAGE,
                conflict={
                    "id": duplicate.id,
                    "slug": duplicate.slug,
                    "title": duplicate.title,
                    "regNo": duplicate.reg_no,
                    "state": duplicate.state,
                },
            )

    async def _key_specs_for(self, merged: dict, resolved: dict) -> str:
        axle_config = resolved.get("axle_config_id")
        if axle_config is None and merged.get("axle_config_id"):
            axle_config = await self.db.get(VehicleAxleConfig, merged["axle_config_id"])
        emission_norm = resolved.get("emission_norm_id")
        if emission_norm is None and merged.get("emission_norm_id"):
            emission_norm = await self.db.get(VehicleEmissionNorm, merged["emission_norm_id"])

        return build_key_specs(
            engine_cc=merged.get("engine_cc"),
            axle_config_name=axle_config.name if axle_config else None,
            gvw_t=merged.get("gvw_t"),
            emission_norm_name=emission_norm.name if emission_norm else None,
        )

    async def _conflict_from(self, error: IntegrityError, slug: str, merged: dict) -> Exception:
        """Maps a unique constraint violation raised by storage to a conflict."""
        await self.db.rollback()
        message = str(error.orig).lower()
        if "slug" in message:
            return SlugConflictError("A vehicle with this slug already exists", conflict={"slug": slug})
        if "reg_no" in message or "uq_vehicles_published_used_reg" in message:
            return DuplicateRegistrationError(
                DUPLICATE_REGISTRATION_MESSAGE,
                conflict={"regNo": merged.get("reg_no"), "state": merged.get("state")},
            )
        logger.error("Integrity error while saving vehicle", extra={"error": str(error.orig)})
        return DatabaseQueryError(str(error.orig))

    # Mutations

    @track_performance(service_name="VehicleService")
    async def create_vehicle(self, payload: VehicleCreate, principal: Principal) -> Vehicle:
        data = payload.model_dump()
        feature_tag_ids = data.pop("feature_tag_ids") or []
        vehicle_id = new_id()

        resolved = await self._resolve_references(data)
        self._check_hierarchy(data, resolved)
        await self._ensure_feature_tags_exist(feature_tag_ids)

        title = (data.pop("title") or "").strip() or build_title(
            data["model_year"],
            resolved["make_id"].name,
            resolved["model_id"].name,
            resolved["variant_id"].name if "variant_id" in resolved else None,
            resolved["axle_config_id"].name,
            resolved["body_type_id"].name,
        )
        base_slug = generate_slug((data.pop("slug") or "").strip() or title) or fallback_slug(vehicle_id)

        merged = {**data, "slug": base_slug}
        if data["status"] == VehicleStatus.PUBLISHED:
            await self._check_publish_readiness(merged, None)
        if BusinessRules.needs_registration_check(merged):
            await self._check_duplicate_registration(merged)

        slug = await self.ensure_unique_slug(base_slug)

        key_specs = await self._key_specs_for(data, resolved)
        vehicle = Vehicle(
            id=vehicle_id,
            title=title,
            slug=slug,
            key_specs=key_specs,
            created_by=principal.user_id,
            updated_by=principal.user_id,
            **{**data, "permit_states_json": data["permit_states_json"] or [],
               "gallery_json": data["gallery_json"] or []},
        )
        try:
            self.db.add(vehicle)
            self.db.add_all(
                VehicleFeatureMap(vehicle_id=vehicle_id, feature_tag_id=tag_id) for tag_id in feature_tag_ids
            )
            await self.db.flush()
            for column, _api_name, model in RELATIONS:
                await adjust_usage_counts(self.db, model, [data.get(column)], 1)
            await adjust_usage_counts(self.db, VehicleFeatureTag, feature_tag_ids, 1)
            await self.db.commit()
        except IntegrityError as e:
            conflict = await self._conflict_from(e, slug, merged)
            raise conflict from e

        prometheus_collector.record_vehicle_event("created")
        if vehicle.status == VehicleStatus.PUBLISHED:
            prometheus_collector.record_vehicle_event("published")
        logger.info("Vehicle created", extra={"vehicle_id": vehicle_id, "slug": slug, "user_id": principal.user_id})

        return await self.get_vehicle(vehicle_id)

    @track_performance(service_name="VehicleService")
    async def update_vehicle(self, vehicle_id: str, payload: VehicleUpdate, principal: Principal) -> Vehicle:
        existing = await self.get_vehicle(vehicle_id)
        data = payload.model_dump(exclude_unset=True)
        # Blank title or slug in a patch leaves the stored value in place
        for field in ("title", "slug"):
            if field in data:
                data[field] = data[field].strip()
                if not data[field]:
                    del data[field]
        replace_tags = "feature_tag_ids" in data
        feature_tag_ids = data.pop("feature_tag_ids", None) or []

        # Stored record overlaid with the patch, as it would look after the write
        merged = {column: getattr(existing, column) for column, *_ in RELATIONS}
        merged.update({attr: getattr(existing, attr) for attr in GATED_ATTRIBUTES})
        merged.update({"engine_cc": existing.engine_cc, "gvw_t": existing.gvw_t})
        merged.update(data)

        slug_changed = "slug" in data and data["slug"] != existing.slug
        if slug_changed:
            merged["slug"] = generate_slug(data["slug"]) or fallback_slug(vehicle_id)
        else:
            merged["slug"] = existing.slug

        if BusinessRules.is_publish_transition(existing.status, merged["status"]):
            await self._check_publish_readiness(merged, vehicle_id)
        if BusinessRules.needs_registration_check(merged):
            await self._check_duplicate_registration(merged, exclude_id=vehicle_id)

        changed_refs = {
            column: data[column]
            for column, *_ in RELATIONS
            if column in data and data[column] != getattr(existing, column)
        }
        resolved = await self._resolve_references(changed_refs)
        if {"make_id", "model_id", "variant_id"} & changed_refs.keys():
            hierarchy = await self._resolve_references(
                {column: merged.get(column) for column in ("model_id", "variant_id")}
            )
            self._check_hierarchy(merged, hierarchy)
        if replace_tags:
            await self._ensure_feature_tags_exist(feature_tag_ids)

        slug = existing.slug
        if slug_changed:
            slug = await self.ensure_unique_slug(merged["slug"], exclude_id=vehicle_id)

        previous_status = existing.status
        previous_refs = {column: getattr(existing, column) for column in changed_refs}
        previous_tags = [feature.feature_tag_id for feature in existing.features]

        key_specs = await self._key_specs_for(merged, resolved)

        try:
            for field, value in data.items():
                if field == "slug":
                    continue
                if field in ("permit_states_json", "gallery_json") and value is None:
                    value = []
                setattr(existing, field, value)
            existing.slug = slug
            existing.updated_by = principal.user_id
            existing.key_specs = key_specs
            await self.db.flush()

            for column, _api_name, model in RELATIONS:
                if column in changed_refs:
                    await adjust_usage_counts(self.db, model, [previous_refs[column]], -1)
                    await adjust_usage_counts(self.db, model, [changed_refs[column]], 1)

            if replace_tags:
                await self._replace_feature_tags(vehicle_id, previous_tags, feature_tag_ids)

            await self.db.commit()
        except IntegrityError as e:
            conflict = await self._conflict_from(e, slug, merged)
            raise conflict from e

        prometheus_collector.record_vehicle_event("updated")
        if BusinessRules.is_publish_transition(previous_status, merged["status"]):
            prometheus_collector.record_vehicle_event("published")
        logger.info(
            "Vehicle updated",
            extra={"vehicle_id": vehicle_id, "fields": sorted(data.keys()), "user_id": principal.user_id},
        )

        return await self.get_vehicle(vehicle_id)

    async def _replace_feature_tags(self, vehicle_id: str, previous: List[str], new: List[str]) -> None:
        """Delete every association of the vehicle, then insert the new set."""
        await self.db.execute(
            delete(VehicleFeatureMap)
            .where(VehicleFeatureMap.vehicle_id == vehicle_id)
            .execution_options(synchronize_session="fetch")
        )
        self.db.add_all(
            VehicleFeatureMap(vehicle_id=vehicle_id, feature_tag_id=tag_id) for tag_id in new
        )
        await adjust_usage_counts(self.db, VehicleFeatureTag, previous, -1)
        await adjust_usage_counts(self.db, VehicleFeatureTag, new, 1)

    @track_performance(service_name="VehicleService")
    async def archive_vehicle(self, vehicle_id: str, principal: Principal) -> Vehicle:
        """Soft-retire: the row and its references stay, only the status changes."""
        vehicle = await self.get_vehicle(vehicle_id)
        vehicle.status = VehicleStatus.ARCHIVED
        vehicle.updated_by = principal.user_id
        await self.db.commit()

        prometheus_collector.record_vehicle_event("archived")
        logger.info("Vehicle archived", extra={"vehicle_id": vehicle_id, "user_id": principal.user_id})
        return vehicle
