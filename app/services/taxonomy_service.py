import logging
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.metrics import track_performance
from models.base import RecordStatus
from models.service_center import ServiceCenterType, ServiceType, VehicleBrand
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
from services.exceptions import (
    DatabaseQueryError,
    InvalidReferenceError,
    NotFoundError,
    TaxonomyDuplicateNameError,
    TaxonomyRenameLockedError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaxonomyKind:
    """Describes one lookup table and how it is scoped."""
    label: str
    model: type
    used_by: str = "vehicles"
    parent_attr: Optional[str] = None
    parent_model: Optional[type] = None
    parent_label: Optional[str] = None
    extra_fields: tuple = ()
    # (model, fk attribute) pairs whose rows hang off this entry
    children: tuple = ()

    @property
    def article(self) -> str:
        return "An" if self.label[0].lower() in "aeiou" else "A"

    @property
    def parent_api_name(self) -> Optional[str]:
        if not self.parent_attr:
            return None
        head, *rest = self.parent_attr.split("_")
        return head + "".join(word.title() for word in rest)


MAKES = TaxonomyKind(
    "make", VehicleMake,
    extra_fields=("logo_url",),
    children=((VehicleModel, "make_id"),),
)
MODELS = TaxonomyKind(
    "model", VehicleModel,
    parent_attr="make_id", parent_model=VehicleMake, parent_label="make",
    extra_fields=("defaults_json",),
    children=((VehicleVariant, "model_id"),),
)
VARIANTS = TaxonomyKind(
    "variant", VehicleVariant,
    parent_attr="model_id", parent_model=VehicleModel, parent_label="model",
    extra_fields=("defaults_json",),
)
BODY_TYPES = TaxonomyKind("body type", VehicleBodyType)
AXLE_CONFIGS = TaxonomyKind("axle configuration", VehicleAxleConfig)
FUEL_TYPES = TaxonomyKind("fuel type", VehicleFuelType)
EMISSION_NORMS = TaxonomyKind("emission norm", VehicleEmissionNorm)
TRANSMISSIONS = TaxonomyKind("transmission", VehicleTransmission)
FEATURE_TAGS = TaxonomyKind("feature tag", VehicleFeatureTag)
VEHICLE_BRANDS = TaxonomyKind("vehicle brand", VehicleBrand, used_by="service centers", extra_fields=("logo_url",))
SERVICE_CENTER_TYPES = TaxonomyKind("service center type", ServiceCenterType, used_by="service centers")
SERVICE_TYPES = TaxonomyKind("service type", ServiceType, used_by="service centers")


SORTABLE_COLUMNS = {
    "name": "name",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "usageCount": "usage_count",
}


async def adjust_usage_counts(db: AsyncSession, model: type, ids: Iterable[Optional[str]], delta: int) -> None:
    """Adds `delta` to usage_count for every id (repeats count once each), never below zero."""
    counts = Counter(entry_id for entry_id in ids if entry_id)
    for entry_id, times in counts.items():
        change = delta * times
        await db.execute(
            update(model)
            .where(model.id == entry_id)
            .values(usage_count=case(
                (model.usage_count + change > 0, model.usage_count + change),
                else_=0,
            ))
            .execution_options(synchronize_session="fetch")
        )


class TaxonomyService:
    """
    CRUD for lookup tables referenced by vehicles and service centers.

    Entries in use keep their name and are deactivated instead of deleted,
    so existing references never dangle.
    """

    def __init__(self, db: AsyncSession, kind: TaxonomyKind):
        self.db = db
        self.kind = kind

    @property
    def model(self):
        return self.kind.model

    async def _fetch(self, entry_id: str):
        stmt = (
            select(self.model)
            .where(self.model.id == entry_id)
            .execution_options(populate_existing=True)
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()

    @track_performance(service_name="TaxonomyService")
    async def get_entry(self, entry_id: str):
        entry = await self._fetch(entry_id)
        if entry is None:
            raise NotFoundError(f"{self.kind.label.capitalize()} not found")
        return entry

    @track_performance(service_name="TaxonomyService")
    async def list_entries(
        self,
        search: Optional[str] = None,
        status: Optional[RecordStatus] = None,
        parent_id: Optional[str] = None,
        sort_by: str = "updatedAt",
        sort_order: str = "desc",
        page: int = 1,
        page_size: int = 10,
    ):
        filters = []
        if search:
            filters.append(self.model.name.ilike(f"%{search}%"))
        if status:
            filters.append(self.model.status == status)
        if parent_id and self.kind.parent_attr:
            filters.append(getattr(self.model, self.kind.parent_attr) == parent_id)

        column = getattr(self.model, SORTABLE_COLUMNS.get(sort_by, "updated_at"))
        order = column.asc() if sort_order == "asc" else column.desc()

        try:
            total = (await self.db.execute(
                select(func.count()).select_from(self.model).where(*filters)
            )).scalar_one()
            rows = (await self.db.execute(
                select(self.model)
                .where(*filters)
                .order_by(order, self.model.id)
                .offset((page - 1) * page_size)
                .limit(page_size)
            )).scalars().all()
        except SQLAlchemyError as e:
            raise DatabaseQueryError(str(e))

        return list(rows), total

    @track_performance(service_name="TaxonomyService")
    async def list_active(self):
        stmt = (
            select(self.model)
            .where(self.model.status == RecordStatus.ACTIVE)
            .order_by(self.model.name)
        )
        return list((await self.db.execute(stmt)).scalars().all())

    async def _ensure_parent_exists(self, parent_id: str) -> None:
        parent = await self.db.get(self.kind.parent_model, parent_id)
        if parent is None:
            raise InvalidReferenceError(
                f"The specified {self.kind.parent_label} does not exist",
                field=self.kind.parent_api_name,
            )

    async def _ensure_name_available(self, name: str, parent_id: Optional[str], exclude_id: Optional[str] = None):
        stmt = select(self.model.id).where(self.model.name == name)
        if self.kind.parent_attr:
            stmt = stmt.where(getattr(self.model, self.kind.parent_attr) == parent_id)
        if exclude_id:
            stmt = stmt.where(self.model.id != exclude_id)

        if (await self.db.execute(stmt.limit(1))).scalar_one_or_none() is not None:
            raise TaxonomyDuplicateNameError(self._duplicate_message())

    async def _has_children(self, entry_id: str) -> bool:
        for child_model, fk_attr in self.kind.children:
            stmt = select(child_model.id).where(getattr(child_model, fk_attr) == entry_id).limit(1)
            if (await self.db.execute(stmt)).scalar_one_or_none() is not None:
                return True
        return False

    def _duplicate_message(self) -> str:
        message = f"{self.kind.article} {self.kind.label} with this name already exists"
        if self.kind.parent_label:
            message += f" for this {self.kind.parent_label}"
        return message

    async def _commit(self):
        try:
            await self.db.commit()
        except IntegrityError:
            # Unique constraint caught a concurrent insert the pre-check missed
            await self.db.rollback()
            raise TaxonomyDuplicateNameError(self._duplicate_message())

    @track_performance(service_name="TaxonomyService")
    async def create_entry(self, payload):
        data = payload.model_dump()
        parent_id = data.get(self.kind.parent_attr) if self.kind.parent_attr else None

        if self.kind.parent_attr:
            await self._ensure_parent_exists(parent_id)
        await self._ensure_name_available(data["name"], parent_id)

        entry = self.model(
            name=data["name"],
            description=data.get("description") or None,
            status=data["status"],
        )
        if self.kind.parent_attr:
            setattr(entry, self.kind.parent_attr, parent_id)
        for field in self.kind.extra_fields:
            setattr(entry, field, data.get(field) or None)

        self.db.add(entry)
        await self._commit()

        logger.info(f"Created {self.kind.label}", extra={"entry_id": entry.id, "entry_name": entry.name})
        return await self.get_entry(entry.id)

    @track_performance(service_name="TaxonomyService")
    async def update_entry(self, entry_id: str, payload):
        entry = await self.get_entry(entry_id)
        data = payload.model_dump(exclude_unset=True)

        new_name = data.get("name", entry.name)
        if entry.usage_count > 0 and new_name != entry.name:
            raise TaxonomyRenameLockedError(
                f"Cannot change the name as this {self.kind.label} is being used by {self.kind.used_by}. "
                f"Please create a new {self.kind.label} instead."
            )

        current_parent = getattr(entry, self.kind.parent_attr) if self.kind.parent_attr else None
        parent_id = (data.get(self.kind.parent_attr) or current_parent) if self.kind.parent_attr else None
        if entry.usage_count > 0 and parent_id != current_parent:
            raise TaxonomyRenameLockedError(
                f"Cannot move this {self.kind.label} to another {self.kind.parent_label} as it is being used by "
                f"{self.kind.used_by}. Please create a new {self.kind.label} instead."
            )
        if parent_id != current_parent:
            await self._ensure_parent_exists(parent_id)

        if new_name != entry.name or parent_id != current_parent:
            await self._ensure_name_available(new_name, parent_id, exclude_id=entry.id)

        entry.name = new_name
        if "description" in data:
            entry.description = data["description"] or None
        if "status" in data:
            entry.status = data["status"]
        if self.kind.parent_attr:
            setattr(entry, self.kind.parent_attr, parent_id)
        for field in self.kind.extra_fields:
            if field in data:
                setattr(entry, field, data[field] or None)

        await self._commit()
        return await self.get_entry(entry.id)

    @track_performance(service_name="TaxonomyService")
    async def delete_entry(self, entry_id: str) -> dict:
        """Hard delete when unused, otherwise flip to INACTIVE. Never raises for in-use rows."""
        entry = await self.get_entry(entry_id)
        label = self.kind.label.capitalize()

        if entry.usage_count == 0 and not await self._has_children(entry_id):
            await self.db.delete(entry)
            try:
                await self.db.commit()
                logger.info(f"Deleted {self.kind.label}", extra={"entry_id": entry_id})
                return {"message": "Deleted successfully", "deactivated": False}
            except IntegrityError:
                # Still referenced by a child row, e.g. a make that owns models
                await self.db.rollback()
                entry = await self.get_entry(entry_id)

        entry.status = RecordStatus.INACTIVE
        await self.db.commit()
        logger.info(
            f"Deactivated {self.kind.label} instead of deleting",
            extra={"entry_id": entry_id, "usage_count": entry.usage_count},
        )
        return {
            "message": f"{label} is being used and has been set to Inactive. "
                       "It will no longer appear in selection lists.",
            "deactivated": True,
        }
