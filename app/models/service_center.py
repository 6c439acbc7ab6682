from __future__ import annotations

import enum
from typing import List, Optional

from sqlalchemy import Column, Float, ForeignKey, JSON, String, Table, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.db import Base
from models.base import TaxonomyMixin, TimestampMixin, enum_column, new_id


class ServiceCenterStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class ServiceCenterType(TaxonomyMixin, Base):
    __tablename__ = "service_center_types"
    __table_args__ = (UniqueConstraint("name", name="uq_service_center_types_name"),)


class VehicleBrand(TaxonomyMixin, Base):
    __tablename__ = "vehicle_brands"
    __table_args__ = (UniqueConstraint("name", name="uq_vehicle_brands_name"),)

    logo_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)


class ServiceType(TaxonomyMixin, Base):
    __tablename__ = "service_types"
    __table_args__ = (UniqueConstraint("name", name="uq_service_types_name"),)


# Association tables, replaced wholesale on every update
service_center_brand = Table(
    "service_center_brand",
    Base.metadata,
    Column("service_center_id", ForeignKey("service_centers.id", ondelete="CASCADE"), primary_key=True),
    Column("brand_id", ForeignKey("vehicle_brands.id"), primary_key=True),
)

service_center_service = Table(
    "service_center_service",
    Base.metadata,
    Column("service_center_id", ForeignKey("service_centers.id", ondelete="CASCADE"), primary_key=True),
    Column("service_type_id", ForeignKey("service_types.id"), primary_key=True),
)


class ServiceCenter(TimestampMixin, Base):
    __tablename__ = "service_centers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(200), index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    type_id: Mapped[str] = mapped_column(String(36), ForeignKey("service_center_types.id"), index=True)

    primary_contact_name: Mapped[str] = mapped_column(String(120))
    address1: Mapped[str] = mapped_column(String(255))
    address2: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    landmark: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[str] = mapped_column(String(120), index=True)
    state: Mapped[str] = mapped_column(String(120))
    pincode: Mapped[str] = mapped_column(String(12))
    country: Mapped[str] = mapped_column(String(64), default="India")
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    primary_phone: Mapped[str] = mapped_column(String(32))
    secondary_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    whatsapp: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    specializations: Mapped[list[str]] = mapped_column(JSON, default=list)
    facilities: Mapped[list[str]] = mapped_column(JSON, default=list)
    status: Mapped[ServiceCenterStatus] = mapped_column(
        enum_column(ServiceCenterStatus),
        default=ServiceCenterStatus.DRAFT
    )

    type: Mapped[ServiceCenterType] = relationship()
    brands: Mapped[List[VehicleBrand]] = relationship(secondary=service_center_brand)
    service_types: Mapped[List[ServiceType]] = relationship(secondary=service_center_service)
