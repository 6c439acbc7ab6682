from __future__ import annotations

import enum
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.db import Base
from models.base import TimestampMixin, enum_column, new_id
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


class VehicleCondition(str, enum.Enum):
    NEW = "NEW"
    USED = "USED"


class VehicleStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PENDING_REVIEW = "PENDING_REVIEW"
    PUBLISHED = "PUBLISHED"
    RESERVED = "RESERVED"
    SOLD = "SOLD"
    ARCHIVED = "ARCHIVED"


PUBLISHED_USED_FILTER = "condition = 'USED' AND status = 'PUBLISHED'"


class Vehicle(TimestampMixin, Base):
    __tablename__ = "vehicles"
    __table_args__ = (
        # One published listing per plate and registering state
        Index(
            "uq_vehicles_published_used_reg",
            "reg_no",
            "state",
            unique=True,
            postgresql_where=text(PUBLISHED_USED_FILTER),
            sqlite_where=text(PUBLISHED_USED_FILTER),
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    title: Mapped[str] = mapped_column(String(255))

    # Classification
    condition: Mapped[VehicleCondition] = mapped_column(enum_column(VehicleCondition))
    make_id: Mapped[str] = mapped_column(String(36), ForeignKey("vehicle_makes.id"), index=True)
    model_id: Mapped[str] = mapped_column(String(36), ForeignKey("vehicle_models.id"), index=True)
    variant_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("vehicle_variants.id"), nullable=True)
    model_year: Mapped[int] = mapped_column(Integer, index=True)
    body_type_id: Mapped[str] = mapped_column(String(36), ForeignKey("vehicle_body_types.id"), index=True)
    axle_config_id: Mapped[str] = mapped_column(String(36), ForeignKey("vehicle_axle_configs.id"), index=True)
    fuel_type_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("vehicle_fuel_types.id"), nullable=True)
    emission_norm_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("vehicle_emission_norms.id"), nullable=True)
    transmission_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("vehicle_transmissions.id"), nullable=True)

    # Weights and dimensions
    wheelbase_mm: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    gvw_t: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    gcw_t: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    payload_t: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    overall_length_mm: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    overall_width_mm: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    overall_height_mm: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    load_body_length_mm: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    load_body_width_mm: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    load_body_height_mm: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    turning_radius_m: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Engine and driveline
    engine_cc: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    power_hp: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    power_kw: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    torque_nm: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    gears: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    final_drive_ratio: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    # Cabin and chassis
    cabin_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    has_ac: Mapped[bool] = mapped_column(Boolean, default=False)
    suspension_front: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    suspension_rear: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    brake_type: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    tyre_size: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    tyre_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Commercial
    asking_price_inr: Mapped[Optional[float]] = mapped_column(Float, nullable=True, index=True)
    negotiable: Mapped[bool] = mapped_column(Boolean, default=False)
    finance_available: Mapped[bool] = mapped_column(Boolean, default=False)
    gst_slab: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    vendor_price_inr: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # internal only
    target_margin_inr: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # internal only

    # Location and contact
    seller_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True, index=True)
    state: Mapped[Optional[str]] = mapped_column(String(120), nullable=True, index=True)
    pincode: Mapped[Optional[str]] = mapped_column(String(12), nullable=True)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    contact_whatsapp: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    # Used vehicles only
    reg_no: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, index=True)
    reg_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    ownership_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    insurance_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    insurance_expiry: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    fitness_expiry: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    puc_expiry: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    permit_states_json: Mapped[list[str]] = mapped_column(JSON, default=list)
    hypothecation_bank: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    # Media and SEO
    cover_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    gallery_json: Mapped[list[str]] = mapped_column(JSON, default=list)
    video_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    brochure_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    watermark_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    meta_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    meta_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Lifecycle
    status: Mapped[VehicleStatus] = mapped_column(enum_column(VehicleStatus), default=VehicleStatus.DRAFT, index=True)
    visibility: Mapped[bool] = mapped_column(Boolean, default=False)
    reserved_until: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    key_specs: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    updated_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    make: Mapped[VehicleMake] = relationship()
    model: Mapped[VehicleModel] = relationship()
    variant: Mapped[Optional[VehicleVariant]] = relationship()
    body_type: Mapped[VehicleBodyType] = relationship()
    axle_config: Mapped[VehicleAxleConfig] = relationship()
    fuel_type: Mapped[Optional[VehicleFuelType]] = relationship()
    emission_norm: Mapped[Optional[VehicleEmissionNorm]] = relationship()
    transmission: Mapped[Optional[VehicleTransmission]] = relationship()

    features: Mapped[List[VehicleFeatureMap]] = relationship(
        back_populates="vehicle",
        cascade="all, delete-orphan"
    )


class VehicleFeatureMap(Base):
    """Join row between a vehicle and one of its feature tags."""
    __tablename__ = "vehicle_feature_map"

    vehicle_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("vehicles.id", ondelete="CASCADE"),
        primary_key=True
    )

    feature_tag_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("vehicle_feature_tags.id"),
        primary_key=True
    )

    vehicle: Mapped[Vehicle] = relationship(back_populates="features")
    feature_tag: Mapped[VehicleFeatureTag] = relationship(lazy="selectin")
