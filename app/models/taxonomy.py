from __future__ import annotations

from typing import Any, List, Optional

from sqlalchemy import ForeignKey, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.db import Base
from models.base import TaxonomyMixin


class VehicleMake(TaxonomyMixin, Base):
    __tablename__ = "vehicle_makes"
    __table_args__ = (UniqueConstraint("name", name="uq_vehicle_makes_name"),)

    logo_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    models: Mapped[List[VehicleModel]] = relationship(back_populates="make", passive_deletes=True)


class VehicleModel(TaxonomyMixin, Base):
    __tablename__ = "vehicle_models"
    __table_args__ = (UniqueConstraint("make_id", "name", name="uq_vehicle_models_make_name"),)

    make_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("vehicle_makes.id"),
        index=True
    )

    defaults_json: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    make: Mapped[VehicleMake] = relationship(back_populates="models", lazy="selectin")
    variants: Mapped[List[VehicleVariant]] = relationship(back_populates="model", passive_deletes=True)


class VehicleVariant(TaxonomyMixin, Base):
    __tablename__ = "vehicle_variants"
    __table_args__ = (UniqueConstraint("model_id", "name", name="uq_vehicle_variants_model_name"),)

    model_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("vehicle_models.id"),
        index=True
    )

    defaults_json: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    model: Mapped[VehicleModel] = relationship(back_populates="variants", lazy="selectin")


class VehicleBodyType(TaxonomyMixin, Base):
    __tablename__ = "vehicle_body_types"
    __table_args__ = (UniqueConstraint("name", name="uq_vehicle_body_types_name"),)


class VehicleAxleConfig(TaxonomyMixin, Base):
    __tablename__ = "vehicle_axle_configs"
    __table_args__ = (UniqueConstraint("name", name="uq_vehicle_axle_configs_name"),)


class VehicleFuelType(TaxonomyMixin, Base):
    __tablename__ = "vehicle_fuel_types"
    __table_args__ = (UniqueConstraint("name", name="uq_vehicle_fuel_types_name"),)


class VehicleEmissionNorm(TaxonomyMixin, Base):
    __tablename__ = "vehicle_emission_norms"
    __table_args__ = (UniqueConstraint("name", name="uq_vehicle_emission_norms_name"),)


class VehicleTransmission(TaxonomyMixin, Base):
    __tablename__ = "vehicle_transmissions"
    __table_args__ = (UniqueConstraint("name", name="uq_vehicle_transmissions_name"),)


class VehicleFeatureTag(TaxonomyMixin, Base):
    __tablename__ = "vehicle_feature_tags"
    __table_args__ = (UniqueConstraint("name", name="uq_vehicle_feature_tags_name"),)
