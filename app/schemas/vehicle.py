from datetime import date, datetime
from typing import List, Optional

from pydantic import Field, field_validator

from models.vehicle import VehicleCondition, VehicleStatus
from schemas.common import CamelModel, UuidStr

MODEL_YEAR_MIN = 1900
MODEL_YEAR_MAX = 2100


class VehicleSpecFields(CamelModel):
    """Optional, nullable listing attributes shared by requests and responses."""

    wheelbase_mm: Optional[int] = None
    gvw_t: Optional[float] = None
    gcw_t: Optional[float] = None
    payload_t: Optional[float] = None

    engine_cc: Optional[int] = None
    power_hp: Optional[float] = None
    power_kw: Optional[float] = None
    torque_nm: Optional[float] = None
    gears: Optional[int] = None
    final_drive_ratio: Optional[str] = None

    cabin_type: Optional[str] = None
    suspension_front: Optional[str] = None
    suspension_rear: Optional[str] = None
    brake_type: Optional[str] = None
    tyre_size: Optional[str] = None
    tyre_count: Optional[int] = None

    overall_length_mm: Optional[int] = None
    overall_width_mm: Optional[int] = None
    overall_height_mm: Optional[int] = None
    load_body_length_mm: Optional[int] = None
    load_body_width_mm: Optional[int] = None
    load_body_height_mm: Optional[int] = None
    turning_radius_m: Optional[float] = None

    asking_price_inr: Optional[float] = Field(None, ge=0)
    gst_slab: Optional[str] = None

    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    contact_phone: Optional[str] = None
    contact_whatsapp: Optional[str] = None

    reg_no: Optional[str] = None
    reg_date: Optional[date] = None
    ownership_count: Optional[int] = Field(None, ge=0)
    insurance_type: Optional[str] = None
    insurance_expiry: Optional[date] = None
    fitness_expiry: Optional[date] = None
    puc_expiry: Optional[date] = None
    permit_states_json: Optional[List[str]] = None
    hypothecation_bank: Optional[str] = None

    cover_url: Optional[str] = None
    gallery_json: Optional[List[str]] = None
    video_url: Optional[str] = None
    brochure_url: Optional[str] = None

    meta_title: Optional[str] = None
    meta_description: Optional[str] = None

    reserved_until: Optional[datetime] = None

    @field_validator("reg_no")
    @classmethod
    def normalize_reg_no(cls, v):
        # "mh 12 ab 1234" and "MH12AB1234" are the same plate
        if v is None:
            return v
        return "".join(v.split()).upper()

    @field_validator("state", "city", "pincode")
    @classmethod
    def strip_location(cls, v):
        return v.strip() if isinstance(v, str) else v


class VehicleInternalFields(CamelModel):
    """Commercial fields visible to the admin console only."""

    seller_id: Optional[str] = None
    vendor_price_inr: Optional[float] = None
    target_margin_inr: Optional[float] = None


def _unique_ids(ids):
    if ids is None:
        return ids
    seen = []
    for tag_id in ids:
        if tag_id not in seen:
            seen.append(tag_id)
    return seen


class VehicleCreate(VehicleSpecFields, VehicleInternalFields):
    condition: VehicleCondition
    make_id: UuidStr
    model_id: UuidStr
    variant_id: Optional[UuidStr] = None
    model_year: int = Field(..., ge=MODEL_YEAR_MIN, le=MODEL_YEAR_MAX)
    body_type_id: UuidStr
    axle_config_id: UuidStr
    fuel_type_id: Optional[UuidStr] = None
    emission_norm_id: Optional[UuidStr] = None
    transmission_id: Optional[UuidStr] = None

    title: Optional[str] = None
    slug: Optional[str] = None

    has_ac: bool = False
    negotiable: bool = False
    finance_available: bool = False
    watermark_enabled: bool = True

    status: VehicleStatus = VehicleStatus.DRAFT
    visibility: bool = False

    feature_tag_ids: Optional[List[UuidStr]] = None

    @field_validator("feature_tag_ids")
    @classmethod
    def dedupe_feature_tags(cls, v):
        return _unique_ids(v)


class VehicleUpdate(VehicleSpecFields, VehicleInternalFields):
    """Partial update: only fields present in the request body are applied."""

    condition: Optional[VehicleCondition] = None
    make_id: Optional[UuidStr] = None
    model_id: Optional[UuidStr] = None
    variant_id: Optional[UuidStr] = None
    model_year: Optional[int] = Field(None, ge=MODEL_YEAR_MIN, le=MODEL_YEAR_MAX)
    body_type_id: Optional[UuidStr] = None
    axle_config_id: Optional[UuidStr] = None
    fuel_type_id: Optional[UuidStr] = None
    emission_norm_id: Optional[UuidStr] = None
    transmission_id: Optional[UuidStr] = None

    title: Optional[str] = None
    slug: Optional[str] = None

    has_ac: Optional[bool] = None
    negotiable: Optional[bool] = None
    finance_available: Optional[bool] = None
    watermark_enabled: Optional[bool] = None

    status: Optional[VehicleStatus] = None
    visibility: Optional[bool] = None

    # Present (even empty or null) replaces the tag set, absent leaves it alone
    feature_tag_ids: Optional[List[UuidStr]] = None

    @field_validator("feature_tag_ids")
    @classmethod
    def dedupe_feature_tags(cls, v):
        return _unique_ids(v)

    @field_validator(
        "condition", "make_id", "model_id", "model_year", "body_type_id",
        "axle_config_id", "title", "slug", "status", "has_ac", "negotiable",
        "finance_available", "watermark_enabled", "visibility",
    )
    @classmethod
    def not_null(cls, v):
        # Only runs for values present in the body
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class TaxonomyRef(CamelModel):
    id: str
    name: str


class VehicleFeatureOut(CamelModel):
    feature_tag_id: str
    feature_tag: TaxonomyRef


class VehiclePublicOut(VehicleSpecFields):
    id: str
    slug: str
    title: str
    condition: VehicleCondition
    model_year: int
    key_specs: Optional[str] = None

    make: TaxonomyRef
    model: TaxonomyRef
    variant: Optional[TaxonomyRef] = None
    body_type: TaxonomyRef
    axle_config: TaxonomyRef
    fuel_type: Optional[TaxonomyRef] = None
    emission_norm: Optional[TaxonomyRef] = None
    transmission: Optional[TaxonomyRef] = None
    features: List[VehicleFeatureOut] = []

    has_ac: bool
    negotiable: bool
    finance_available: bool
    watermark_enabled: bool
    status: VehicleStatus
    visibility: bool
    updated_at: datetime


class VehicleOut(VehiclePublicOut, VehicleInternalFields):
    make_id: str
    model_id: str
    variant_id: Optional[str] = None
    body_type_id: str
    axle_config_id: str
    fuel_type_id: Optional[str] = None
    emission_norm_id: Optional[str] = None
    transmission_id: Optional[str] = None

    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: datetime
