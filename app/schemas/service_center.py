from datetime import datetime
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from models.service_center import ServiceCenterStatus
from schemas.common import CamelModel, UuidStr
from schemas.taxonomy import BrandedOut, TaxonomyOut


class ServiceCenterIn(CamelModel):
    """Create and full-replace (PUT) body."""

    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    type_id: UuidStr
    primary_contact_name: str = Field(..., min_length=1)
    address1: str = Field(..., min_length=1)
    address2: Optional[str] = None
    landmark: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    pincode: str = Field(..., min_length=1, max_length=12)
    country: str = "India"
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    primary_phone: str = Field(..., min_length=1)
    secondary_phone: Optional[str] = None
    email: Optional[EmailStr] = None
    website: Optional[str] = None
    whatsapp: Optional[str] = None
    slug: Optional[str] = None
    specializations: List[str] = []
    facilities: List[str] = []
    status: ServiceCenterStatus = ServiceCenterStatus.DRAFT
    brand_ids: List[UuidStr] = []
    service_type_ids: List[UuidStr] = []

    @field_validator("brand_ids", "service_type_ids")
    @classmethod
    def dedupe(cls, v):
        return list(dict.fromkeys(v))


class ServiceCenterOut(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    slug: str
    type_id: str
    type: TaxonomyOut
    primary_contact_name: str
    address1: str
    address2: Optional[str] = None
    landmark: Optional[str] = None
    city: str
    state: str
    pincode: str
    country: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    primary_phone: str
    secondary_phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    whatsapp: Optional[str] = None
    specializations: List[str] = []
    facilities: List[str] = []
    status: ServiceCenterStatus
    brands: List[BrandedOut] = []
    service_types: List[TaxonomyOut] = []
    created_at: datetime
    updated_at: datetime


class ServiceCenterOptions(CamelModel):
    types: List[TaxonomyOut]
    brands: List[BrandedOut]
    service_types: List[TaxonomyOut]
