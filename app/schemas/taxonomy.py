from datetime import datetime
from typing import Any, Optional

from pydantic import Field, field_validator

from models.base import RecordStatus
from schemas.common import CamelModel, UuidStr


class TaxonomyCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = None
    status: RecordStatus = RecordStatus.ACTIVE

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("name cannot be blank")
        return v


class TaxonomyUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    description: Optional[str] = None
    status: Optional[RecordStatus] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        v = v.strip()
        if not v:
            raise ValueError("name cannot be blank")
        return v

    @field_validator("status")
    @classmethod
    def status_not_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class TaxonomyOut(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    status: RecordStatus
    usage_count: int
    created_at: datetime
    updated_at: datetime


# Makes and service brands carry a logo
class BrandedCreate(TaxonomyCreate):
    logo_url: Optional[str] = None


class BrandedUpdate(TaxonomyUpdate):
    logo_url: Optional[str] = None


class BrandedOut(TaxonomyOut):
    logo_url: Optional[str] = None


class ParentRef(CamelModel):
    id: str
    name: str


class ModelCreate(TaxonomyCreate):
    make_id: UuidStr
    defaults_json: Optional[dict[str, Any]] = None


class ModelUpdate(TaxonomyUpdate):
    make_id: Optional[UuidStr] = None
    defaults_json: Optional[dict[str, Any]] = None


class ModelOut(TaxonomyOut):
    make_id: str
    defaults_json: Optional[dict[str, Any]] = None
    make: ParentRef


class ModelRef(ParentRef):
    make: ParentRef


class VariantCreate(TaxonomyCreate):
    model_id: UuidStr
    defaults_json: Optional[dict[str, Any]] = None


class VariantUpdate(TaxonomyUpdate):
    model_id: Optional[UuidStr] = None
    defaults_json: Optional[dict[str, Any]] = None


class VariantOut(TaxonomyOut):
    model_id: str
    defaults_json: Optional[dict[str, Any]] = None
    model: ModelRef


class DeleteOut(CamelModel):
    message: str
    deactivated: bool = False
