import uuid
from typing import Annotated, Generic, List, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        protected_namespaces=(),
    )


def _canonical_uuid(value: str) -> str:
    try:
        return str(uuid.UUID(value))
    except (ValueError, AttributeError, TypeError):
        raise ValueError("must be a valid UUID")


UuidStr = Annotated[str, AfterValidator(_canonical_uuid)]


class Pagination(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int


T = TypeVar("T")


class Page(CamelModel, Generic[T]):
    data: List[T]
    pagination: Pagination


class MessageOut(BaseModel):
    message: str


def build_pagination(total: int, page: int, limit: int) -> Pagination:
    total_pages = (total + limit - 1) // limit if limit else 0
    return Pagination(total=total, page=page, limit=limit, total_pages=total_pages)
