import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core.prometheus_metrics import prometheus_collector
from services.exceptions import (
    CatalogDomainError,
    DuplicateRegistrationError,
    InvalidReferenceError,
    NotFoundError,
    PublishReadinessError,
    SlugConflictError,
    TaxonomyDuplicateNameError,
    TaxonomyRenameLockedError,
)

logger = logging.getLogger(__name__)


async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    details = []
    for err in exc.errors():
        # Drop the leading "body"/"query" segment of the location
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({
            "field": ".".join(loc) or None,
            "message": err.get("msg"),
            "type": err.get("type"),
        })
    return JSONResponse(status_code=400, content={"error": "Invalid input", "details": details})


async def domain_exception_handler(request: Request, exc: CatalogDomainError):
    if isinstance(exc, PublishReadinessError):
        prometheus_collector.record_rejection("publish_gate")
        return JSONResponse(
            status_code=400,
            content={"error": str(exc), "missingFields": exc.missing_fields},
        )
    if isinstance(exc, DuplicateRegistrationError):
        prometheus_collector.record_rejection("duplicate_registration")
        return JSONResponse(status_code=409, content={"error": str(exc), "conflict": exc.conflict})
    if isinstance(exc, SlugConflictError):
        prometheus_collector.record_rejection("slug_conflict")
        return JSONResponse(status_code=409, content={"error": str(exc), "conflict": exc.conflict})
    if isinstance(exc, TaxonomyRenameLockedError):
        prometheus_collector.record_rejection("taxonomy_rename")
        return JSONResponse(status_code=400, content={"error": str(exc)})
    if isinstance(exc, TaxonomyDuplicateNameError):
        prometheus_collector.record_rejection("taxonomy_duplicate")
        return JSONResponse(status_code=400, content={"error": str(exc)})
    if isinstance(exc, InvalidReferenceError):
        content = {"error": str(exc)}
        if exc.field:
            content["field"] = exc.field
        return JSONResponse(status_code=400, content=content)
    if isinstance(exc, NotFoundError):
        return JSONResponse(status_code=404, content={"error": str(exc)})

    # DatabaseQueryError and anything unforeseen stay opaque to the caller
    logger.error(
        "Unhandled domain error",
        extra={"path": request.url.path, "error_type": exc.__class__.__name__, "error": str(exc)},
    )
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unexpected error", extra={"path": request.url.path})
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(CatalogDomainError, domain_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
