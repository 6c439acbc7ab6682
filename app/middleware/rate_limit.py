import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from prometheus_client import Counter
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from core.environment import get_rate_limit_default
from core.prometheus_metrics import REGISTRY

logger = logging.getLogger(__name__)

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[get_rate_limit_default()],  # Global default
)

# Metric for monitoring
rate_limit_exceeded_counter = Counter(
    'jam_rate_limit_exceeded_total',
    'Total rate limit violations',
    ['endpoint'],
    registry=REGISTRY
)

DEFAULT_RETRY_AFTER_SECONDS = 60


def custom_rate_limit_exceeded(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    rate_limit_exceeded_counter.labels(endpoint=request.url.path).inc()
    logger.warning(
        "Rate limit exceeded",
        extra={"path": request.url.path, "client": get_remote_address(request), "limit": str(exc.detail)},
    )

    return JSONResponse(
        status_code=429,
        content={
            "error": "Rate limit exceeded. Please try again later.",
            "retry_after": DEFAULT_RETRY_AFTER_SECONDS,
        },
        headers={"Retry-After": str(DEFAULT_RETRY_AFTER_SECONDS)},
    )
