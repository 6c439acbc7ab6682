from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from core.db import create_all_tables
from core.environment import get_cors_origins, get_jwt_settings, is_production, should_create_tables
from core.logging import setup_logging
from exceptions import register_exception_handlers
from middleware.rate_limit import custom_rate_limit_exceeded, limiter
from routers import auth, health, listings, metrics, service_centers, taxonomy, vehicles

setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Refuse to start without a signing secret
    get_jwt_settings()
    if should_create_tables():
        await create_all_tables()
        logger.info("Database tables created")
    logger.info("Catalog API started", extra={"production": is_production()})
    yield
    logger.info("Catalog API stopped")


app = FastAPI(title="JAM Commercial Vehicle Catalog API", lifespan=lifespan)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, custom_rate_limit_exceeded)
app.add_middleware(SlowAPIMiddleware)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_methods=["*"],   # Allows POST, GET, PATCH, DELETE, OPTIONS
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(metrics.router)
app.include_router(auth.router)
app.include_router(listings.router)
app.include_router(vehicles.router)
app.include_router(service_centers.router)
for taxonomy_router in taxonomy.routers:
    app.include_router(taxonomy_router)


@app.get("/", tags=["root"])
def root():
    return {"message": "JAM Commercial Vehicle Catalog API"}
