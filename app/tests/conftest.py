"""
Pytest configuration and shared fixtures for the catalog test suite.

This module provides:
- Database fixtures (in-memory SQLite for fast tests)
- A lightweight FastAPI test app with the catalog routers mounted
- Owner / user bearer tokens
- A seeded taxonomy to build vehicles from
"""

import os

# JWT settings must exist before auth modules sign anything
os.environ.setdefault("JWT_SECRET", "testsecret")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("JWT_EXP_DELTA_SECONDS", "3600")

from types import SimpleNamespace
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from auth.auth_handler import sign_jwt
from auth.principal import Principal
from auth.rbac import Role
from core.db import Base, get_db
from exceptions import register_exception_handlers
from models import (
    ServiceCenterType,
    ServiceType,
    VehicleAxleConfig,
    VehicleBodyType,
    VehicleBrand,
    VehicleEmissionNorm,
    VehicleFeatureTag,
    VehicleFuelType,
    VehicleMake,
    VehicleModel,
    VehicleTransmission,
    VehicleVariant,
)
from routers import auth as auth_router_module
from routers import listings, service_centers, taxonomy, vehicles


# Test Database Configuration
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

OWNER_EMAIL = "owner@example.com"
USER_EMAIL = "user@example.com"


@pytest.fixture
async def async_engine():
    """Create async engine for testing with in-memory SQLite."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def async_db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for testing."""
    async_session = async_sessionmaker(async_engine, expire_on_commit=False)

    async with async_session() as session:
        yield session


@pytest.fixture
def test_app(async_db_session) -> FastAPI:
    """A lightweight FastAPI app mounting the catalog routers, without rate limiting."""
    async def override_get_db():
        yield async_db_session

    app = FastAPI()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(auth_router_module.router)
    app.include_router(vehicles.router)
    app.include_router(listings.router)
    app.include_router(service_centers.router)
    for taxonomy_router in taxonomy.routers:
        app.include_router(taxonomy_router)

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(test_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as client:
        yield client


# Authentication Fixtures
@pytest.fixture
def owner_headers() -> dict:
    token = sign_jwt(OWNER_EMAIL, Role.OWNER.value)["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers() -> dict:
    token = sign_jwt(USER_EMAIL, Role.USER.value)["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def owner_principal() -> Principal:
    return Principal(user_id=OWNER_EMAIL, role=Role.OWNER.value)


# Test Data Factories
@pytest.fixture
async def catalog(async_db_session) -> SimpleNamespace:
    """A small taxonomy: one make/model/variant plus one of each lookup."""
    make = VehicleMake(name="Tata")
    other_make = VehicleMake(name="Eicher")
    async_db_session.add_all([make, other_make])
    await async_db_session.flush()

    model = VehicleModel(name="LPT 3118", make_id=make.id)
    other_model = VehicleModel(name="Pro 3015", make_id=other_make.id)
    async_db_session.add_all([model, other_model])
    await async_db_session.flush()

    variant = VehicleVariant(name="Cowl", model_id=model.id)
    body_type = VehicleBodyType(name="Truck")
    tipper = VehicleBodyType(name="Tipper")
    axle_config = VehicleAxleConfig(name="6x2")
    fuel_type = VehicleFuelType(name="Diesel")
    emission_norm = VehicleEmissionNorm(name="BS-VI")
    transmission = VehicleTransmission(name="Manual")
    tags = [VehicleFeatureTag(name=name) for name in ("ABS", "GPS Tracking", "Sleeper Cabin")]

    async_db_session.add_all([
        variant, body_type, tipper, axle_config, fuel_type, emission_norm, transmission, *tags,
    ])
    await async_db_session.commit()

    return SimpleNamespace(
        make=make,
        other_make=other_make,
        model=model,
        other_model=other_model,
        variant=variant,
        body_type=body_type,
        tipper=tipper,
        axle_config=axle_config,
        fuel_type=fuel_type,
        emission_norm=emission_norm,
        transmission=transmission,
        tags=tags,
    )


@pytest.fixture
async def service_catalog(async_db_session) -> SimpleNamespace:
    center_type = ServiceCenterType(name="Authorized Dealer")
    workshop = ServiceCenterType(name="Multi-brand Workshop")
    brands = [VehicleBrand(name=name) for name in ("Tata", "Eicher", "BharatBenz")]
    services = [ServiceType(name=name) for name in ("General Service", "Tyre Service")]
    async_db_session.add_all([center_type, workshop, *brands, *services])
    await async_db_session.commit()
    return SimpleNamespace(center_type=center_type, workshop=workshop, brands=brands, services=services)


@pytest.fixture
def vehicle_payload(catalog):
    """Builds a minimal valid create body (camelCase, as the admin console sends it)."""
    def build(**overrides) -> dict:
        payload = {
            "condition": "NEW",
            "makeId": catalog.make.id,
            "modelId": catalog.model.id,
            "modelYear": 2022,
            "bodyTypeId": catalog.body_type.id,
            "axleConfigId": catalog.axle_config.id,
        }
        payload.update(overrides)
        return payload
    return build


@pytest.fixture
def publishable_payload(vehicle_payload):
    """Builds a create body with every field the publish gate asks for."""
    def build(**overrides) -> dict:
        payload = vehicle_payload(
            city="Pune",
            state="Maharashtra",
            pincode="411001",
            askingPriceInr=2450000,
            coverUrl="https://cdn.example.com/cover.jpg",
        )
        payload.update(overrides)
        return payload
    return build


# Common Test Doubles
@pytest.fixture
def mock_async_session():
    """AsyncSession-like test double: `add` is sync, the I/O methods are AsyncMock."""
    session = AsyncMock()
    session.add = MagicMock()
    session.add_all = MagicMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    return session
