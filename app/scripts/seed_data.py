"""Seeds an owner account and a starter commercial vehicle taxonomy.

Run from the app directory: `python -m scripts.seed_data`.
Existing rows (matched by name or email) are left untouched.
"""
import asyncio
import logging
import os

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auth.passwords_handler import hash_password_async
from auth.rbac import Role
from core.db import AsyncSessionLocal, create_all_tables
from core.logging import setup_logging
from models import (
    ServiceCenterType,
    ServiceType,
    User,
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

logger = logging.getLogger(__name__)

STARTER_TAXONOMY = {
    VehicleBodyType: ["Truck", "Tipper", "Trailer", "Bus", "Pickup"],
    VehicleAxleConfig: ["4x2", "6x2", "6x4", "8x2", "10x2"],
    VehicleFuelType: ["Diesel", "CNG", "Electric"],
    VehicleEmissionNorm: ["BS-IV", "BS-VI"],
    VehicleTransmission: ["Manual", "AMT"],
    VehicleFeatureTag: ["Power Steering", "Sleeper Cabin", "GPS Tracking", "ABS"],
    VehicleBrand: ["Tata", "Ashok Leyland", "Eicher", "BharatBenz"],
    ServiceCenterType: ["Authorized Dealer", "Multi-brand Workshop"],
    ServiceType: ["General Service", "Engine Overhaul", "Tyre Service"],
}

# make -> model -> variants
STARTER_MAKES = {
    "Tata": {"LPT 3118": ["Cowl", "Cabin"], "Signa 4825": []},
    "Ashok Leyland": {"Dost+": []},
    "Eicher": {"Pro 3015": []},
}


async def get_or_create(db: AsyncSession, model, **fields):
    stmt = select(model).filter_by(**fields)
    entry = (await db.execute(stmt)).scalar_one_or_none()
    if entry is None:
        entry = model(**fields)
        db.add(entry)
        await db.flush()
    return entry


def owner_credentials() -> tuple[str, str]:
    """Owner login from SEED_OWNER_EMAIL / SEED_OWNER_PASSWORD; both are required."""
    email = os.getenv("SEED_OWNER_EMAIL")
    password = os.getenv("SEED_OWNER_PASSWORD")
    if not email or not password:
        logger.error("SEED_OWNER_EMAIL and SEED_OWNER_PASSWORD must both be set")
        raise SystemExit(1)
    return email, password


async def seed_owner(db: AsyncSession, email: str, password: str):
    if await db.get(User, email) is not None:
        logger.info("Owner account already present", extra={"user_id": email})
        return
    db.add(User(
        email=email,
        fullname="Catalog Owner",
        password=await hash_password_async(password),
        role=Role.OWNER.value,
    ))
    logger.info("Owner account created", extra={"user_id": email})


async def seed():
    email, password = owner_credentials()

    if os.getenv("SEED_CREATE_TABLES", "true").lower() == "true":
        await create_all_tables()

    async with AsyncSessionLocal() as db:
        await seed_owner(db, email, password)

        for model, names in STARTER_TAXONOMY.items():
            for name in names:
                await get_or_create(db, model, name=name)

        for make_name, models in STARTER_MAKES.items():
            make = await get_or_create(db, VehicleMake, name=make_name)
            for model_name, variants in models.items():
                vehicle_model = await get_or_create(db, VehicleModel, make_id=make.id, name=model_name)
                for variant_name in variants:
                    await get_or_create(db, VehicleVariant, model_id=vehicle_model.id, name=variant_name)

        await db.commit()
        logger.info("Seed data inserted successfully")


if __name__ == "__main__":
    setup_logging()
    asyncio.run(seed())
