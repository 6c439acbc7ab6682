import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auth.auth_handler import sign_jwt
from auth.passwords_handler import hash_password_async, verify_password_async
from auth.rbac import Role
from core.db import get_db
from models.user import User
from schemas.user import TokenOut, UserLoginSchema, UserSchema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenOut)
async def register_user(user: UserSchema, db: AsyncSession = Depends(get_db)):
    # Verify if user exists in db
    existing_user = (await db.execute(select(User).where(User.email == user.email))).scalar_one_or_none()
    if existing_user:
        raise HTTPException(status_code=409, detail="Email already registered.")

    hashed_password = await hash_password_async(user.password)

    # Self registration never grants the owner role
    new_user = User(
        email=user.email,
        fullname=user.fullname,
        password=hashed_password,
        role=Role.USER.value,
    )
    db.add(new_user)

    try:
        await db.commit()
    except IntegrityError:
        # handle race where another request created the same email
        await db.rollback()
        raise HTTPException(status_code=409, detail="Email already registered.")

    logger.info("User registered", extra={"user_id": new_user.email})
    return sign_jwt(new_user.email, new_user.role)


@router.post("/login", response_model=TokenOut)
async def login_user(user: UserLoginSchema, db: AsyncSession = Depends(get_db)):
    existing_user = (await db.execute(select(User).where(User.email == user.email))).scalar_one_or_none()
    if not existing_user:
        raise HTTPException(status_code=404, detail="User not found.")

    password_valid = await verify_password_async(user.password, existing_user.password)
    if not password_valid:
        logger.warning("Login failed", extra={"user_id": existing_user.email})
        raise HTTPException(status_code=401, detail="Invalid password.")

    return sign_jwt(existing_user.email, existing_user.role)
