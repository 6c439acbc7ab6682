from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base
from models.base import utcnow


class User(Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    fullname: Mapped[str] = mapped_column(String)
    password: Mapped[str] = mapped_column(String)
    role: Mapped[str] = mapped_column(String(32), default="user")  # auth.rbac.Role
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
