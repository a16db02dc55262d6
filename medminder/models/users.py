# medminder/models/users.py
from __future__ import annotations

import datetime as dt
import enum
from typing import List, TYPE_CHECKING

from sqlalchemy import String, DateTime, UniqueConstraint, Enum as SqlEnum, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from medminder.db.database import Base

if TYPE_CHECKING:
    from medminder.models.medication import Medication


class UserRole(str, enum.Enum):
    PATIENT = "PATIENT"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
    )

    # Cognito sub
    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        nullable=False,
        index=True,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )

    role: Mapped[UserRole] = mapped_column(
        SqlEnum(UserRole, name="user_role"),
        nullable=False,
        default=UserRole.PATIENT,
    )

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )

    medications: Mapped[List["Medication"]] = relationship(
        "Medication",
        back_populates="patient",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
