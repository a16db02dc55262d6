# medminder/models/medication.py
from __future__ import annotations

import datetime as dt
import uuid
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from medminder.db.database import Base

if TYPE_CHECKING:
    from medminder.models.users import User
    from medminder.models.taken_log import TakenLog


def _new_id() -> str:
    return str(uuid.uuid4())


class Medication(Base):
    __tablename__ = "medications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)

    patient_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(120), nullable=False)

    # client sends it pre-formatted ("2 tablets", "5 ml")
    dosage: Mapped[str] = mapped_column(String(60), nullable=False)

    frequency: Mapped[str] = mapped_column(String(60), nullable=False)

    # ["08:00", "20:00"], local wall-clock, no timezone
    times: Mapped[List[str]] = mapped_column(JSON, nullable=False)

    # naive UTC
    start_date: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False)
    end_date: Mapped[Optional[dt.datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=lambda: dt.datetime.now(dt.timezone.utc).replace(tzinfo=None),
    )

    __table_args__ = (
        Index("idx_medications_patient_dates", "patient_id", "start_date", "end_date"),
    )

    patient: Mapped["User"] = relationship("User", back_populates="medications", uselist=False)

    taken_log: Mapped[List["TakenLog"]] = relationship(
        "TakenLog",
        back_populates="medication",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TakenLog.id",
    )
