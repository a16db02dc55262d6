# medminder/models/taken_log.py
from __future__ import annotations

import datetime as dt
import enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, Enum as SqlEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from medminder.db.database import Base

if TYPE_CHECKING:
    from medminder.models.medication import Medication


class LogStatus(str, enum.Enum):
    TAKEN = "TAKEN"
    MISSED = "MISSED"


class TakenLog(Base):
    __tablename__ = "taken_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    medication_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("medications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    status: Mapped[LogStatus] = mapped_column(
        SqlEnum(LogStatus, name="log_status"),
        nullable=False,
    )

    # scheduled slot on the day it was marked, wall-clock read as UTC (naive)
    timestamp: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        # one log per (medication, day, slot); upsert key
        UniqueConstraint("medication_id", "timestamp", name="uq_taken_logs_medication_timestamp"),
    )

    medication: Mapped["Medication"] = relationship("Medication", back_populates="taken_log", uselist=False)
