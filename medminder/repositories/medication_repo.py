# medminder/repositories/medication_repo.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Protocol, Sequence

from fastapi import Depends
from sqlalchemy import select, and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from medminder.db.database import get_db
from medminder.models.medication import Medication
from medminder.models.taken_log import LogStatus, TakenLog
from medminder.models.users import User, UserRole

logger = logging.getLogger(__name__)


class MedicationRepository(Protocol):
    """Data access the schedule and medication services depend on."""

    def find_user_by_email(self, email: str) -> Optional[User]: ...

    def find_user_by_id(self, user_id: str) -> Optional[User]: ...

    def create_user(self, user_id: str, email: str, role: UserRole = UserRole.PATIENT) -> User: ...

    def create_medication(
        self,
        patient_id: str,
        name: str,
        dosage: str,
        frequency: str,
        times: List[str],
        start_date: datetime,
        end_date: Optional[datetime],
    ) -> Medication: ...

    def get_medication(self, medication_id: str) -> Optional[Medication]: ...

    def list_medications(self, patient_id: str) -> List[Medication]: ...

    def find_medication_ids(self, patient_id: str) -> List[str]: ...

    def find_active_medications(self, patient_id: str, start: datetime, end: datetime) -> List[Medication]: ...

    def find_logs_in_range(self, medication_ids: Sequence[str], start: datetime, end: datetime) -> List[TakenLog]: ...

    def upsert_taken_log(self, medication_id: str, timestamp: datetime, status: LogStatus) -> TakenLog: ...


class SqlMedicationRepository:
    def __init__(self, db: Session):
        self.db = db

    # ---------- users ----------
    def find_user_by_email(self, email: str) -> Optional[User]:
        return self.db.execute(select(User).where(User.email == email)).scalars().first()

    def find_user_by_id(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    def create_user(self, user_id: str, email: str, role: UserRole = UserRole.PATIENT) -> User:
        user = User(id=user_id, email=email, role=role)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    # ---------- medications ----------
    def create_medication(
        self,
        patient_id: str,
        name: str,
        dosage: str,
        frequency: str,
        times: List[str],
        start_date: datetime,
        end_date: Optional[datetime],
    ) -> Medication:
        medication = Medication(
            patient_id=patient_id,
            name=name,
            dosage=dosage,
            frequency=frequency,
            times=list(times),
            start_date=start_date,
            end_date=end_date,
        )
        self.db.add(medication)
        self.db.commit()
        self.db.refresh(medication)
        return medication

    def get_medication(self, medication_id: str) -> Optional[Medication]:
        return self.db.get(Medication, medication_id)

    def list_medications(self, patient_id: str) -> List[Medication]:
        stmt = (
            select(Medication)
            .where(Medication.patient_id == patient_id)
            .options(selectinload(Medication.taken_log))
            .order_by(Medication.created_at.asc(), Medication.id.asc())
        )
        return self.db.execute(stmt).scalars().all()

    def find_medication_ids(self, patient_id: str) -> List[str]:
        stmt = select(Medication.id).where(Medication.patient_id == patient_id)
        return self.db.execute(stmt).scalars().all()

    def find_active_medications(self, patient_id: str, start: datetime, end: datetime) -> List[Medication]:
        """
        start_date < end AND (end_date IS NULL OR end_date >= start)
        """
        stmt = (
            select(Medication)
            .where(
                and_(
                    Medication.patient_id == patient_id,
                    Medication.start_date < end,
                    or_(Medication.end_date.is_(None), Medication.end_date >= start),
                )
            )
            .order_by(Medication.created_at.asc(), Medication.id.asc())
        )
        return self.db.execute(stmt).scalars().all()

    # ---------- taken logs ----------
    def find_logs_in_range(self, medication_ids: Sequence[str], start: datetime, end: datetime) -> List[TakenLog]:
        if not medication_ids:
            return []
        stmt = (
            select(TakenLog)
            .where(
                and_(
                    TakenLog.medication_id.in_(list(medication_ids)),
                    TakenLog.timestamp >= start,
                    TakenLog.timestamp < end,
                )
            )
            .order_by(TakenLog.id.asc())
        )
        return self.db.execute(stmt).scalars().all()

    def _find_log(self, medication_id: str, timestamp: datetime) -> Optional[TakenLog]:
        return (
            self.db.execute(
                select(TakenLog).where(
                    TakenLog.medication_id == medication_id,
                    TakenLog.timestamp == timestamp,
                )
            )
            .scalars()
            .first()
        )

    def upsert_taken_log(self, medication_id: str, timestamp: datetime, status: LogStatus) -> TakenLog:
        """
        Same (medication_id, timestamp) overwrites the status, last write wins.
        An insert that loses a unique-constraint race is retried once as an update.
        """
        row = self._find_log(medication_id, timestamp)
        if row:
            row.status = status
            self.db.commit()
            return row

        row = TakenLog(medication_id=medication_id, timestamp=timestamp, status=status)
        self.db.add(row)
        try:
            self.db.commit()
            return row
        except IntegrityError:
            self.db.rollback()
            logger.info("[taken_log] concurrent insert for medication=%s at %s, retrying as update", medication_id, timestamp)

        row = self._find_log(medication_id, timestamp)
        if row is None:
            raise RuntimeError("taken log upsert failed after unique conflict")
        row.status = status
        self.db.commit()
        return row


def get_medication_repository(db: Session = Depends(get_db)) -> MedicationRepository:
    return SqlMedicationRepository(db)
