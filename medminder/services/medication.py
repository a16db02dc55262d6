# medminder/services/medication.py
import logging
from datetime import datetime, time as time_t
from typing import Iterable, List, Optional

from medminder.errors import NotFoundError, ValidationError
from medminder.models.medication import Medication
from medminder.models.taken_log import TakenLog
from medminder.models.users import User
from medminder.repositories.medication_repo import MedicationRepository
from medminder.schemas.schema_medication import (
    CreateMedication,
    MedicationItem,
    TakenLogItem,
)
from medminder.services.slots import utc_now

logger = logging.getLogger(__name__)


def get_user_by_email(repo: MedicationRepository, email: Optional[str]) -> User:
    if not email:
        raise ValidationError("Email is required")

    user = repo.find_user_by_email(email)
    if not user:
        raise NotFoundError("User not found")
    return user


def to_medication_item(medication: Medication, logs: Iterable[TakenLog]) -> MedicationItem:
    return MedicationItem(
        id=medication.id,
        patient_id=medication.patient_id,
        name=medication.name,
        dosage=medication.dosage,
        frequency=medication.frequency,
        times=list(medication.times),
        start_date=medication.start_date,
        end_date=medication.end_date,
        taken_log=[
            TakenLogItem(id=log.id, medication_id=log.medication_id, status=log.status, timestamp=log.timestamp)
            for log in logs
        ],
    )


def create_medication(
    repo: MedicationRepository,
    body: CreateMedication,
    now: Optional[datetime] = None,
) -> MedicationItem:
    """
    Without startDate the medication starts at the creation instant (UTC);
    without endDate it runs indefinitely. Dates are stored as 00:00 UTC of that day.
    """
    user = get_user_by_email(repo, body.email)
    now = now or utc_now()

    start_date = datetime.combine(body.start_date, time_t.min) if body.start_date else now
    end_date = datetime.combine(body.end_date, time_t.min) if body.end_date else None

    medication = repo.create_medication(
        patient_id=user.id,
        name=body.name,
        dosage=body.dosage,
        frequency=body.frequency,
        times=body.times,
        start_date=start_date,
        end_date=end_date,
    )
    logger.info("[medication] created id=%s user=%s times=%s", medication.id, user.id, medication.times)
    return to_medication_item(medication, [])


def list_medications(repo: MedicationRepository, email: Optional[str]) -> List[MedicationItem]:
    user = get_user_by_email(repo, email)
    return [
        to_medication_item(medication, medication.taken_log)
        for medication in repo.list_medications(user.id)
    ]
