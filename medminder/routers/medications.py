# medminder/routers/medications.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from medminder.repositories.medication_repo import MedicationRepository, get_medication_repository
from medminder.schemas.schema_medication import (
    CreateMedication,
    DailyActivity,
    MarkDose,
    MedicationItem,
    ResponseSchedule,
)
from medminder.services.medication import create_medication, get_user_by_email, list_medications
from medminder.services.schedule import get_activity, mark_dose, resolve_schedule
from medminder.services.slots import parse_target_date, utc_now

router = APIRouter(prefix="/medications", tags=["medications"])


@router.post("", response_model=MedicationItem, status_code=status.HTTP_201_CREATED)
def add_medication(
    body: CreateMedication,
    repo: MedicationRepository = Depends(get_medication_repository),
):
    """
    ## Request \n
    { \n
    "name": "Metformin", \n
    "dosage": "2 tablets", \n
    "frequency": "Twice daily", \n
    "times": ["08:00", "20:00"], \n
    "email": "patient@example.com", \n
    "startDate": "2025-03-01" (optional, defaults to now), \n
    "endDate": "2025-03-31" (optional, null = indefinite) \n
    } \n
    Every time must be a 24-hour HH:MM; at least one is required.
    """
    return create_medication(repo, body)


@router.get("", response_model=List[MedicationItem])
def get_medications(
    email: Optional[str] = Query(None),
    repo: MedicationRepository = Depends(get_medication_repository),
):
    """
    ex) /medications?email=patient@example.com \n
    All of the user's medications with every taken log.
    """
    return list_medications(repo, email)


@router.get("/schedule", response_model=ResponseSchedule)
def get_schedule(
    email: Optional[str] = Query(None),
    date: Optional[str] = Query(None, description="YYYY-MM-DD, defaults to today (UTC)"),
    repo: MedicationRepository = Depends(get_medication_repository),
):
    """
    ex) /medications/schedule?email=patient@example.com&date=2025-03-02 \n
    Medications active on that date, each slot marked TAKEN / MISSED / PENDING. \n
    A missing or unparseable date means today.
    """
    user = get_user_by_email(repo, email)
    now = utc_now()
    return resolve_schedule(repo, user.id, parse_target_date(date, now), now=now)


@router.get("/activity", response_model=List[DailyActivity])
def get_medication_activity(
    email: Optional[str] = Query(None),
    repo: MedicationRepository = Depends(get_medication_repository),
):
    """
    ex) /medications/activity?email=patient@example.com \n
    Last 7 days (UTC), today first.
    """
    user = get_user_by_email(repo, email)
    return get_activity(repo, user.id)


@router.post("/{medication_id}/taken-log", response_model=MedicationItem)
def add_taken_log(
    medication_id: str,
    body: MarkDose,
    repo: MedicationRepository = Depends(get_medication_repository),
):
    """
    ## Request \n
    { "time": "08:00", "status": "TAKEN" | "MISSED", "email": "patient@example.com" } \n
    Marking the same slot again today overwrites the previous status.
    """
    user = get_user_by_email(repo, body.email)
    return mark_dose(repo, user.id, medication_id, body.time, body.status)
