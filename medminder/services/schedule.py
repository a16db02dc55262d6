# medminder/services/schedule.py
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from medminder.errors import ForbiddenError, NotFoundError, ValidationError
from medminder.models.taken_log import LogStatus, TakenLog
from medminder.models.users import User
from medminder.repositories.medication_repo import MedicationRepository
from medminder.schemas.schema_medication import (
    DailyActivity,
    MedicationItem,
    ResponseSchedule,
    ScheduledMedication,
    SlotItem,
    SlotStatus,
)
from medminder.services.medication import to_medication_item
from medminder.services.slots import day_window, parse_slot, slot_of, utc_now

logger = logging.getLogger(__name__)

ACTIVITY_DAYS = 7


def _require_user(repo: MedicationRepository, user_id: str) -> User:
    user = repo.find_user_by_id(user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def _slot_status(slot: str, logs: List[TakenLog]) -> SlotStatus:
    # first match in retrieval order wins
    for log in logs:
        if slot_of(log.timestamp) == slot:
            return SlotStatus(log.status.value)
    return SlotStatus.PENDING


def resolve_schedule(
    repo: MedicationRepository,
    user_id: str,
    target_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> ResponseSchedule:
    """
    Medications active on target_date with each slot's status.

    - day boundaries are fixed at UTC midnight: [target 00:00, next day 00:00)
    - active means start_date < next day 00:00 and end_date is null or >= target 00:00
    - a slot takes the status of the log whose UTC HH:MM equals it, else PENDING
    """
    _require_user(repo, user_id)
    now = now or utc_now()
    target_date = target_date or now.date()
    start_of_day, end_of_day = day_window(target_date)

    medications = repo.find_active_medications(user_id, start_of_day, end_of_day)
    logs = repo.find_logs_in_range([m.id for m in medications], start_of_day, end_of_day)

    logs_by_medication: Dict[str, List[TakenLog]] = defaultdict(list)
    for log in logs:
        logs_by_medication[log.medication_id].append(log)

    result = [
        ScheduledMedication(
            medication_id=medication.id,
            name=medication.name,
            dosage=medication.dosage,
            times=[
                SlotItem(time=slot, status=_slot_status(slot, logs_by_medication[medication.id]))
                for slot in medication.times
            ],
        )
        for medication in medications
    ]

    return ResponseSchedule(medications=result, is_today=target_date == now.date())


def mark_dose(
    repo: MedicationRepository,
    user_id: str,
    medication_id: str,
    time: str,
    status: LogStatus,
    now: Optional[datetime] = None,
) -> MedicationItem:
    """
    Mark today's `time` slot TAKEN or MISSED and return the medication with
    the day's logs. A repeated mark for the same slot overwrites the previous
    status instead of adding a row.
    """
    _require_user(repo, user_id)

    medication = repo.get_medication(medication_id)
    if not medication:
        raise NotFoundError("Medication not found")
    if medication.patient_id != user_id:
        raise ForbiddenError("Forbidden")

    now = now or utc_now()
    try:
        slot = parse_slot(time)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    timestamp = datetime.combine(now.date(), slot)

    if time not in medication.times:
        logger.warning(
            "[mark_dose] slot %s is not configured for medication=%s (times=%s); stored anyway",
            time, medication_id, medication.times,
        )

    log = repo.upsert_taken_log(medication_id, timestamp, status)
    logger.info("[mark_dose] medication=%s timestamp=%s status=%s", medication_id, log.timestamp, log.status.value)

    start_of_day, end_of_day = day_window(now.date())
    return to_medication_item(
        medication,
        repo.find_logs_in_range([medication_id], start_of_day, end_of_day),
    )


def _day_status(logs: List[TakenLog]) -> SlotStatus:
    if not logs:
        return SlotStatus.PENDING
    if any(log.status == LogStatus.MISSED for log in logs):
        return SlotStatus.MISSED
    return SlotStatus.TAKEN


def get_activity(
    repo: MedicationRepository,
    user_id: str,
    now: Optional[datetime] = None,
) -> List[DailyActivity]:
    """
    Rolling 7-day summary, newest first (index 0 is today).

    A day with no logs is PENDING; a single MISSED log marks the whole day
    MISSED. totalMedications counts every medication the user has, active on
    that day or not.
    """
    _require_user(repo, user_id)
    now = now or utc_now()
    today = now.date()

    window_start, _ = day_window(today - timedelta(days=ACTIVITY_DAYS - 1))
    _, window_end = day_window(today)

    medication_ids = repo.find_medication_ids(user_id)
    logs = repo.find_logs_in_range(medication_ids, window_start, window_end)

    logs_by_day: Dict[date, List[TakenLog]] = defaultdict(list)
    for log in logs:
        logs_by_day[log.timestamp.date()].append(log)

    activity = []
    for offset in range(ACTIVITY_DAYS):
        day = today - timedelta(days=offset)
        day_logs = logs_by_day[day]
        activity.append(
            DailyActivity(
                date=day,
                status=_day_status(day_logs),
                total_medications=len(medication_ids),
                taken_count=sum(1 for log in day_logs if log.status == LogStatus.TAKEN),
                missed_count=sum(1 for log in day_logs if log.status == LogStatus.MISSED),
            )
        )
    return activity
