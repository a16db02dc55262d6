import os
import uuid
from datetime import datetime
from typing import List, Optional, Sequence

import pytest

# settings are read at import time; keep tests off MySQL and real Cognito
os.environ.setdefault("COGNITO_REGION", "us-east-1")
os.environ.setdefault("COGNITO_USER_POOL_ID", "us-east-1_testpool")
os.environ.setdefault("COGNITO_APP_CLIENT_ID", "test-client-id")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from medminder.models.medication import Medication  # noqa: E402
from medminder.models.taken_log import LogStatus, TakenLog  # noqa: E402
from medminder.models.users import User, UserRole  # noqa: E402


class InMemoryMedicationRepository:
    """Dict/list backed stand-in for SqlMedicationRepository."""

    def __init__(self):
        self.users = {}
        self.medications: List[Medication] = []
        self.logs: List[TakenLog] = []
        self._log_seq = 0

    def find_user_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)

    def find_user_by_id(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def create_user(self, user_id: str, email: str, role: UserRole = UserRole.PATIENT) -> User:
        user = User(id=user_id, email=email, role=role)
        self.users[user_id] = user
        return user

    def create_medication(self, patient_id, name, dosage, frequency, times, start_date, end_date) -> Medication:
        medication = Medication(
            id=str(uuid.uuid4()),
            patient_id=patient_id,
            name=name,
            dosage=dosage,
            frequency=frequency,
            times=list(times),
            start_date=start_date,
            end_date=end_date,
        )
        self.medications.append(medication)
        return medication

    def get_medication(self, medication_id: str) -> Optional[Medication]:
        return next((m for m in self.medications if m.id == medication_id), None)

    def list_medications(self, patient_id: str) -> List[Medication]:
        return [m for m in self.medications if m.patient_id == patient_id]

    def find_medication_ids(self, patient_id: str) -> List[str]:
        return [m.id for m in self.medications if m.patient_id == patient_id]

    def find_active_medications(self, patient_id: str, start: datetime, end: datetime) -> List[Medication]:
        return [
            m
            for m in self.list_medications(patient_id)
            if m.start_date < end and (m.end_date is None or m.end_date >= start)
        ]

    def find_logs_in_range(self, medication_ids: Sequence[str], start: datetime, end: datetime) -> List[TakenLog]:
        return [
            log
            for log in self.logs
            if log.medication_id in medication_ids and start <= log.timestamp < end
        ]

    def add_log(self, medication_id: str, timestamp: datetime, status: LogStatus) -> TakenLog:
        """Append without the upsert rule, for seeding history and duplicates."""
        self._log_seq += 1
        log = TakenLog(id=self._log_seq, medication_id=medication_id, timestamp=timestamp, status=status)
        self.logs.append(log)
        medication = self.get_medication(medication_id)
        if medication is not None:
            medication.taken_log.append(log)
        return log

    def upsert_taken_log(self, medication_id: str, timestamp: datetime, status: LogStatus) -> TakenLog:
        for log in self.logs:
            if log.medication_id == medication_id and log.timestamp == timestamp:
                log.status = status
                return log
        return self.add_log(medication_id, timestamp, status)


@pytest.fixture
def repo():
    return InMemoryMedicationRepository()


@pytest.fixture
def patient(repo):
    return repo.create_user("user-1", "patient@example.com")


@pytest.fixture
def other_patient(repo):
    return repo.create_user("user-2", "other@example.com")


@pytest.fixture
def client(repo):
    from fastapi.testclient import TestClient

    from medminder.main import app
    from medminder.repositories.medication_repo import get_medication_repository

    app.dependency_overrides[get_medication_repository] = lambda: repo
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
