import os
import tempfile

# settings are read at import time, so they must be in place before the app loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="swasthya-uploads-")
os.environ["MAIL_ENABLED"] = "false"
os.environ["CLINIC_TIMEZONE"] = "UTC"

from datetime import date, datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from core.auth_utils import create_access_token, hash_password  # noqa: E402
from database import Base, SessionLocal, engine  # noqa: E402
from main import app  # noqa: E402
from model.common import generate_uid  # noqa: E402
from model.doctor_model import Doctors  # noqa: E402
from model.patient_model import Patients  # noqa: E402
from model.user_model import Users  # noqa: E402
from services.ai_ml_client import get_ai_client  # noqa: E402

PASSWORD = "correct-horse-battery"

WEEKDAY_WINDOWS = [
    {"day_of_week": day, "start_time": "09:00", "end_time": "17:00", "is_available": True}
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
]


def next_weekday(weekday: int, weeks_ahead: int = 1) -> date:
    """A date on ``weekday`` (0=Monday) at least ``weeks_ahead`` weeks from today."""
    today = date.today()
    days = (weekday - today.weekday()) % 7 or 7
    return today + timedelta(days=days + 7 * (weeks_ahead - 1))


def at(day: date, hhmm: str) -> str:
    hour, minute = (int(part) for part in hhmm.split(":"))
    return datetime(day.year, day.month, day.day, hour, minute).isoformat()


class FakeAIClient:
    """Stands in for the ML/blockchain service; records what it was asked."""

    def __init__(self):
        self.available = True
        self.calls = []
        self.records = []
        self.verified = {}
        self.stored = None
        self.fail = False

    def is_service_available(self):
        return self.available

    def diagnose(self, symptoms, patient_id=None, description=None):
        self.calls.append(("diagnose", symptoms))
        if self.fail:
            from services.ai_ml_client import MLServiceError
            raise MLServiceError("boom")
        return {"suggestions": [{"condition": "Common cold", "probability": 0.7}], "confidence": 0.7,
                "analysis": "Likely viral"}

    def analyze_symptoms(self, symptoms, description=None):
        return self.diagnose(symptoms, description=description)

    def analyze_image(self, image_bytes=None, image_url=None, patient_id=None):
        self.calls.append(("analyze_image", image_url, len(image_bytes or b"")))
        return {"diagnosis": "No fracture", "conditions": [], "confidence": 0.9, "findings": []}

    def get_patient_records(self, patient_id):
        self.calls.append(("records", patient_id))
        return self.records

    def upload_medical_record(self, content, filename, content_type, patient_id, metadata=None, labels=None,
                              tags=None):
        self.calls.append(("upload", filename, patient_id, labels, tags))
        return {"success": True, "fileId": "file-1"}

    def store_medical_record(self, patient_id, file_id, filename, metadata=None):
        self.calls.append(("store", patient_id, file_id))
        return self.stored

    def verify_medical_record(self, file_id):
        return self.verified.get(file_id)


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def fake_ai():
    fake = FakeAIClient()
    app.dependency_overrides[get_ai_client] = lambda: fake
    return fake


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(role="patient", is_active=True, with_profile=True, availability=None, **fields):
        counter["n"] += 1
        uid = generate_uid("user")
        user = Users(
            uid=uid,
            email=fields.pop("email", f"{role}{counter['n']}@example.com"),
            hashed_password=hash_password(PASSWORD),
            first_name=fields.pop("first_name", role.title()),
            last_name=fields.pop("last_name", f"Number{counter['n']}"),
            role=role,
            is_active=is_active,
            **fields,
        )
        if with_profile and role == "patient":
            user.patient = Patients(uid=f"patient_{uid}")
        elif with_profile and role == "doctor":
            user.doctor = Doctors(
                uid=f"doctor_{uid}",
                license_number=f"LIC-{counter['n']}",
                specialization=["cardiology"],
                availability=WEEKDAY_WINDOWS if availability is None else availability,
                is_accepting_new_patients=True,
            )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


def auth(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.uid, user.email, user.role)}"}


@pytest.fixture
def patient(make_user):
    return make_user("patient")


@pytest.fixture
def doctor(make_user):
    return make_user("doctor")


@pytest.fixture
def admin(make_user):
    return make_user("admin")
