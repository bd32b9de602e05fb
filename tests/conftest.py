import os
import shutil
import tempfile
from datetime import datetime, timedelta, timezone

TEST_DB_FILE = "test_campus.db"
TEST_UPLOAD_DIR = tempfile.mkdtemp(prefix="campus-uploads-")

# configure before anything imports campus.core.config
os.environ["LMS_DATABASE_URL"] = f"sqlite:///./{TEST_DB_FILE}"
os.environ["LMS_BCRYPT_ROUNDS"] = "4"
os.environ["LMS_UPLOAD_DIR"] = TEST_UPLOAD_DIR
os.environ.pop("OPENAI_API_KEY", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from campus.core.deps import get_ai_client, get_db  # noqa: E402
from campus.core.security import hash_password  # noqa: E402
from campus.db.base import Base  # noqa: E402
from campus.main import app  # noqa: E402
from campus.models.ai_artifact import AiRecommendation, GeneratedSyllabus  # noqa: E402
from campus.models.assignment import Assignment  # noqa: E402
from campus.models.course import Course  # noqa: E402
from campus.models.enrollment import Enrollment  # noqa: E402
from campus.models.password_reset import PasswordReset  # noqa: E402
from campus.models.submission import Submission  # noqa: E402
from campus.models.user import User  # noqa: E402
from campus.models.user_session import UserSession  # noqa: E402
from campus.services.ai import fallback_recommendations, fallback_syllabus  # noqa: E402

PASSWORD = "password123"

engine = create_engine(
    os.environ["LMS_DATABASE_URL"],
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeAIClient:
    def __init__(self):
        self.calls = []

    def recommend_courses(self, interests, level="any", existing_courses=None):
        self.calls.append(("recommend", interests, level, list(existing_courses or [])))
        return fallback_recommendations()

    def generate_syllabus(self, course_title, course_description, duration, credits):
        self.calls.append(("syllabus", course_title, duration, credits))
        return fallback_syllabus(course_title, course_description, duration, credits)


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create a fresh schema once for the whole test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)
    shutil.rmtree(TEST_UPLOAD_DIR, ignore_errors=True)


_PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture(autouse=True)
def seed_data():
    """Seed a clean minimal dataset for each test and return the ids."""
    db = TestingSessionLocal()
    try:
        # Clear tables (child -> parent)
        for model in (
            UserSession,
            PasswordReset,
            AiRecommendation,
            GeneratedSyllabus,
            Submission,
            Enrollment,
            Assignment,
            Course,
            User,
        ):
            db.query(model).delete()
        db.commit()

        def make_user(username, role, phone=None):
            return User(
                username=username,
                email=f"{username}@example.com",
                phone_number=phone,
                role=role,
                first_name=username.capitalize(),
                last_name="Tester",
                hashed_password=_PASSWORD_HASH,
            )

        student = make_user("student1", "student", phone="+15550001")
        student2 = make_user("student2", "student")
        lecturer = make_user("lecturer1", "lecturer")
        lecturer2 = make_user("lecturer2", "lecturer")
        admin = make_user("admin1", "admin")
        db.add_all([student, student2, lecturer, lecturer2, admin])
        db.commit()

        # Courses
        cs101 = Course(
            title="Intro to Computing",
            code="CS101",
            credits=3,
            department="Computer Science",
            lecturer_id=lecturer.id,
        )
        math200 = Course(
            title="Linear Algebra",
            code="MATH200",
            credits=4,
            department="Mathematics",
            lecturer_id=lecturer2.id,
        )
        retired = Course(
            title="Punch Cards",
            code="OLD100",
            credits=2,
            department="Computer Science",
            lecturer_id=lecturer.id,
            is_active=False,
        )
        db.add_all([cs101, math200, retired])
        db.commit()

        # Approved enrollment for student1 in CS101
        enrollment = Enrollment(course_id=cs101.id, student_id=student.id, status="approved")
        db.add(enrollment)
        db.commit()

        # Assignments (future due dates so nothing is overdue)
        hw1 = Assignment(
            course_id=cs101.id,
            title="HW1",
            due_date=datetime.now(timezone.utc) + timedelta(days=1),
            max_points=100,
            weight=20,
        )
        project = Assignment(
            course_id=cs101.id,
            title="Project",
            due_date=datetime.now(timezone.utc) + timedelta(days=14),
            max_points=50,
            weight=40,
            file_required=True,
        )
        db.add_all([hw1, project])
        db.commit()

        yield {
            "student": student.id,
            "student2": student2.id,
            "lecturer": lecturer.id,
            "lecturer2": lecturer2.id,
            "admin": admin.id,
            "cs101": cs101.id,
            "math200": math200.id,
            "retired": retired.id,
            "enrollment": enrollment.id,
            "hw1": hw1.id,
            "project": project.id,
        }
    finally:
        db.close()


@pytest.fixture()
def ids(seed_data):
    return seed_data


@pytest.fixture()
def fake_ai():
    return FakeAIClient()


@pytest.fixture()
def client(fake_ai):
    """Test client that uses the test DB session via dependency override."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ai_client] = lambda: fake_ai
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def session_factory():
    return TestingSessionLocal


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def login(client, username: str, password: str = PASSWORD) -> str:
    r = client.post("/auth/login", json={"username": username, "password": password})
    assert r.status_code == 200, r.text
    # keep tests explicit about which identity they use
    client.cookies.clear()
    return r.json()["access_token"]


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def as_user(client):
    """Return auth headers for a seeded username."""
    cache = {}

    def _headers(username: str) -> dict:
        if username not in cache:
            cache[username] = auth_header(login(client, username))
        return cache[username]

    return _headers
