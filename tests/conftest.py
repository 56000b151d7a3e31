import os
from datetime import datetime, timezone

TEST_DB_FILE = "test_campus_portal.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILE}"

# must be set before campus_portal.core.config is imported (startup init_db uses it)
os.environ["CAMPUS_PORTAL_DATABASE_URL"] = TEST_DB_URL

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from campus_portal.core.clock import FixedClock  # noqa: E402
from campus_portal.core.deps import get_clock, get_db  # noqa: E402
from campus_portal.db.base import Base  # noqa: E402
from campus_portal.main import app  # noqa: E402
from campus_portal.models.assignment import Assignment  # noqa: E402
from campus_portal.models.attempt_counter import AttemptCounter  # noqa: E402
from campus_portal.models.late_request import LateRequest  # noqa: E402
from campus_portal.models.submission import Submission  # noqa: E402
from campus_portal.routers.submissions import get_tick_interval  # noqa: E402

DEADLINE = datetime(2025, 1, 10, 10, 0, tzinfo=timezone.utc)
CREATED = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)

# seeded assignment ids
STRICT_ID = 1  # deadline, no late submissions
LATE_OK_ID = 2  # deadline, late submission requests allowed
OPEN_ID = 3  # no deadline

STUDENT_ID = 7

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


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


@pytest.fixture(autouse=True)
def seed_data():
    """Seed a clean minimal dataset for each test."""
    db = TestingSessionLocal()
    try:
        # Clear tables (child -> parent)
        db.query(Submission).delete()
        db.query(AttemptCounter).delete()
        db.query(LateRequest).delete()
        db.query(Assignment).delete()
        db.commit()

        db.add_all(
            [
                Assignment(
                    id=STRICT_ID,
                    title="HW1",
                    deadline=DEADLINE,
                    time_limit_minutes=0,
                    allow_late_submission=False,
                    max_marks=100,
                    created_at=CREATED,
                ),
                Assignment(
                    id=LATE_OK_ID,
                    title="Lab report",
                    deadline=DEADLINE,
                    time_limit_minutes=0,
                    allow_late_submission=True,
                    max_marks=50,
                    created_at=CREATED,
                ),
                Assignment(
                    id=OPEN_ID,
                    title="Reading notes",
                    deadline=None,
                    time_limit_minutes=0,
                    allow_late_submission=False,
                    max_marks=10,
                    created_at=CREATED,
                ),
            ]
        )
        db.commit()

        yield
    finally:
        db.close()


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def clock():
    # one hour before the seeded deadline
    return FixedClock(datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc))


@pytest.fixture()
def client(clock):
    """Test client that uses the test DB session and a fixed clock."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_tick_interval] = lambda: 0.01
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def session_factory():
    """For tests that need two independent sessions (e.g. two browser tabs)."""
    return TestingSessionLocal
