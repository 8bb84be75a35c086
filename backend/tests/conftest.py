import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.v1.endpoints.time_entries import get_attendance_service
from app.auth import create_access_token, get_password_hash
from app.database import Base, get_db
from app.main import app
from app.models.user import User
from app.services.attendance import AttendanceService

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "changeme"


class FakeClock:
    """Controllable stand-in for local_now."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def db() -> Session:
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 1, 9, 0, 0))


@pytest.fixture
def service(db: Session, clock: FakeClock) -> AttendanceService:
    return AttendanceService(db, clock=clock)


def _create_user(db: Session, username: str, full_name: str, is_manager: bool) -> User:
    user = User(
        username=username,
        full_name=full_name,
        email=f"{username}@example.com",
        hashed_password=get_password_hash(PASSWORD),
        is_active=True,
        is_manager=is_manager,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def manager(db: Session) -> User:
    return _create_user(db, "admin", "Ana Manager", is_manager=True)


@pytest.fixture
def employee(db: Session) -> User:
    return _create_user(db, "employee", "Eva Employee", is_manager=False)


@pytest.fixture
def other_employee(db: Session) -> User:
    return _create_user(db, "colleague", "Carlos Colleague", is_manager=False)


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": user.username})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def manager_headers(manager: User) -> dict:
    return auth_headers(manager)


@pytest.fixture
def employee_headers(employee: User) -> dict:
    return auth_headers(employee)


@pytest.fixture
def client(db: Session, clock: FakeClock) -> TestClient:
    # Requests share the test session so fixture data and API writes see each other
    def override_get_db():
        yield db

    def override_get_attendance_service():
        return AttendanceService(db, clock=clock)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_attendance_service] = override_get_attendance_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
