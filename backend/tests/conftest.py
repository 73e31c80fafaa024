from __future__ import annotations

import datetime as dt
import os
import tempfile
from pathlib import Path
from typing import Callable, Generator

_TEST_DIR = tempfile.mkdtemp(prefix="agenda-tests-")
os.environ.setdefault("AGENDA_SQLITE_PATH", str(Path(_TEST_DIR) / "app.db"))
os.environ.setdefault("AGENDA_SECRET_KEY", "test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from agenda import models
from agenda.auth import hash_password
from agenda.database import build_engine, get_db
from agenda.main import app

PASSWORD = "rahasia123"


@pytest.fixture(scope="session")
def temp_db_path() -> Generator[Path, None, None]:
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "test.db"
        yield path


@pytest.fixture(scope="session")
def engine(temp_db_path: Path):
    engine = build_engine(f"sqlite:///{temp_db_path}")
    models.Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture(scope="session")
def password_hash() -> str:
    return hash_password(PASSWORD)


@pytest.fixture(scope="function")
def session(engine) -> Generator[Session, None, None]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionTesting = sessionmaker(bind=connection, autoflush=False, autocommit=False, future=True)
    session = SessionTesting()
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture()
def isolated_sessionmaker(tmp_path: Path) -> sessionmaker:
    """Sessions on their own database file, for tests that need real commits and rollbacks."""
    engine = build_engine(f"sqlite:///{tmp_path / 'isolated.db'}")
    models.Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    finally:
        engine.dispose()


@pytest.fixture(scope="function")
def client(session: Session) -> Generator[TestClient, None, None]:
    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _make_user(session: Session, password_hash: str, email: str, name: str) -> models.User:
    user = models.User(email=email, name=name, password_hash=password_hash)
    session.add(user)
    session.flush()
    return user


@pytest.fixture()
def user(session: Session, password_hash: str) -> models.User:
    return _make_user(session, password_hash, "sari@example.com", "Sari")


@pytest.fixture()
def other_user(session: Session, password_hash: str) -> models.User:
    return _make_user(session, password_hash, "budi@example.com", "Budi")


@pytest.fixture()
def employee(session: Session) -> models.Employee:
    employee = models.Employee(name="Eka Putri", email="eka@example.com", position="Relationship Manager")
    session.add(employee)
    session.flush()
    return employee


@pytest.fixture()
def branch(session: Session) -> models.Branch:
    branch = models.Branch(name="Cabang Surabaya")
    session.add(branch)
    session.flush()
    return branch


@pytest.fixture()
def auth_client(client: TestClient, user: models.User) -> TestClient:
    response = client.post("/auth/signin", json={"email": user.email, "password": PASSWORD})
    assert response.status_code == 200
    return client


@pytest.fixture()
def future_day() -> dt.date:
    return dt.date.today() + dt.timedelta(days=30)


def build_meeting(session: Session, creator, employee, branch, day: dt.date, time: str = "10:00", **extra) -> models.Activity:
    activity = models.Activity(
        date=day,
        time=time,
        activity_type=models.ActivityType.PROSPECT_MEETING,
        employee_id=employee.id,
        branch_id=branch.id,
        created_by=creator.id,
        title=extra.pop("title", "Prospect lunch"),
        description=extra.pop("description", "Discuss savings products"),
        **extra,
    )
    session.add(activity)
    session.flush()
    return activity


def build_trip(
    session: Session,
    creator,
    employee,
    branch,
    day: dt.date,
    time: str = "08:00",
    days: list[tuple[dt.date, list[str]]] | None = None,
) -> models.Activity:
    activity = models.Activity(
        date=day,
        time=time,
        activity_type=models.ActivityType.PERJALANAN_DINAS,
        employee_id=employee.id,
        branch_id=branch.id,
        created_by=creator.id,
        birth_date=dt.date(1990, 5, 17),
        id_card="3578011705900001",
        departure_date=day,
        transportation_type=models.TransportationType.FLIGHT,
        transportation_name="Garuda Indonesia GA-312",
        booking_flight_no="XK7Q2P",
        transportation_from="Surabaya",
        destination="Jakarta",
        departure_from="SUB",
        arrival_to="CGK",
    )
    itinerary = days if days is not None else [
        (day, ["Meeting", "Site Visit"]),
        (day + dt.timedelta(days=1), ["Return"]),
    ]
    for index, (trip_day, items) in enumerate(itinerary):
        daily = models.DailyActivity(
            date=trip_day,
            need_hotel=index == 0,
            hotel_check_in=trip_day if index == 0 else None,
            hotel_check_out=trip_day + dt.timedelta(days=1) if index == 0 else None,
            hotel_name="Hotel Indonesia Kempinski" if index == 0 else None,
            hotel_address="Jl. M.H. Thamrin No.1, Jakarta" if index == 0 else None,
        )
        daily.activity_items = [models.ActivityItem(name=name, order=position) for position, name in enumerate(items)]
        activity.daily_activities.append(daily)
    session.add(activity)
    session.flush()
    return activity


@pytest.fixture()
def make_meeting(session: Session, user, employee, branch) -> Callable[..., models.Activity]:
    def factory(day: dt.date, time: str = "10:00", **extra) -> models.Activity:
        return build_meeting(session, user, employee, branch, day, time, **extra)

    return factory


@pytest.fixture()
def make_trip(session: Session, user, employee, branch) -> Callable[..., models.Activity]:
    def factory(day: dt.date, time: str = "08:00", days=None) -> models.Activity:
        return build_trip(session, user, employee, branch, day, time, days)

    return factory
