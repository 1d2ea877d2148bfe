import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from scheduler.database import Base  # noqa: E402
from scheduler.models.appointment import Appointment  # noqa: E402
from scheduler.models.doctor import Doctor  # noqa: E402
from scheduler.models.notification import Notification  # noqa: E402
from scheduler.models.user import User  # noqa: E402
from scheduler.models.working_hour import WorkingHour  # noqa: E402
from scheduler.services.cache import MemoryCache  # noqa: E402

TABLES = [
    Doctor.__table__,
    WorkingHour.__table__,
    User.__table__,
    Appointment.__table__,
    Notification.__table__,
]


@pytest.fixture
def db():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=TABLES)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine, tables=list(reversed(TABLES)))
        engine.dispose()


@pytest.fixture
def cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def make_doctor(db):
    def _make_doctor(name: str = 'Dr. Lan', rules=(), doctor_id: str | None = None, is_deleted: bool = False) -> Doctor:
        doctor = Doctor(name=name, is_deleted=is_deleted)
        if doctor_id is not None:
            doctor.id = doctor_id
        for day_of_week, hour, minute in rules:
            doctor.working_hours.append(WorkingHour(day_of_week=day_of_week, hour=hour, minute=minute))
        db.add(doctor)
        db.commit()
        db.refresh(doctor)
        return doctor

    return _make_doctor


@pytest.fixture
def make_user(db):
    def _make_user(name: str = 'Minh', user_id: str | None = None) -> User:
        user = User(name=name, email=f'{name.lower()}@example.com')
        if user_id is not None:
            user.id = user_id
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user
