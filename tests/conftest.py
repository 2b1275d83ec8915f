import os

# Point the app at an in-memory database before any gearguard module builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CASCADE_RETRY_BACKOFF_SECONDS", "0")

from types import SimpleNamespace
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gearguard.core.security import create_access_token, get_password_hash
from gearguard.database import get_db
from gearguard.db.base import Base
from gearguard.main import app
from gearguard.models import Equipment, MaintenanceTeam, OwnershipType, User, UserRole

TEST_PASSWORD = "password123"
PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_team(db):
    def _make(name=None, specialization="General"):
        team = MaintenanceTeam(name=name or f"Team {uuid.uuid4().hex[:6]}", specialization=specialization)
        db.add(team)
        db.commit()
        db.refresh(team)
        return team
    return _make


@pytest.fixture
def make_user(db):
    def _make(role=UserRole.USER, name=None, team=None, email=None):
        user = User(
            name=name or f"{role.value} {uuid.uuid4().hex[:6]}",
            email=email or f"{uuid.uuid4().hex[:10]}@gearguard.io",
            hashed_password=PASSWORD_HASH,
            role=role,
            team_id=team.id if team else None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_equipment(db):
    def _make(team, technician, serial_number=None, category="CNC Machine", is_active=True):
        equipment = Equipment(
            name="Lathe",
            serial_number=serial_number or f"SN-{uuid.uuid4().hex[:8].upper()}",
            category=category,
            location="Hall B",
            ownership_type=OwnershipType.DEPARTMENT,
            department="Production",
            maintenance_team_id=team.id,
            default_technician_id=technician.id,
            is_active=is_active,
        )
        db.add(equipment)
        db.commit()
        db.refresh(equipment)
        return equipment
    return _make


@pytest.fixture
def world(make_team, make_user, make_equipment):
    """Team T1 with technician U1, a second team, staff and two requesters, and equipment E1."""
    t1 = make_team("Mechanics")
    t2 = make_team("Electricians")
    u1 = make_user(UserRole.TECHNICIAN, name="Tina Tech", team=t1)
    return SimpleNamespace(
        team=t1,
        other_team=t2,
        technician=u1,
        teammate=make_user(UserRole.TECHNICIAN, name="Tom Teammate", team=t1),
        outsider=make_user(UserRole.TECHNICIAN, name="Olga Outsider", team=t2),
        manager=make_user(UserRole.MANAGER, name="Mia Manager"),
        admin=make_user(UserRole.ADMIN, name="Ada Admin"),
        requester=make_user(UserRole.USER, name="Uma User"),
        other_requester=make_user(UserRole.USER, name="Otto User"),
        equipment=make_equipment(t1, u1, serial_number="SN-E1"),
    )


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = create_access_token({"sub": str(user.id), "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}
    return _headers
