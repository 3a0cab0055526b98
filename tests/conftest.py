"""
Shared pytest configuration: in-memory SQLite database, API client and seed data.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fleet_venue.database import Base, get_db
from fleet_venue.main import app
from fleet_venue.models import (
    Role, RoleName, Department, Employee, Module, ModuleCode, User,
    Resource, ResourceType, Vehicle, DriverLicense, LicenseStatus,
    Room, RoomCapacity, RoomCost,
    Service, Equipment, Tasting, LayoutType, CostType, PaymentType, MaintenanceType,
)
from fleet_venue.services.session_registry import session_registry
from fleet_venue.utils.security import hash_password, create_access_token

PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def db():
    """Fresh schema per test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def _get_db():
        yield db
    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers(db, user: User) -> dict:
    """Open a registry session for ``user`` and return a Bearer header for it."""
    session = session_registry.open(db, user.id)
    db.commit()
    token = create_access_token(user.id, user.role.name.value, user.module_codes, session.sessionId)
    return {"Authorization": f"Bearer {token}"}


# ─── Users ────────────────────────────────────────────────────────────────────
@pytest.fixture
def roles(db):
    admin, staff = Role(name=RoleName.ADMIN), Role(name=RoleName.STAFF)
    db.add_all([admin, staff])
    db.commit()
    return {RoleName.ADMIN: admin, RoleName.STAFF: staff}


@pytest.fixture
def modules(db):
    rows = {
        code: Module(code=code, name=code.title())
        for code in (ModuleCode.FLEET, ModuleCode.ROOMS, ModuleCode.RESERVATIONS, ModuleCode.USERS)
    }
    db.add_all(rows.values())
    db.commit()
    return rows


@pytest.fixture
def admin_user(db, roles):
    user = User(name="Admin", email="admin@example.com", password=PASSWORD_HASH,
                roleId=roles[RoleName.ADMIN].id)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def fleet_staff(db, roles, modules):
    """STAFF user holding only the FLEET module."""
    user = User(name="Fleet Clerk", email="fleet@example.com", password=PASSWORD_HASH,
                roleId=roles[RoleName.STAFF].id, modules=[modules[ModuleCode.FLEET]])
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_headers(db, admin_user):
    return auth_headers(db, admin_user)


@pytest.fixture
def fleet_headers(db, fleet_staff):
    return auth_headers(db, fleet_staff)


# ─── Fleet ────────────────────────────────────────────────────────────────────
@pytest.fixture
def drivers_department(db):
    dept = Department(name="Drivers")
    db.add(dept)
    db.commit()
    return dept


@pytest.fixture
def driver(db, drivers_department):
    emp = Employee(firstName="Ana", lastName="Lopez", email="ana@example.com",
                   departmentId=drivers_department.id)
    db.add(emp)
    db.flush()
    db.add(DriverLicense(
        employeeId=emp.id,
        licenseNumber="LIC-0001",
        licenseType="B",
        issueDate=date.today() - timedelta(days=365),
        expiryDate=date.today() + timedelta(days=365),
        status=LicenseStatus.ACTIVE,
    ))
    db.commit()
    db.refresh(emp)
    return emp


@pytest.fixture
def requester(db, drivers_department):
    emp = Employee(firstName="Luis", lastName="Mena", email="luis@example.com",
                   departmentId=drivers_department.id)
    db.add(emp)
    db.commit()
    return emp


@pytest.fixture
def vehicle(db):
    resource = Resource(name="Toyota Hilux P123ABC", type=ResourceType.VEHICLE)
    db.add(resource)
    db.flush()
    v = Vehicle(resourceId=resource.id, plateNumber="P123ABC", brand="Toyota", model="Hilux",
                year=2021, currentOdometer=1000)
    db.add(v)
    db.commit()
    db.refresh(v)
    return v


@pytest.fixture
def maintenance_types(db):
    corrective = MaintenanceType(name="Brake repair", isCorrective=True)
    preventive = MaintenanceType(name="Oil change", isCorrective=False)
    db.add_all([corrective, preventive])
    db.commit()
    return {"corrective": corrective, "preventive": preventive}


# ─── Rooms ────────────────────────────────────────────────────────────────────
@pytest.fixture
def catalogs(db):
    rows = {
        "service":   Service(name="Catering"),
        "equipment": Equipment(name="Projector"),
        "tasting":   Tasting(name="Menu tasting"),
        "layout":    LayoutType(name="Theater"),
        "payment":   PaymentType(name="Transfer"),
        "base":      CostType(id=1, name="Base price"),
        "deposit":   CostType(id=2, name="Deposit"),
    }
    db.add_all(rows.values())
    db.commit()
    return rows


@pytest.fixture
def make_room(db):
    def _make(name: str) -> Room:
        resource = Resource(name=name, type=ResourceType.ROOM)
        db.add(resource)
        db.flush()
        room = Room(resourceId=resource.id)
        db.add(room)
        db.commit()
        db.refresh(room)
        return room
    return _make


@pytest.fixture
def room(db, catalogs, make_room):
    r = make_room("Salon Azul")
    db.add_all([
        RoomCapacity(roomId=r.id, layoutTypeId=catalogs["layout"].id, people=50),
        RoomCost(roomId=r.id, costTypeId=catalogs["base"].id, amount=1500),
        RoomCost(roomId=r.id, costTypeId=catalogs["deposit"].id, amount=300),
    ])
    db.commit()
    db.refresh(r)
    return r
