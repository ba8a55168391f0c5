# tests/conftest.py

from datetime import datetime
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from agenda.db import get_session
from agenda.engine import SchedulingEngine
from agenda.locks import ProfessionalLocks
from agenda.main import app
from agenda.models import Appointment, Client, Professional, Service, Tenant
from agenda.schemas import Actor, AppointmentCreate

NINE_AM = datetime(2030, 5, 6, 9, 0)

ADMIN = Actor(id="u-admin", role="admin")
RECEPTIONIST = Actor(id="u-desk", role="receptionist")
BARBER_1 = Actor(id="u-barber-1", role="barber")  # linked to p1
BARBER_2 = Actor(id="u-barber-2", role="barber")  # linked to p2
UNLINKED_BARBER = Actor(id="u-nobody", role="barber")


def seed_shops(session: Session) -> SimpleNamespace:
    session.add_all([
        Tenant(id="t1", name="Navalha", slug="navalha"),
        Tenant(id="t2", name="Tesoura", slug="tesoura"),
    ])
    session.add_all([
        Client(id="c1", tenant_id="t1", name="Joao", phone="1111"),
        Client(id="c2", tenant_id="t2", name="Maria", phone="2222"),
        Professional(id="p1", tenant_id="t1", name="Carlos", user_id="u-barber-1"),
        Professional(id="p2", tenant_id="t1", name="Pedro", user_id="u-barber-2"),
        Professional(id="p3", tenant_id="t2", name="Ana"),
        Service(id="s1", tenant_id="t1", title="Corte", price=40.0, duration_minutes=30),
        Service(id="s2", tenant_id="t2", title="Barba", price=25.0, duration_minutes=20),
    ])
    session.commit()
    return SimpleNamespace(
        t1=session.get(Tenant, "t1"),
        t2=session.get(Tenant, "t2"),
    )


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(db_engine):
    with Session(db_engine) as session:
        yield session


@pytest.fixture
def shops(session):
    return seed_shops(session)


@pytest.fixture
def engine(session, shops):
    return SchedulingEngine(session, locks=ProfessionalLocks())


@pytest.fixture
def book(engine, shops):
    """Create an appointment in t1 through the engine and return the result."""
    def _book(at=NINE_AM, professional_id="p1", actor=ADMIN, **extra):
        data = AppointmentCreate(
            client_id="c1", professional_id=professional_id, service_id="s1", date=at, **extra
        )
        return engine.create_appointment(shops.t1, actor, data)
    return _book


@pytest.fixture
def insert_raw(session):
    """Write an appointment straight to storage, skipping every engine check."""
    def _insert(at, status="Agendado", professional_id="p1", tenant_id="t1", client_id="c1", service_id="s1"):
        appt = Appointment(
            tenant_id=tenant_id, client_id=client_id, professional_id=professional_id,
            service_id=service_id, date=at, status=status,
        )
        session.add(appt)
        session.commit()
        return appt
    return _insert


@pytest.fixture
def client(session, shops):
    def _get_session():
        yield session

    app.dependency_overrides[get_session] = _get_session
    yield TestClient(app)
    app.dependency_overrides.clear()
