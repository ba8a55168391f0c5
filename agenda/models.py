# agenda/models.py

from typing import Optional, List
from datetime import datetime
from uuid import uuid4

from sqlalchemy import Index, text
from sqlalchemy.types import JSON, DateTime
from sqlmodel import SQLModel, Field, Column

ACTIVE_STATUS_SQL = "status IN ('Agendado', 'Confirmado', 'Em Atendimento')"


def new_id() -> str:
    return uuid4().hex


class Tenant(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    slug: str = Field(index=True, unique=True)
    allow_barber_checkout: bool = True


class Client(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    tenant_id: str = Field(foreign_key="tenant.id", index=True)
    name: str
    phone: str = ""


class Professional(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    tenant_id: str = Field(foreign_key="tenant.id", index=True)
    name: str
    email: str = ""
    user_id: Optional[str] = Field(default=None, index=True)  # actor linked to this professional


class Service(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    tenant_id: str = Field(foreign_key="tenant.id", index=True)
    title: str
    price: float = 0.0
    duration_minutes: int = 30


class Appointment(SQLModel, table=True):
    __table_args__ = (
        Index("ix_appointment_tenant_professional_date", "tenant_id", "professional_id", "date"),
        # two active bookings of one professional can never share a start time
        Index(
            "uq_active_professional_start",
            "tenant_id",
            "professional_id",
            "date",
            unique=True,
            sqlite_where=text(ACTIVE_STATUS_SQL),
            postgresql_where=text(ACTIVE_STATUS_SQL),
        ),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    tenant_id: str = Field(foreign_key="tenant.id")

    client_id: str = Field(foreign_key="client.id")
    professional_id: str = Field(foreign_key="professional.id")
    service_id: str = Field(foreign_key="service.id")
    # explicit column: naive UTC storage regardless of the sqlmodel default datetime type
    date: datetime = Field(sa_column=Column(DateTime(timezone=False), nullable=False))
    status: str = "Agendado"
    notes: Optional[str] = None

    # filled by checkout
    total_amount: Optional[float] = None
    products_sold: Optional[List[dict]] = Field(default=None, sa_column=Column(JSON))
