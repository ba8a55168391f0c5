# agenda/schemas.py

from pydantic import BaseModel, Field, field_validator
from enum import Enum
from datetime import datetime, timezone
from typing import List, Optional


class AppointmentStatus(str, Enum):
    scheduled = "Agendado"
    confirmed = "Confirmado"
    in_service = "Em Atendimento"
    completed = "Concluído"
    canceled = "Cancelado"


# statuses that occupy a slot
ACTIVE_STATUSES = frozenset({
    AppointmentStatus.scheduled,
    AppointmentStatus.confirmed,
    AppointmentStatus.in_service,
})
TERMINAL_STATUSES = frozenset({AppointmentStatus.completed, AppointmentStatus.canceled})


class ActorRole(str, Enum):
    admin = "admin"
    barber = "barber"
    receptionist = "receptionist"


class Actor(BaseModel):
    id: str
    role: ActorRole


def to_naive_utc(value: datetime) -> datetime:
    """Offset-aware timestamps are shifted to UTC; naive ones are taken as UTC already."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class SoldProduct(BaseModel):
    product_id: str
    name: str
    quantity: int = Field(gt=0)
    selling_price: float = Field(ge=0)


class AppointmentCreate(BaseModel):
    client_id: str
    professional_id: str
    service_id: str
    date: datetime
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None

    @field_validator("date")
    @classmethod
    def _normalize_date(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class AppointmentUpdate(BaseModel):
    client_id: Optional[str] = None
    professional_id: Optional[str] = None
    service_id: Optional[str] = None
    date: Optional[datetime] = None
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None

    @field_validator("date")
    @classmethod
    def _normalize_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v) if v is not None else v

    def changes(self) -> dict:
        # only what the caller actually sent; notes may be cleared with null
        data = self.model_dump(exclude_unset=True)
        return {k: v for k, v in data.items() if v is not None or k == "notes"}


class CheckoutCreate(BaseModel):
    total_amount: float = Field(ge=0)
    products_sold: List[SoldProduct] = []


class AppointmentPublic(BaseModel):
    id: str
    tenant_id: str
    client_id: str
    professional_id: str
    service_id: str
    date: datetime
    status: AppointmentStatus
    notes: Optional[str] = None
    total_amount: Optional[float] = None
    products_sold: Optional[List[SoldProduct]] = None


class AppointmentResult(BaseModel):
    success: bool
    appointment: Optional[AppointmentPublic] = None
    conflict: Optional[bool] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class DeleteResult(BaseModel):
    success: bool
    error: Optional[str] = None
    error_code: Optional[str] = None


class BusyResponse(BaseModel):
    professional_id: str
    at: datetime
    busy: bool
