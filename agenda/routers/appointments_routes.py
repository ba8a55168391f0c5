# agenda/routers/appointments_routes.py

from datetime import date
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from agenda.deps import get_actor, get_engine, get_tenant
from agenda.engine import SchedulingEngine, to_public
from agenda.errors import SchedulingError
from agenda.models import Tenant
from agenda.schemas import (
    Actor,
    AppointmentCreate,
    AppointmentPublic,
    AppointmentResult,
    AppointmentStatus,
    AppointmentUpdate,
    CheckoutCreate,
    DeleteResult,
)

router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
)

ERROR_STATUS = {
    "ReferenceNotFound": 404,
    "NotFound": 404,
    "TenantMismatch": 422,
    "IllegalTransition": 422,
    "CheckoutNotAuthorized": 403,
    "ProfessionalNotAllowed": 403,
    "SchedulingConflict": 409,
}


def _respond(result: Union[AppointmentResult, DeleteResult], success_status: int = 200) -> JSONResponse:
    if result.success:
        status_code = success_status
    else:
        status_code = ERROR_STATUS.get(result.error_code, 400)
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json", exclude_none=True))


@router.post("", response_model=AppointmentResult, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    tenant: Tenant = Depends(get_tenant),
    actor: Actor = Depends(get_actor),
    engine: SchedulingEngine = Depends(get_engine),
):
    return _respond(engine.create_appointment(tenant, actor, appt), success_status=201)


@router.patch("/{appt_id}", response_model=AppointmentResult)
def update_appointment(
    appt_id: str,
    changes: AppointmentUpdate,
    tenant: Tenant = Depends(get_tenant),
    actor: Actor = Depends(get_actor),
    engine: SchedulingEngine = Depends(get_engine),
):
    return _respond(engine.update_appointment(tenant, actor, appt_id, changes))


@router.post("/{appt_id}/checkout", response_model=AppointmentResult)
def checkout_appointment(
    appt_id: str,
    checkout: CheckoutCreate,
    tenant: Tenant = Depends(get_tenant),
    actor: Actor = Depends(get_actor),
    engine: SchedulingEngine = Depends(get_engine),
):
    return _respond(engine.checkout_appointment(tenant, actor, appt_id, checkout))


@router.delete("/{appt_id}", response_model=DeleteResult)
def delete_appointment(
    appt_id: str,
    tenant: Tenant = Depends(get_tenant),
    actor: Actor = Depends(get_actor),
    engine: SchedulingEngine = Depends(get_engine),
):
    return _respond(engine.delete_appointment(tenant, actor, appt_id))


@router.get("", response_model=List[AppointmentPublic])
def list_appointments(
    on_date: Optional[date] = None,
    professional_id: Optional[str] = None,
    status: Optional[AppointmentStatus] = None,
    # on_date is a UTC day unless the shop's offset is given (-180 for UTC-3)
    utc_offset_minutes: int = Query(0, ge=-840, le=840),
    tenant: Tenant = Depends(get_tenant),
    actor: Actor = Depends(get_actor),
    engine: SchedulingEngine = Depends(get_engine),
):
    appts = engine.list_appointments(
        tenant, actor, on_date=on_date, professional_id=professional_id, status=status,
        utc_offset_minutes=utc_offset_minutes,
    )
    return [to_public(a) for a in appts]


@router.get("/{appt_id}", response_model=AppointmentPublic)
def get_appointment(
    appt_id: str,
    tenant: Tenant = Depends(get_tenant),
    actor: Actor = Depends(get_actor),
    engine: SchedulingEngine = Depends(get_engine),
):
    try:
        appt = engine.get(tenant, actor, appt_id)
    except SchedulingError as exc:
        raise HTTPException(status_code=ERROR_STATUS.get(exc.code, 400), detail=exc.message)
    return to_public(appt)
