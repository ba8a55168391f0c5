# agenda/routers/professionals_routes.py

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from agenda.deps import get_engine, get_tenant
from agenda.engine import SchedulingEngine
from agenda.errors import ReferenceNotFound, TenantMismatch
from agenda.models import Tenant
from agenda.schemas import BusyResponse, to_naive_utc

router = APIRouter(
    prefix="/professionals",
    tags=["professionals"],
)


@router.get("/{professional_id}/busy", response_model=BusyResponse)
def professional_busy(
    professional_id: str,
    at: datetime,
    exclude_appointment_id: Optional[str] = None,
    tenant: Tenant = Depends(get_tenant),
    engine: SchedulingEngine = Depends(get_engine),
):
    at = to_naive_utc(at)
    try:
        busy = engine.is_slot_busy(tenant, professional_id, at, exclude_appointment_id=exclude_appointment_id)
    except (ReferenceNotFound, TenantMismatch):
        # another tenant's professional is indistinguishable from a missing one
        raise HTTPException(status_code=404, detail="Professional not found")
    return {"professional_id": professional_id, "at": at, "busy": busy}
