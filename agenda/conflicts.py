# agenda/conflicts.py

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlmodel import Session, select

from agenda.config import get_settings
from agenda.core import overlaps, occupied_window
from agenda.models import Appointment
from agenda.schemas import ACTIVE_STATUSES

logger = logging.getLogger(__name__)


def default_window() -> timedelta:
    return timedelta(minutes=get_settings().CONFLICT_WINDOW_MINUTES)


def find_conflicts(
    session: Session,
    tenant_id: str,
    professional_id: str,
    proposed_time: datetime,
    exclude_appointment_id: Optional[str] = None,
    window: Optional[timedelta] = None,
) -> List[Appointment]:
    """
    Active appointments of the professional whose occupied window
    intersects the one around ``proposed_time``.

    Canceled and completed appointments are never returned, neither is
    ``exclude_appointment_id`` (an appointment never clashes with its own
    previous version).
    """
    half_width = window if window is not None else default_window()
    new_start, new_end = occupied_window(proposed_time, half_width)

    # 1) Narrow down with the (tenant, professional, date) index
    stmt = (
        select(Appointment)
        .where(Appointment.tenant_id == tenant_id)
        .where(Appointment.professional_id == professional_id)
        .where(Appointment.status.in_([s.value for s in ACTIVE_STATUSES]))
        .where(Appointment.date > new_start - half_width)
        .where(Appointment.date < new_end + half_width)
    )
    if exclude_appointment_id is not None:
        stmt = stmt.where(Appointment.id != exclude_appointment_id)

    # 2) Exact window intersection
    clashes = []
    for a in session.exec(stmt).all():
        existing_start, existing_end = occupied_window(a.date, half_width)
        if overlaps(new_start, new_end, existing_start, existing_end):
            clashes.append(a)
    return clashes


def has_conflict(
    session: Session,
    tenant_id: str,
    professional_id: str,
    proposed_time: datetime,
    exclude_appointment_id: Optional[str] = None,
    window: Optional[timedelta] = None,
) -> bool:
    clashes = find_conflicts(
        session, tenant_id, professional_id, proposed_time,
        exclude_appointment_id=exclude_appointment_id, window=window,
    )
    if clashes:
        logger.warning(
            "Slot %s for professional %s (tenant %s) clashes with %s",
            proposed_time.isoformat(), professional_id, tenant_id,
            ", ".join(a.id for a in clashes),
        )
        return True
    return False
