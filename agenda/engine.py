# agenda/engine.py
"""
Scheduling engine: the only writer of appointments.

Each operation runs as one unit inside the serialization scope of the
professional(s) it touches: validate references, check the actor, check the
status transition, check for clashes, persist. Any failure rolls the session
back, so callers never observe a half-applied change.
"""

import logging
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import Session, select

from agenda.config import Settings, get_settings
from agenda.conflicts import has_conflict
from agenda.errors import (
    NotFound,
    ProfessionalNotAllowed,
    SchedulingConflict,
    SchedulingError,
    StorageUnavailable,
    CheckoutNotAuthorized,
)
from agenda.locks import ProfessionalLocks, professional_locks
from agenda.models import Appointment, Professional, Tenant
from agenda.schemas import (
    Actor,
    ActorRole,
    AppointmentCreate,
    AppointmentPublic,
    AppointmentResult,
    AppointmentStatus,
    AppointmentUpdate,
    CheckoutCreate,
    DeleteResult,
    TERMINAL_STATUSES,
)
from agenda.transitions import can_checkout, check_transition
from agenda.validation import validate_professional, validate_references

logger = logging.getLogger(__name__)

S = AppointmentStatus

# fields a caller may edit through the update path
EDITABLE_FIELDS = (
    "client_id", "professional_id", "service_id", "date", "status", "notes",
    "total_amount", "products_sold",
)


def to_public(appt: Appointment) -> AppointmentPublic:
    return AppointmentPublic.model_validate(appt, from_attributes=True)


class SchedulingEngine:
    def __init__(
        self,
        session: Session,
        settings: Optional[Settings] = None,
        locks: Optional[ProfessionalLocks] = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.locks = locks if locks is not None else professional_locks
        self.window = timedelta(minutes=self.settings.CONFLICT_WINDOW_MINUTES)

    # ------------------------------------------------------------------
    # Structured boundary used by the HTTP layer
    # ------------------------------------------------------------------

    def create_appointment(self, tenant: Tenant, actor: Actor, data: AppointmentCreate) -> AppointmentResult:
        return self._as_result(self.create, tenant, actor, data)

    def update_appointment(
        self, tenant: Tenant, actor: Actor, appointment_id: str, data: AppointmentUpdate
    ) -> AppointmentResult:
        return self._as_result(self.update, tenant, actor, appointment_id, data)

    def checkout_appointment(
        self, tenant: Tenant, actor: Actor, appointment_id: str, data: CheckoutCreate
    ) -> AppointmentResult:
        return self._as_result(self.checkout, tenant, actor, appointment_id, data)

    def delete_appointment(self, tenant: Tenant, actor: Actor, appointment_id: str) -> DeleteResult:
        try:
            self.delete(tenant, actor, appointment_id)
        except SchedulingError as exc:
            return DeleteResult(success=False, error=exc.message, error_code=exc.code)
        return DeleteResult(success=True)

    def _as_result(self, op: Callable[..., Appointment], *args) -> AppointmentResult:
        try:
            appt = op(*args)
        except SchedulingConflict as exc:
            return AppointmentResult(success=False, conflict=True, error=exc.message, error_code=exc.code)
        except SchedulingError as exc:
            return AppointmentResult(success=False, error=exc.message, error_code=exc.code)
        return AppointmentResult(success=True, appointment=to_public(appt))

    # ------------------------------------------------------------------
    # Operations (raise SchedulingError subclasses)
    # ------------------------------------------------------------------

    def create(self, tenant: Tenant, actor: Actor, data: AppointmentCreate) -> Appointment:
        with self.locks.hold((tenant.id, data.professional_id)), self._transaction():
            # 1) References must exist and belong to this tenant
            validate_references(
                self.session, tenant.id, data.client_id, data.professional_id, data.service_id
            )
            self._ensure_own_professional(tenant, actor, data.professional_id)
            self._lock_professional_rows(data.professional_id)

            # 2) No clash with another active booking
            if has_conflict(self.session, tenant.id, data.professional_id, data.date, window=self.window):
                raise SchedulingConflict()

            # 3) Anything but the initial status must be reachable from it
            status = data.status or S.scheduled
            if status != S.scheduled:
                check_transition(S.scheduled, status, actor, tenant)

            appt = Appointment(
                tenant_id=tenant.id,
                client_id=data.client_id,
                professional_id=data.professional_id,
                service_id=data.service_id,
                date=data.date,
                status=status.value,
                notes=data.notes,
            )
            self.session.add(appt)

        logger.info(
            "Appointment %s created (tenant=%s professional=%s date=%s status=%s)",
            appt.id, tenant.id, appt.professional_id, appt.date.isoformat(), appt.status,
        )
        return appt

    def update(self, tenant: Tenant, actor: Actor, appointment_id: str, data: AppointmentUpdate) -> Appointment:
        return self._update(tenant, actor, appointment_id, data.changes())

    def checkout(self, tenant: Tenant, actor: Actor, appointment_id: str, data: CheckoutCreate) -> Appointment:
        changes = {
            "status": S.completed,
            "total_amount": data.total_amount,
            "products_sold": [p.model_dump() for p in data.products_sold],
        }
        return self._update(tenant, actor, appointment_id, changes, checkout=True)

    def _update(
        self, tenant: Tenant, actor: Actor, appointment_id: str, changes: dict, checkout: bool = False
    ) -> Appointment:
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Not editable: {', '.join(sorted(unknown))}")

        while True:
            # 1) Load to learn which calendars are touched
            with self._storage():
                current = self._get_for_tenant(tenant, appointment_id)
            old_professional = current.professional_id
            new_professional = changes.get("professional_id", old_professional)

            with self.locks.hold((tenant.id, old_professional), (tenant.id, new_professional)), \
                    self._transaction():
                current = self._get_for_tenant(tenant, appointment_id, fresh=True)
                if current.professional_id != old_professional:
                    # moved by a concurrent writer between the read and the lock
                    continue

                self._ensure_own_professional(tenant, actor, old_professional)

                merged = {field: getattr(current, field) for field in EDITABLE_FIELDS}
                merged.update(changes)
                current_status = S(current.status)
                target_status = S(merged["status"])

                # 2) References of the merged record
                validate_references(
                    self.session, tenant.id,
                    merged["client_id"], merged["professional_id"], merged["service_id"],
                )
                self._ensure_own_professional(tenant, actor, merged["professional_id"])
                self._lock_professional_rows(old_professional, new_professional)

                # 3) Status transition
                if target_status != current_status:
                    check_transition(current_status, target_status, actor, tenant)
                elif checkout and current_status == S.completed and not can_checkout(actor, tenant):
                    # editing the amounts of a finished checkout needs the same right as closing it
                    raise CheckoutNotAuthorized()

                # 4) Clashes, unless the appointment is leaving the calendar
                if target_status not in TERMINAL_STATUSES and has_conflict(
                    self.session, tenant.id, merged["professional_id"], merged["date"],
                    exclude_appointment_id=current.id, window=self.window,
                ):
                    raise SchedulingConflict()

                # 5) Persist
                for field, value in merged.items():
                    if field == "status":
                        value = S(value).value
                    setattr(current, field, value)
                self.session.add(current)

            logger.info(
                "Appointment %s updated (tenant=%s fields=%s status %s -> %s)",
                current.id, tenant.id, ",".join(sorted(changes)) or "-",
                current_status.value, target_status.value,
            )
            return current

    def delete(self, tenant: Tenant, actor: Actor, appointment_id: str) -> None:
        while True:
            with self._storage():
                current = self._get_for_tenant(tenant, appointment_id)
            professional_id = current.professional_id

            with self.locks.hold((tenant.id, professional_id)), self._transaction():
                current = self._get_for_tenant(tenant, appointment_id, fresh=True)
                if current.professional_id != professional_id:
                    continue
                self._ensure_own_professional(tenant, actor, professional_id)
                self._lock_professional_rows(professional_id)
                self.session.delete(current)

            logger.info("Appointment %s deleted (tenant=%s)", appointment_id, tenant.id)
            return

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, tenant: Tenant, actor: Actor, appointment_id: str) -> Appointment:
        with self._storage():
            appt = self._get_for_tenant(tenant, appointment_id)
            self._ensure_own_professional(tenant, actor, appt.professional_id)
        return appt

    def list_appointments(
        self,
        tenant: Tenant,
        actor: Actor,
        on_date: Optional[date] = None,
        professional_id: Optional[str] = None,
        status: Optional[AppointmentStatus] = None,
        utc_offset_minutes: int = 0,
    ) -> List[Appointment]:
        """
        Appointments of the tenant ordered by start.

        ``on_date`` is a calendar day in the shop's local time, given by
        ``utc_offset_minutes`` (-180 for UTC-3); storage is UTC, so the day
        is shifted before filtering.
        """
        stmt = select(Appointment).where(Appointment.tenant_id == tenant.id)

        with self._storage():
            if actor.role == ActorRole.barber:
                own = self._own_professional(tenant, actor)
                if own is None or (professional_id is not None and professional_id != own.id):
                    return []
                professional_id = own.id

            if professional_id is not None:
                stmt = stmt.where(Appointment.professional_id == professional_id)

            if on_date is not None:
                day_start_dt = datetime.combine(on_date, datetime.min.time()) - timedelta(minutes=utc_offset_minutes)
                day_end_dt = day_start_dt + timedelta(days=1)
                stmt = stmt.where(Appointment.date >= day_start_dt).where(Appointment.date < day_end_dt)

            if status is not None:
                stmt = stmt.where(Appointment.status == status.value)

            return list(self.session.exec(stmt.order_by(Appointment.date)).all())

    def is_slot_busy(
        self,
        tenant: Tenant,
        professional_id: str,
        at: datetime,
        exclude_appointment_id: Optional[str] = None,
    ) -> bool:
        with self._storage():
            validate_professional(self.session, tenant.id, professional_id)
        with self.locks.hold((tenant.id, professional_id)), self._storage():
            return has_conflict(
                self.session, tenant.id, professional_id, at,
                exclude_appointment_id=exclude_appointment_id, window=self.window,
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_for_tenant(self, tenant: Tenant, appointment_id: str, fresh: bool = False) -> Appointment:
        stmt = select(Appointment).where(Appointment.id == appointment_id)
        if fresh:
            stmt = stmt.execution_options(populate_existing=True)
        appt = self.session.exec(stmt).first()
        if appt is None or appt.tenant_id != tenant.id:
            raise NotFound()
        return appt

    def _own_professional(self, tenant: Tenant, actor: Actor) -> Optional[Professional]:
        return self.session.exec(
            select(Professional)
            .where(Professional.tenant_id == tenant.id)
            .where(Professional.user_id == actor.id)
        ).first()

    def _ensure_own_professional(self, tenant: Tenant, actor: Actor, professional_id: str) -> None:
        if actor.role != ActorRole.barber:
            return
        own = self._own_professional(tenant, actor)
        if own is None or own.id != professional_id:
            logger.warning("Barber %s denied access to professional %s", actor.id, professional_id)
            raise ProfessionalNotAllowed()

    def _lock_professional_rows(self, *professional_ids: str) -> None:
        # SELECT ... FOR UPDATE serializes writers across service instances; SQLite ignores it
        for professional_id in sorted(set(professional_ids)):
            self.session.exec(
                select(Professional).where(Professional.id == professional_id).with_for_update()
            ).first()

    @contextmanager
    def _storage(self):
        try:
            yield
        except (OperationalError, TimeoutError) as exc:
            self.session.rollback()
            logger.error("Storage failure while scheduling: %s", exc, exc_info=True)
            raise StorageUnavailable() from exc

    @contextmanager
    def _transaction(self):
        with self._storage():
            try:
                yield
                self.session.commit()
            except IntegrityError:
                self.session.rollback()
                # partial unique index on active (tenant, professional, date)
                raise SchedulingConflict()
            except BaseException:
                self.session.rollback()
                raise
