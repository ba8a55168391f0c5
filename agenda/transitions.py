# agenda/transitions.py

from agenda.errors import CheckoutNotAuthorized, IllegalTransition
from agenda.models import Tenant
from agenda.schemas import Actor, ActorRole, AppointmentStatus

S = AppointmentStatus

ALLOWED_TRANSITIONS = {
    S.scheduled: {S.confirmed, S.in_service, S.canceled},
    S.confirmed: {S.in_service, S.canceled},
    S.in_service: {S.completed, S.canceled},
    S.completed: set(),
    S.canceled: set(),
}


def can_checkout(actor: Actor, tenant: Tenant) -> bool:
    return actor.role != ActorRole.barber or tenant.allow_barber_checkout is not False


def check_transition(current: str, target: str, actor: Actor, tenant: Tenant) -> None:
    """Raise unless moving from ``current`` to ``target`` is allowed for this actor."""
    current, target = S(current), S(target)

    if target not in ALLOWED_TRANSITIONS[current]:
        raise IllegalTransition(current.value, target.value)

    # checkout gate
    if target == S.completed and not can_checkout(actor, tenant):
        raise CheckoutNotAuthorized()
