# tests/test_transitions.py

import itertools

import pytest

from agenda.errors import CheckoutNotAuthorized, IllegalTransition
from agenda.models import Tenant
from agenda.schemas import AppointmentStatus
from agenda.transitions import ALLOWED_TRANSITIONS, can_checkout, check_transition
from tests.conftest import ADMIN, BARBER_1, RECEPTIONIST

S = AppointmentStatus

LEGAL = [(a, b) for a, targets in ALLOWED_TRANSITIONS.items() for b in targets]
ILLEGAL = [
    (a, b) for a, b in itertools.product(S, S)
    if a != b and b not in ALLOWED_TRANSITIONS[a]
]


def shop(allow_barber_checkout=True):
    return Tenant(id="t", name="Shop", slug="shop", allow_barber_checkout=allow_barber_checkout)


def test_table_matches_lifecycle():
    assert ALLOWED_TRANSITIONS[S.scheduled] == {S.confirmed, S.in_service, S.canceled}
    assert ALLOWED_TRANSITIONS[S.confirmed] == {S.in_service, S.canceled}
    assert ALLOWED_TRANSITIONS[S.in_service] == {S.completed, S.canceled}
    assert ALLOWED_TRANSITIONS[S.completed] == set()
    assert ALLOWED_TRANSITIONS[S.canceled] == set()


@pytest.mark.parametrize("current,target", LEGAL)
def test_legal_transitions_pass(current, target):
    check_transition(current.value, target.value, ADMIN, shop())


@pytest.mark.parametrize("current,target", ILLEGAL)
def test_illegal_transitions_raise(current, target):
    with pytest.raises(IllegalTransition) as exc:
        check_transition(current.value, target.value, ADMIN, shop())
    assert exc.value.from_status == current.value
    assert exc.value.to_status == target.value


def test_barber_checkout_blocked_when_shop_disallows():
    with pytest.raises(CheckoutNotAuthorized):
        check_transition("Em Atendimento", "Concluído", BARBER_1, shop(allow_barber_checkout=False))


def test_barber_may_still_cancel_when_checkout_disallowed():
    check_transition("Em Atendimento", "Cancelado", BARBER_1, shop(allow_barber_checkout=False))


def test_illegal_transition_wins_over_checkout_gate():
    with pytest.raises(IllegalTransition):
        check_transition("Agendado", "Concluído", BARBER_1, shop(allow_barber_checkout=False))


@pytest.mark.parametrize("actor,allow,expected", [
    (ADMIN, True, True),
    (ADMIN, False, True),
    (RECEPTIONIST, False, True),
    (BARBER_1, True, True),
    (BARBER_1, False, False),
])
def test_can_checkout(actor, allow, expected):
    assert can_checkout(actor, shop(allow_barber_checkout=allow)) is expected
