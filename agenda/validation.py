# agenda/validation.py

from sqlmodel import Session

from agenda.errors import ReferenceNotFound, TenantMismatch
from agenda.models import Client, Professional, Service


def _check(session: Session, model, entity_id: str, tenant_id: str, entity: str):
    obj = session.get(model, entity_id)
    if obj is None:
        raise ReferenceNotFound(entity)
    if obj.tenant_id != tenant_id:
        raise TenantMismatch(entity)
    return obj


def validate_references(
    session: Session,
    tenant_id: str,
    client_id: str,
    professional_id: str,
    service_id: str,
) -> None:
    """Raise if any referenced record is missing or owned by another tenant. Read-only."""
    _check(session, Client, client_id, tenant_id, "client")
    _check(session, Professional, professional_id, tenant_id, "professional")
    _check(session, Service, service_id, tenant_id, "service")


def validate_professional(session: Session, tenant_id: str, professional_id: str) -> Professional:
    return _check(session, Professional, professional_id, tenant_id, "professional")
