# agenda/deps.py
"""
Request context handed over by the upstream identity provider.

The gateway in front of this service authenticates the caller and forwards
who they are and which shop they act for; the core trusts these values and
never writes them.
"""

from fastapi import Depends, Header, HTTPException
from sqlalchemy.exc import OperationalError
from sqlmodel import Session

from agenda.db import get_session
from agenda.engine import SchedulingEngine
from agenda.errors import StorageUnavailable
from agenda.models import Tenant
from agenda.schemas import Actor, ActorRole


def get_tenant(
    x_tenant_id: str = Header(...),
    session: Session = Depends(get_session),
) -> Tenant:
    try:
        tenant = session.get(Tenant, x_tenant_id)
    except OperationalError as exc:
        session.rollback()
        raise StorageUnavailable() from exc
    if tenant is None:
        raise HTTPException(status_code=404, detail="Tenant not found")
    return tenant


def get_actor(
    x_actor_id: str = Header(...),
    x_actor_role: ActorRole = Header(...),
) -> Actor:
    return Actor(id=x_actor_id, role=x_actor_role)


def get_engine(session: Session = Depends(get_session)) -> SchedulingEngine:
    return SchedulingEngine(session)

