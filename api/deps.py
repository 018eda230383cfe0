"""
Request-scoped dependencies shared by the routers.

Identity is resolved upstream (gateway/session layer) and forwarded in the
X-User-Id and X-User-Type headers.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from models import CreditApplication, UserType
from services.events import EventDispatcher
from services.workflow import CreditWorkflow

STAFF_TYPES = {UserType.FINANCIAL_INSTITUTION, UserType.ADMIN}


@dataclass(frozen=True)
class Actor:
    id: str
    type: UserType

    @property
    def is_staff(self) -> bool:
        return self.type in STAFF_TYPES

    @property
    def is_admin(self) -> bool:
        return self.type is UserType.ADMIN


async def get_actor(
    x_user_id: Optional[str] = Header(None),
    x_user_type: Optional[str] = Header(None),
) -> Actor:
    if not x_user_id or not x_user_type:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        user_type = UserType(x_user_type)
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown user type '{x_user_type}'")
    return Actor(id=x_user_id, type=user_type)


async def require_staff(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_staff:
        raise HTTPException(status_code=403, detail="Access restricted to financial institutions")
    return actor


def get_dispatcher(request: Request) -> Optional[EventDispatcher]:
    return getattr(request.app.state, "dispatcher", None)


async def get_workflow(
    db: AsyncSession = Depends(get_db),
    dispatcher: Optional[EventDispatcher] = Depends(get_dispatcher),
) -> CreditWorkflow:
    return CreditWorkflow(db, rate_table=settings.project_interest_rates, dispatcher=dispatcher)


def ensure_application_access(application: CreditApplication, actor: Actor) -> None:
    """
    Applicants reach their own applications; institutions reach applications
    to their own programs and those without a program; admins reach all.
    Anything else answers 404.
    """
    if actor.is_admin or application.user_id == actor.id:
        return
    if actor.is_staff and (
        application.program is None or application.program.financial_institution_id == actor.id
    ):
        return
    raise HTTPException(status_code=404, detail="Application not found")
