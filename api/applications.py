from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.accounts import account_to_response
from api.deps import Actor, ensure_application_access, get_actor, get_workflow, require_staff
from api.documents import document_to_response
from database import get_db
from models import ApplicationStatus, CreditApplication, CreditProgram
from schemas.application import ApplicationCreate, StatusUpdate
from services.documents import list_documents
from services.workflow import CreditWorkflow

router = APIRouter(prefix="/api/credit-applications", tags=["credit-applications"])

_PROFILE_FIELDS = (
    "monthly_income",
    "expected_project_income",
    "monthly_expenses",
    "other_debts",
    "family_members",
    "experience_years",
    "productivity",
    "agriculture_type",
    "credit_delivery_method",
    "credit_guarantee_declaration",
)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p.capitalize() for p in rest)


def _app_to_response(app: CreditApplication) -> dict[str, Any]:
    """Serialize application to dict with camelCase for frontend."""
    profile = {_camel(f): getattr(app, f) for f in _PROFILE_FIELDS if getattr(app, f) is not None}
    return {
        "id": app.id,
        "userId": app.user_id,
        "creditProgramId": app.credit_program_id,
        "projectName": app.project_name,
        "projectType": app.project_type.value,
        "description": app.description,
        "amount": app.amount,
        "termMonths": app.term_months,
        "status": app.status.value,
        "rejectionReason": app.rejection_reason,
        "interestRate": app.interest_rate,
        "reviewedBy": app.reviewed_by,
        "approvedBy": app.approved_by,
        "financialProfile": profile or None,
        "createdAt": app.created_at.isoformat() if app.created_at else None,
        "updatedAt": app.updated_at.isoformat() if app.updated_at else None,
    }


@router.post("", status_code=201)
async def submit_application(
    body: ApplicationCreate,
    actor: Actor = Depends(get_actor),
    workflow: CreditWorkflow = Depends(get_workflow),
):
    if actor.is_staff:
        raise HTTPException(status_code=403, detail="Only applicants can submit credit applications")
    app = await workflow.submit(actor.id, body)
    return _app_to_response(app)


@router.get("")
async def list_applications(
    status: Optional[ApplicationStatus] = None,
    actor: Actor = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Staff view. Institutions see applications to their programs plus those without a program."""
    stmt = select(CreditApplication).order_by(CreditApplication.created_at.desc())
    if status is not None:
        stmt = stmt.where(CreditApplication.status == status)
    if not actor.is_admin:
        stmt = stmt.outerjoin(CreditProgram, CreditApplication.credit_program_id == CreditProgram.id).where(
            (CreditApplication.credit_program_id.is_(None))
            | (CreditProgram.financial_institution_id == actor.id)
        )
    result = await db.execute(stmt)
    return [_app_to_response(a) for a in result.scalars().all()]


@router.get("/user")
async def list_my_applications(actor: Actor = Depends(get_actor), db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(CreditApplication)
        .where(CreditApplication.user_id == actor.id)
        .order_by(CreditApplication.created_at.desc())
    )
    return [_app_to_response(a) for a in result.scalars().all()]


@router.get("/{application_id}")
async def get_application(
    application_id: str,
    actor: Actor = Depends(get_actor),
    workflow: CreditWorkflow = Depends(get_workflow),
    db: AsyncSession = Depends(get_db),
):
    app = await workflow.get_application(application_id)
    ensure_application_access(app, actor)
    out = _app_to_response(app)
    out["documents"] = [document_to_response(d) for d in await list_documents(db, application_id)]
    return out


@router.patch("/{application_id}/status")
async def update_status(
    application_id: str,
    body: StatusUpdate,
    actor: Actor = Depends(require_staff),
    workflow: CreditWorkflow = Depends(get_workflow),
):
    ensure_application_access(await workflow.get_application(application_id), actor)
    result = await workflow.transition(
        application_id,
        body.status,
        actor.id,
        rejection_reason=body.rejection_reason,
        interest_rate=body.interest_rate,
        institution_id=None if actor.is_admin else actor.id,
    )
    out = _app_to_response(result.application)
    out["previousStatus"] = result.previous_status.value
    out["account"] = account_to_response(result.account) if result.account else None
    return out
