import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import Actor, require_staff
from database import get_db
from models import CreditApplication, CreditProgram
from schemas.program import ProgramCreate, ProgramUpdate
from services.programs import check_program_bounds

router = APIRouter(prefix="/api/credit-programs", tags=["credit-programs"])

MSG_PROGRAM_NOT_FOUND = "Credit program not found"


def _program_to_response(p: CreditProgram) -> dict[str, Any]:
    return {
        "id": p.id,
        "financialInstitutionId": p.financial_institution_id,
        "name": p.name,
        "description": p.description,
        "projectTypes": list(p.project_types or []),
        "minAmount": p.min_amount,
        "maxAmount": p.max_amount,
        "minTerm": p.min_term,
        "maxTerm": p.max_term,
        "interestRate": p.interest_rate,
        "effortRate": p.effort_rate,
        "processingFee": p.processing_fee,
        "isActive": p.is_active,
        "createdAt": p.created_at.isoformat() if p.created_at else None,
        "updatedAt": p.updated_at.isoformat() if p.updated_at else None,
    }


async def _get_owned_program(db: AsyncSession, program_id: str, actor: Actor) -> CreditProgram:
    result = await db.execute(select(CreditProgram).where(CreditProgram.id == program_id))
    program = result.scalar_one_or_none()
    if not program:
        raise HTTPException(status_code=404, detail=MSG_PROGRAM_NOT_FOUND)
    if not actor.is_admin and program.financial_institution_id != actor.id:
        raise HTTPException(status_code=403, detail="Program belongs to another institution")
    return program


@router.get("")
async def list_active_programs(db: AsyncSession = Depends(get_db)):
    """Public catalogue of active programs."""
    result = await db.execute(
        select(CreditProgram).where(CreditProgram.is_active.is_(True)).order_by(CreditProgram.created_at)
    )
    return [_program_to_response(p) for p in result.scalars().all()]


@router.get("/mine")
async def list_my_programs(actor: Actor = Depends(require_staff), db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(CreditProgram)
        .where(CreditProgram.financial_institution_id == actor.id)
        .order_by(CreditProgram.created_at)
    )
    return [_program_to_response(p) for p in result.scalars().all()]


@router.get("/institution/{institution_id}")
async def list_institution_programs(institution_id: str, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(CreditProgram)
        .where(CreditProgram.financial_institution_id == institution_id, CreditProgram.is_active.is_(True))
        .order_by(CreditProgram.created_at)
    )
    return [_program_to_response(p) for p in result.scalars().all()]


@router.get("/{program_id}")
async def get_program(program_id: str, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(CreditProgram).where(CreditProgram.id == program_id))
    program = result.scalar_one_or_none()
    if not program:
        raise HTTPException(status_code=404, detail=MSG_PROGRAM_NOT_FOUND)
    return _program_to_response(program)


@router.post("", status_code=201)
async def create_program(
    body: ProgramCreate, actor: Actor = Depends(require_staff), db: AsyncSession = Depends(get_db)
):
    now = datetime.now(timezone.utc)
    program = CreditProgram(
        id=f"prog-{uuid.uuid4().hex[:12]}",
        financial_institution_id=actor.id,
        name=body.name,
        description=body.description,
        project_types=[t.value for t in body.project_types],
        min_amount=body.min_amount,
        max_amount=body.max_amount,
        min_term=body.min_term,
        max_term=body.max_term,
        interest_rate=body.interest_rate,
        effort_rate=body.effort_rate,
        processing_fee=body.processing_fee,
        is_active=body.is_active,
        created_at=now,
        updated_at=now,
    )
    db.add(program)
    await db.flush()
    return _program_to_response(program)


@router.patch("/{program_id}")
async def update_program(
    program_id: str,
    body: ProgramUpdate,
    actor: Actor = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    program = await _get_owned_program(db, program_id, actor)
    changes = body.model_dump(exclude_unset=True, by_alias=False)
    check_program_bounds(
        changes.get("min_amount", program.min_amount),
        changes.get("max_amount", program.max_amount),
        changes.get("min_term", program.min_term),
        changes.get("max_term", program.max_term),
    )
    if "project_types" in changes:
        changes["project_types"] = [t.value for t in body.project_types]
    for field, value in changes.items():
        if value is not None:
            setattr(program, field, value)
    program.updated_at = datetime.now(timezone.utc)
    await db.flush()
    await db.refresh(program)
    return _program_to_response(program)


@router.patch("/{program_id}/toggle-status")
async def toggle_program_status(
    program_id: str, actor: Actor = Depends(require_staff), db: AsyncSession = Depends(get_db)
):
    program = await _get_owned_program(db, program_id, actor)
    program.is_active = not program.is_active
    program.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return _program_to_response(program)


@router.delete("/{program_id}", status_code=204)
async def delete_program(
    program_id: str, actor: Actor = Depends(require_staff), db: AsyncSession = Depends(get_db)
):
    program = await _get_owned_program(db, program_id, actor)
    in_use = await db.execute(
        select(CreditApplication.id).where(CreditApplication.credit_program_id == program_id).limit(1)
    )
    if in_use.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=409, detail="Program has applications; deactivate it instead of deleting"
        )
    await db.delete(program)
    await db.flush()
    return None
