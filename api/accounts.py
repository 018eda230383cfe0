from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import Actor, get_actor, get_dispatcher
from database import get_db
from models import Account, Payment
from schemas.account import PaymentCreate
from services.accounts import account_schedule, get_account, list_payments, record_payment

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


def account_to_response(a: Account) -> dict[str, Any]:
    return {
        "id": a.id,
        "applicationId": a.application_id,
        "userId": a.user_id,
        "financialInstitutionId": a.financial_institution_id,
        "principal": a.principal,
        "totalAmount": a.total_amount,
        "outstandingBalance": a.outstanding_balance,
        "monthlyPayment": a.monthly_payment,
        "interestRate": a.interest_rate,
        "termMonths": a.term_months,
        "firstPaymentDate": a.first_payment_date.isoformat() if a.first_payment_date else None,
        "nextPaymentDate": a.next_payment_date.isoformat() if a.next_payment_date else None,
        "isActive": a.is_active,
        "createdAt": a.created_at.isoformat() if a.created_at else None,
    }


def _payment_to_response(p: Payment) -> dict[str, Any]:
    return {
        "id": p.id,
        "accountId": p.account_id,
        "amount": p.amount,
        "paymentDate": p.payment_date.isoformat(),
        "createdAt": p.created_at.isoformat() if p.created_at else None,
    }


async def _get_visible_account(db: AsyncSession, account_id: str, actor: Actor) -> Account:
    account = await get_account(db, account_id)
    if actor.is_admin or account.user_id == actor.id:
        return account
    if actor.is_staff and account.financial_institution_id == actor.id:
        return account
    raise HTTPException(status_code=404, detail="Account not found")


@router.get("")
async def list_accounts(actor: Actor = Depends(get_actor), db: AsyncSession = Depends(get_db)):
    """Applicants see their own accounts, institutions the ones they manage, admins all."""
    stmt = select(Account).order_by(Account.created_at.desc())
    if not actor.is_admin:
        column = Account.financial_institution_id if actor.is_staff else Account.user_id
        stmt = stmt.where(column == actor.id)
    result = await db.execute(stmt)
    return [account_to_response(a) for a in result.scalars().all()]


@router.get("/{account_id}")
async def get_account_details(
    account_id: str, actor: Actor = Depends(get_actor), db: AsyncSession = Depends(get_db)
):
    return account_to_response(await _get_visible_account(db, account_id, actor))


@router.get("/{account_id}/schedule")
async def get_schedule(account_id: str, actor: Actor = Depends(get_actor), db: AsyncSession = Depends(get_db)):
    account = await _get_visible_account(db, account_id, actor)
    return [
        {
            "number": row.number,
            "dueDate": row.due_date.isoformat(),
            "payment": row.payment,
            "interest": row.interest,
            "principal": row.principal,
            "balance": row.balance,
        }
        for row in account_schedule(account)
    ]


@router.get("/{account_id}/payments")
async def get_payments(account_id: str, actor: Actor = Depends(get_actor), db: AsyncSession = Depends(get_db)):
    await _get_visible_account(db, account_id, actor)
    return [_payment_to_response(p) for p in await list_payments(db, account_id)]


@router.post("/{account_id}/payments", status_code=201)
async def create_payment(
    account_id: str,
    body: PaymentCreate,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    dispatcher=Depends(get_dispatcher),
):
    await _get_visible_account(db, account_id, actor)
    payment = await record_payment(db, account_id, body.amount, body.payment_date, dispatcher=dispatcher)
    return _payment_to_response(payment)
