from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from errors import ConcurrentModification, NotFound, ValidationError
from models import Account, CreditApplication, Payment
from services.events import DomainEvent, EventDispatcher, EventType
from services.loan_calculator import Installment, LoanQuote, amortization_schedule
from services.unit_of_work import unit_of_work

logger = logging.getLogger(__name__)


def open_account(
    application: CreditApplication,
    quote: LoanQuote,
    approved_on: date,
    institution_id: Optional[str],
) -> Account:
    """Build the Account for a just-approved application; first installment falls due a month later."""
    first_due = approved_on + relativedelta(months=1)
    now = datetime.now(timezone.utc)
    return Account(
        id=f"acct-{uuid.uuid4().hex[:12]}",
        application_id=application.id,
        user_id=application.user_id,
        financial_institution_id=institution_id,
        principal=quote.principal,
        total_amount=quote.total_repayment,
        outstanding_balance=quote.total_repayment,
        monthly_payment=quote.monthly_payment,
        interest_rate=quote.annual_rate,
        term_months=quote.term_months,
        first_payment_date=first_due,
        next_payment_date=first_due,
        is_active=True,
        created_at=now,
        updated_at=now,
    )


async def get_account(session: AsyncSession, account_id: str) -> Account:
    result = await session.execute(select(Account).where(Account.id == account_id))
    account = result.scalar_one_or_none()
    if account is None:
        raise NotFound("Account not found", {"account_id": account_id})
    return account


def account_schedule(account: Account) -> list[Installment]:
    """Installments for the terms stored on the account, not a fresh quote."""
    principal = Decimal(account.principal)
    total = Decimal(account.total_amount)
    quote = LoanQuote(
        principal=principal,
        annual_rate=Decimal(account.interest_rate),
        term_months=account.term_months,
        monthly_payment=Decimal(account.monthly_payment),
        total_repayment=total,
        total_interest=total - principal,
    )
    return amortization_schedule(quote, account.first_payment_date)


async def record_payment(
    session: AsyncSession,
    account_id: str,
    amount: Decimal,
    payment_date: Optional[date] = None,
    dispatcher: Optional[EventDispatcher] = None,
) -> Payment:
    """
    Register a repayment. The balance only moves down and never below zero;
    an account whose balance reaches zero is closed.
    """
    amount = Decimal(amount)
    if amount <= 0:
        raise ValidationError("Payment amount must be greater than zero", {"amount": str(amount)})
    if amount != amount.quantize(Decimal("0.01")):
        raise ValidationError("Payment amount has more than two decimal places", {"amount": str(amount)})
    payment_date = payment_date or date.today()

    async with unit_of_work(session):
        account = await get_account(session, account_id)
        if not account.is_active:
            raise ValidationError("Account is already settled", {"account_id": account_id})
        balance = Decimal(account.outstanding_balance)
        if amount > balance:
            raise ValidationError(
                "Payment exceeds the outstanding balance",
                {"amount": str(amount), "outstanding_balance": str(balance)},
            )
        new_balance = balance - amount
        settled = new_balance == 0
        next_date = None
        if not settled and account.next_payment_date is not None:
            next_date = account.next_payment_date + relativedelta(months=1)

        result = await session.execute(
            update(Account)
            .where(Account.id == account_id, Account.outstanding_balance == balance)
            .values(
                outstanding_balance=new_balance,
                next_payment_date=next_date,
                is_active=not settled,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConcurrentModification(
                "Account balance changed while recording the payment; reload and retry",
                {"account_id": account_id},
            )
        payment = Payment(
            id=f"pay-{uuid.uuid4().hex[:12]}",
            account_id=account_id,
            amount=amount,
            payment_date=payment_date,
            created_at=datetime.now(timezone.utc),
        )
        session.add(payment)

    await session.refresh(account)
    logger.info("Payment of %s AOA on account %s; balance now %s", amount, account_id, new_balance)
    if dispatcher is not None:
        await dispatcher.dispatch(
            DomainEvent(
                type=EventType.PAYMENT_RECORDED,
                user_id=account.user_id,
                related_id=account.id,
                payload={"amount": str(amount), "outstanding_balance": str(new_balance)},
            )
        )
    return payment


async def list_payments(session: AsyncSession, account_id: str) -> list[Payment]:
    await get_account(session, account_id)
    result = await session.execute(
        select(Payment)
        .where(Payment.account_id == account_id)
        .order_by(Payment.payment_date.desc(), Payment.created_at.desc())
    )
    return list(result.scalars().all())
