"""
Dashboard summary figures.

One optional [since, until) window on application creation time applies to
every figure, so counts and totals always describe the same population.
Without a window the summary is all-time.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from errors import ValidationError
from models import Account, ApplicationStatus, CreditApplication, Payment, ProjectType


def _windowed(stmt, since: Optional[datetime], until: Optional[datetime]):
    if since is not None:
        stmt = stmt.where(CreditApplication.created_at >= since)
    if until is not None:
        stmt = stmt.where(CreditApplication.created_at < until)
    return stmt


def _money(value) -> Decimal:
    return Decimal(value or 0).quantize(Decimal("1"))


async def build_summary(
    session: AsyncSession,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    institution_id: Optional[str] = None,
) -> dict[str, Any]:
    if since is not None and until is not None and since >= until:
        raise ValidationError("'since' must be earlier than 'until'")

    by_status_stmt = select(
        CreditApplication.status,
        func.count(CreditApplication.id),
        func.coalesce(func.sum(CreditApplication.amount), 0),
    ).group_by(CreditApplication.status)
    by_type_stmt = select(
        CreditApplication.project_type,
        func.count(CreditApplication.id),
        func.coalesce(func.sum(CreditApplication.amount), 0),
    ).group_by(CreditApplication.project_type)
    accounts_stmt = select(
        func.count(Account.id),
        func.coalesce(func.sum(Account.total_amount), 0),
        func.coalesce(func.sum(Account.outstanding_balance), 0),
    ).join(CreditApplication, Account.application_id == CreditApplication.id)
    payments_stmt = (
        select(func.count(Payment.id), func.coalesce(func.sum(Payment.amount), 0))
        .join(Account, Payment.account_id == Account.id)
        .join(CreditApplication, Account.application_id == CreditApplication.id)
    )
    if institution_id is not None:
        by_status_stmt = by_status_stmt.where(CreditApplication.program.has(financial_institution_id=institution_id))
        by_type_stmt = by_type_stmt.where(CreditApplication.program.has(financial_institution_id=institution_id))
        accounts_stmt = accounts_stmt.where(Account.financial_institution_id == institution_id)
        payments_stmt = payments_stmt.where(Account.financial_institution_id == institution_id)

    status_rows = (await session.execute(_windowed(by_status_stmt, since, until))).all()
    type_rows = (await session.execute(_windowed(by_type_stmt, since, until))).all()
    account_row = (await session.execute(_windowed(accounts_stmt, since, until))).one()
    payment_row = (await session.execute(_windowed(payments_stmt, since, until))).one()

    by_status = {s.value: {"count": 0, "amount": Decimal(0)} for s in ApplicationStatus}
    for status, count, amount in status_rows:
        by_status[ApplicationStatus(status).value] = {"count": count, "amount": _money(amount)}
    by_type = {t.value: {"count": 0, "amount": Decimal(0)} for t in ProjectType}
    for project_type, count, amount in type_rows:
        by_type[ProjectType(project_type).value] = {"count": count, "amount": _money(amount)}

    total = sum(v["count"] for v in by_status.values())
    decided = by_status["approved"]["count"] + by_status["rejected"]["count"]
    approval_rate = (
        (Decimal(by_status["approved"]["count"]) / decided * 100).quantize(Decimal("0.01"))
        if decided
        else None
    )
    return {
        "window": {
            "since": since.isoformat() if since else None,
            "until": until.isoformat() if until else None,
        },
        "applications": {
            "total": total,
            "byStatus": by_status,
            "byProjectType": by_type,
            "approvalRate": approval_rate,
        },
        "accounts": {
            "count": account_row[0],
            "totalAmount": _money(account_row[1]),
            "outstandingBalance": _money(account_row[2]),
        },
        "payments": {
            "count": payment_row[0],
            "totalAmount": _money(payment_row[1]),
        },
    }
