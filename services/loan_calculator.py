"""
Loan repayment arithmetic for Kwanza loans.

Everything is computed with ``decimal.Decimal``. Only the monthly installment
is rounded, to whole Kwanza (AOA has no minor unit in practice); totals are
derived from the rounded installment so that what the borrower is quoted is
exactly what the account will collect.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal, localcontext
from typing import Mapping

from dateutil.relativedelta import relativedelta

from errors import InvalidInput

KWANZA = Decimal("1")
CENT = Decimal("0.01")
_PRECISION = 34
_SOLVER_STEPS = 200


@dataclass(frozen=True)
class LoanQuote:
    principal: Decimal
    annual_rate: Decimal
    term_months: int
    monthly_payment: Decimal
    total_repayment: Decimal
    total_interest: Decimal


@dataclass(frozen=True)
class Installment:
    number: int
    due_date: date
    payment: Decimal
    interest: Decimal
    principal: Decimal
    balance: Decimal


@dataclass(frozen=True)
class EffortAssessment:
    monthly_income: Decimal
    effort_rate: Decimal
    max_monthly_payment: Decimal
    effort_rate_percentage: Decimal
    is_exceeded: bool


def _as_decimal(value, name: str) -> Decimal:
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value)
    except (ArithmeticError, TypeError, ValueError) as e:
        raise InvalidInput(f"{name} must be a number", {name: repr(value)}) from e


def _validate(principal, annual_rate, term_months) -> tuple[Decimal, Decimal, int]:
    principal = _as_decimal(principal, "principal")
    annual_rate = _as_decimal(annual_rate, "annual_rate")
    if not principal.is_finite() or principal <= 0:
        raise InvalidInput("Principal must be greater than zero", {"principal": str(principal)})
    if not annual_rate.is_finite() or annual_rate < 0:
        raise InvalidInput("Interest rate must not be negative", {"annual_rate": str(annual_rate)})
    if isinstance(term_months, bool) or not isinstance(term_months, int) or term_months <= 0:
        raise InvalidInput("Term must be a positive number of months", {"term_months": term_months})
    return principal, annual_rate, term_months


def monthly_rate(annual_rate: Decimal) -> Decimal:
    """Annual percentage rate -> periodic monthly rate as a fraction."""
    return annual_rate / Decimal(100) / Decimal(12)


def exact_monthly_payment(principal, annual_rate, term_months: int) -> Decimal:
    """Unrounded level installment whose present value equals the principal."""
    principal, annual_rate, term_months = _validate(principal, annual_rate, term_months)
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        if annual_rate == 0:
            return principal / term_months
        r = monthly_rate(annual_rate)
        growth = (1 + r) ** term_months
        return principal * r * growth / (growth - 1)


def calculate_loan(principal, annual_rate, term_months: int) -> LoanQuote:
    """
    Quote a fixed-installment loan.

    The installment is rounded half-up to whole Kwanza; if that would leave
    the total below the principal it is rounded up instead.
    """
    principal, annual_rate, term_months = _validate(principal, annual_rate, term_months)
    exact = exact_monthly_payment(principal, annual_rate, term_months)
    payment = exact.quantize(KWANZA, rounding=ROUND_HALF_UP)
    if payment * term_months < principal:
        payment = exact.quantize(KWANZA, rounding=ROUND_CEILING)
    total = payment * term_months
    return LoanQuote(
        principal=principal,
        annual_rate=annual_rate,
        term_months=term_months,
        monthly_payment=payment,
        total_repayment=total,
        total_interest=total - principal,
    )


def interest_rate_for(project_type: str, rate_table: Mapping[str, Decimal]) -> Decimal:
    """Look up the configured annual rate for a project type, falling back to 'other'."""
    key = getattr(project_type, "value", project_type)
    if key in rate_table:
        return Decimal(rate_table[key])
    if "other" in rate_table:
        return Decimal(rate_table["other"])
    raise InvalidInput(f"No interest rate configured for project type '{key}'")


def _present_value(payment: Decimal, rate: Decimal, term_months: int) -> Decimal:
    return payment * (1 - (1 + rate) ** -term_months) / rate


def implied_monthly_rate(principal: Decimal, payment: Decimal, term_months: int) -> Decimal:
    """
    Monthly rate at which ``term_months`` level payments of ``payment`` repay
    exactly ``principal``. Differs from the quoted rate only by the rounding
    of the installment; zero when the payments add up to the principal.
    """
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        if payment * term_months <= principal:
            return Decimal(0)
        # present value falls as the rate rises; payment/principal is a rate too high
        low, high = Decimal(0), payment / principal
        for _ in range(_SOLVER_STEPS):
            mid = (low + high) / 2
            if _present_value(payment, mid, term_months) > principal:
                low = mid
            else:
                high = mid
        return (low + high) / 2


def amortization_schedule(quote: LoanQuote, first_due_date: date) -> list[Installment]:
    """
    Month-by-month breakdown of a quote.

    Each installment is the quoted payment. Interest accrues at the rate
    implied by the rounded payment, so the balance reaches zero exactly at
    the last installment. Interest is booked in cents from the exact running
    total; the last row books whatever remains of the quote's total interest,
    so the schedule sums exactly to the quote and no row has negative interest.
    """
    payment = quote.monthly_payment
    r = implied_monthly_rate(quote.principal, payment, quote.term_months)
    exact_balance = quote.principal
    accrued = Decimal(0)
    booked = Decimal(0)
    balance = quote.principal
    rows: list[Installment] = []
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        for n in range(1, quote.term_months + 1):
            if n == quote.term_months:
                interest = quote.total_interest - booked
            else:
                month_interest = exact_balance * r
                exact_balance = exact_balance + month_interest - payment
                accrued += month_interest
                interest = accrued.quantize(CENT, rounding=ROUND_HALF_UP) - booked
            booked += interest
            principal_part = payment - interest
            balance -= principal_part
            rows.append(
                Installment(
                    number=n,
                    due_date=first_due_date + relativedelta(months=n - 1),
                    payment=payment,
                    interest=interest,
                    principal=principal_part,
                    balance=balance,
                )
            )
    return rows


def assess_effort_rate(
    monthly_payment: Decimal,
    monthly_income,
    effort_rate: Decimal,
) -> EffortAssessment:
    """Compare an installment with the share of income the lender allows (the effort rate)."""
    income = _as_decimal(monthly_income, "monthly_income")
    if income <= 0:
        raise InvalidInput("Monthly income must be greater than zero", {"monthly_income": str(income)})
    effort_rate = _as_decimal(effort_rate, "effort_rate")
    max_payment = (income * effort_rate / 100).quantize(KWANZA, rounding=ROUND_HALF_UP)
    percentage = (Decimal(monthly_payment) / income * 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return EffortAssessment(
        monthly_income=income,
        effort_rate=effort_rate,
        max_monthly_payment=max_payment,
        effort_rate_percentage=percentage,
        is_exceeded=Decimal(monthly_payment) > income * effort_rate / 100,
    )
