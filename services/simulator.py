from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from schemas.simulation import SimulationRequest
from services.loan_calculator import assess_effort_rate, calculate_loan, interest_rate_for
from services.programs import ensure_application_fits, get_program_for_application


async def simulate_credit(
    session: AsyncSession,
    request: SimulationRequest,
    rate_table: Mapping[str, Decimal],
    default_effort_rate: Decimal,
) -> dict[str, Any]:
    """
    Quote a prospective loan. A selected program supplies rate, effort rate and
    bounds; otherwise the project-type table sets the rate.
    """
    effort_rate = default_effort_rate
    program = None
    if request.credit_program_id:
        program = await get_program_for_application(session, request.credit_program_id)
        ensure_application_fits(program, request.project_type, request.amount, request.term_months)
        rate = Decimal(program.interest_rate)
        effort_rate = Decimal(program.effort_rate)
    else:
        rate = interest_rate_for(request.project_type, rate_table)

    quote = calculate_loan(request.amount, rate, request.term_months)
    out: dict[str, Any] = {
        "amount": quote.principal,
        "termMonths": quote.term_months,
        "projectType": request.project_type.value,
        "interestRate": quote.annual_rate,
        "monthlyPayment": quote.monthly_payment,
        "totalAmount": quote.total_repayment,
        "totalInterest": quote.total_interest,
        "creditProgramId": program.id if program else None,
        "processingFee": None,
    }
    if program is not None and program.processing_fee:
        # fee is a percentage of the principal, charged once
        out["processingFee"] = (quote.principal * Decimal(program.processing_fee) / 100).quantize(Decimal("1"))
    if request.monthly_income is not None:
        effort = assess_effort_rate(quote.monthly_payment, request.monthly_income, effort_rate)
        out.update(
            monthlyIncome=effort.monthly_income,
            effortRate=effort.effort_rate,
            maxMonthlyPayment=effort.max_monthly_payment,
            effortRatePercentage=effort.effort_rate_percentage,
            isEffortRateViolated=effort.is_exceeded,
        )
    return out
