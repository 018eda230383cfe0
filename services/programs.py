from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from errors import ValidationError
from models import CreditProgram


async def get_program_for_application(session: AsyncSession, program_id: str) -> CreditProgram:
    """Program lookup used when an application or simulation names a program."""
    result = await session.execute(select(CreditProgram).where(CreditProgram.id == program_id))
    program = result.scalar_one_or_none()
    if program is None:
        raise ValidationError("Credit program not found", {"credit_program_id": program_id})
    return program


def check_program_bounds(
    min_amount: Decimal, max_amount: Decimal, min_term: int, max_term: int
) -> None:
    if min_amount > max_amount:
        raise ValidationError(
            "Minimum amount must not exceed maximum amount",
            {"min_amount": str(min_amount), "max_amount": str(max_amount)},
        )
    if min_term > max_term:
        raise ValidationError(
            "Minimum term must not exceed maximum term",
            {"min_term": min_term, "max_term": max_term},
        )


def ensure_application_fits(
    program: CreditProgram, project_type: str, amount: Decimal, term_months: int
) -> None:
    """Raise ValidationError listing every rule of the program the request breaks."""
    problems = []
    if not program.is_active:
        problems.append("program is not active")
    project_type = getattr(project_type, "value", project_type)
    if program.project_types and project_type not in program.project_types:
        problems.append(f"project type '{project_type}' is not eligible")
    if amount < program.min_amount or amount > program.max_amount:
        problems.append(
            f"amount {amount:,.0f} AOA outside {program.min_amount:,.0f}-{program.max_amount:,.0f} AOA"
        )
    if term_months < program.min_term or term_months > program.max_term:
        problems.append(f"term {term_months} months outside {program.min_term}-{program.max_term} months")
    if problems:
        raise ValidationError(
            f"Request does not fit credit program '{program.name}': {'; '.join(problems)}",
            {"credit_program_id": program.id, "problems": problems},
        )
