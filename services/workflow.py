"""
Credit application lifecycle.

    pending ──► under_review ──► approved | rejected
       └──────────────────────────►┘

Approval quotes the loan and opens the application's Account in the same
transaction as the status change. Every status write is guarded by the
status the caller observed, so two reviewers racing on one application
cannot both win.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Mapping, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from errors import ConcurrentModification, InvalidStateTransition, NotFound, ValidationError
from models import Account, ApplicationStatus, CreditApplication, CreditProgram
from schemas.application import ApplicationCreate
from services.accounts import open_account
from services.events import DomainEvent, EventDispatcher, EventType
from services.loan_calculator import calculate_loan, interest_rate_for
from services.programs import ensure_application_fits, get_program_for_application
from services.unit_of_work import unit_of_work

logger = logging.getLogger(__name__)

TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    ApplicationStatus.PENDING: frozenset(
        {ApplicationStatus.UNDER_REVIEW, ApplicationStatus.APPROVED, ApplicationStatus.REJECTED}
    ),
    ApplicationStatus.UNDER_REVIEW: frozenset({ApplicationStatus.APPROVED, ApplicationStatus.REJECTED}),
    ApplicationStatus.APPROVED: frozenset(),
    ApplicationStatus.REJECTED: frozenset(),
}

_EVENT_FOR_STATUS = {
    ApplicationStatus.UNDER_REVIEW: EventType.APPLICATION_UNDER_REVIEW,
    ApplicationStatus.APPROVED: EventType.APPLICATION_APPROVED,
    ApplicationStatus.REJECTED: EventType.APPLICATION_REJECTED,
}


def can_transition(current: ApplicationStatus, target: ApplicationStatus) -> bool:
    return target in TRANSITIONS[current]


@dataclass
class TransitionResult:
    application: CreditApplication
    previous_status: ApplicationStatus
    account: Optional[Account] = None


class CreditWorkflow:
    """
    Submission and review of credit applications over one injected session.

    rate_table maps project type -> annual rate (%) and is used when neither
    an override nor a linked program supplies the rate.
    """

    def __init__(
        self,
        session: AsyncSession,
        rate_table: Mapping[str, Decimal],
        dispatcher: Optional[EventDispatcher] = None,
        today: Callable[[], date] = date.today,
    ):
        self.session = session
        self.rate_table = rate_table
        self.dispatcher = dispatcher
        self.today = today

    async def submit(self, user_id: str, data: ApplicationCreate) -> CreditApplication:
        """Validate against the selected program (if any) and store the application as pending."""
        async with unit_of_work(self.session):
            if data.credit_program_id:
                program = await get_program_for_application(self.session, data.credit_program_id)
                ensure_application_fits(program, data.project_type, data.amount, data.term_months)
            now = datetime.now(timezone.utc)
            profile = data.financial_profile.model_dump() if data.financial_profile else {}
            application = CreditApplication(
                id=f"app-{uuid.uuid4().hex[:12]}",
                user_id=user_id,
                credit_program_id=data.credit_program_id,
                project_name=data.project_name,
                project_type=data.project_type,
                description=data.description,
                amount=data.amount,
                term_months=data.term_months,
                status=ApplicationStatus.PENDING,
                created_at=now,
                updated_at=now,
                **profile,
            )
            self.session.add(application)

        logger.info("Application %s submitted by %s (%s AOA, %s months)",
                    application.id, user_id, application.amount, application.term_months)
        await self._publish(
            EventType.APPLICATION_SUBMITTED,
            application,
            amount=str(application.amount),
        )
        return application

    async def get_application(self, application_id: str) -> CreditApplication:
        result = await self.session.execute(
            select(CreditApplication).where(CreditApplication.id == application_id)
        )
        application = result.scalar_one_or_none()
        if application is None:
            raise NotFound("Application not found", {"application_id": application_id})
        return application

    async def transition(
        self,
        application_id: str,
        target: ApplicationStatus,
        actor_id: str,
        rejection_reason: Optional[str] = None,
        interest_rate: Optional[Decimal] = None,
        institution_id: Optional[str] = None,
    ) -> TransitionResult:
        """
        Move an application to ``target``.

        Raises InvalidStateTransition for moves outside TRANSITIONS,
        ValidationError for a rejection without reason, and
        ConcurrentModification when another actor changed the status first.
        Nothing is written unless the whole transition succeeds.
        """
        target = ApplicationStatus(target)
        account = None
        async with unit_of_work(self.session):
            application = await self.get_application(application_id)
            current = ApplicationStatus(application.status)
            if not can_transition(current, target):
                raise InvalidStateTransition(current.value, target.value)

            now = datetime.now(timezone.utc)
            values = {"status": target, "updated_at": now, "reviewed_by": actor_id}
            quote = None
            if target is ApplicationStatus.APPROVED:
                rate = await self._resolve_rate(application, interest_rate)
                quote = calculate_loan(application.amount, rate, application.term_months)
                values.update(interest_rate=rate, approved_by=actor_id)
            elif target is ApplicationStatus.REJECTED:
                reason = (rejection_reason or "").strip()
                if not reason:
                    raise ValidationError(
                        "A rejection reason is required", {"application_id": application_id}
                    )
                values.update(rejection_reason=reason)
            elif target is ApplicationStatus.UNDER_REVIEW:
                pass
            else:
                raise InvalidStateTransition(current.value, target.value)

            result = await self.session.execute(
                update(CreditApplication)
                .where(CreditApplication.id == application_id, CreditApplication.status == current)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ConcurrentModification(
                    "Application status was changed by another user; reload and retry",
                    {"application_id": application_id, "expected_status": current.value},
                )

            if quote is not None:
                account = open_account(
                    application,
                    quote,
                    approved_on=self.today(),
                    institution_id=await self._institution_for(application, institution_id or actor_id),
                )
                self.session.add(account)
                await self.session.flush()

        await self.session.refresh(application)
        logger.info("Application %s moved %s -> %s by %s", application_id, current.value, target.value, actor_id)
        payload = {}
        if application.rejection_reason and target is ApplicationStatus.REJECTED:
            payload["reason"] = application.rejection_reason
        if account is not None:
            payload.update(account_id=account.id, monthly_payment=str(account.monthly_payment))
        await self._publish(_EVENT_FOR_STATUS[target], application, **payload)
        return TransitionResult(application=application, previous_status=current, account=account)

    async def start_review(self, application_id: str, actor_id: str) -> TransitionResult:
        return await self.transition(application_id, ApplicationStatus.UNDER_REVIEW, actor_id)

    async def approve(
        self,
        application_id: str,
        actor_id: str,
        interest_rate: Optional[Decimal] = None,
        institution_id: Optional[str] = None,
    ) -> TransitionResult:
        return await self.transition(
            application_id,
            ApplicationStatus.APPROVED,
            actor_id,
            interest_rate=interest_rate,
            institution_id=institution_id,
        )

    async def reject(self, application_id: str, actor_id: str, reason: Optional[str]) -> TransitionResult:
        return await self.transition(
            application_id, ApplicationStatus.REJECTED, actor_id, rejection_reason=reason
        )

    async def _linked_program(self, application: CreditApplication) -> Optional[CreditProgram]:
        if not application.credit_program_id:
            return None
        result = await self.session.execute(
            select(CreditProgram).where(CreditProgram.id == application.credit_program_id)
        )
        return result.scalar_one_or_none()

    async def _resolve_rate(self, application: CreditApplication, override: Optional[Decimal]) -> Decimal:
        """Override, else the linked program's rate, else the project-type table."""
        if override is not None:
            if override < 0:
                raise ValidationError("Interest rate must not be negative", {"interest_rate": str(override)})
            # stored as Numeric(5, 2); quote with the rate that will be kept
            return Decimal(override).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        program = await self._linked_program(application)
        if program is not None:
            return Decimal(program.interest_rate)
        return interest_rate_for(application.project_type, self.rate_table)

    async def _institution_for(self, application: CreditApplication, fallback: str) -> str:
        program = await self._linked_program(application)
        return program.financial_institution_id if program is not None else fallback

    async def _publish(self, event_type: EventType, application: CreditApplication, **payload) -> None:
        if self.dispatcher is None:
            return
        await self.dispatcher.dispatch(
            DomainEvent(
                type=event_type,
                user_id=application.user_id,
                related_id=application.id,
                payload={"project_name": application.project_name, **payload},
            )
        )
