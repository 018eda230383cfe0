"""
In-process domain events.

The workflow publishes events after its transaction commits; subscribers
(in-app notifications today, e-mail/SMS gateways elsewhere) react to them.
A subscriber failure is logged and never reaches the caller, whose change
is already durable.
"""
from __future__ import annotations

import enum
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class EventType(str, enum.Enum):
    APPLICATION_SUBMITTED = "applicationSubmitted"
    APPLICATION_UNDER_REVIEW = "applicationUnderReview"
    APPLICATION_APPROVED = "applicationApproved"
    APPLICATION_REJECTED = "applicationRejected"
    PAYMENT_RECORDED = "paymentRecorded"


@dataclass(frozen=True)
class DomainEvent:
    type: EventType
    # user the event concerns (the applicant / account holder)
    user_id: str
    related_id: str
    payload: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Handler = Callable[[DomainEvent], Awaitable[None]]


class EventDispatcher:
    def __init__(self) -> None:
        self._handlers: dict[EventType, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: EventType, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def subscribe_all(self, handler: Handler) -> None:
        for event_type in EventType:
            self.subscribe(event_type, handler)

    async def dispatch(self, event: DomainEvent) -> None:
        for handler in list(self._handlers.get(event.type, ())):
            try:
                await handler(event)
            except Exception:
                logger.exception(
                    "Event handler %r failed for %s (%s)",
                    handler,
                    event.type.value,
                    event.related_id,
                )
