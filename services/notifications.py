"""
In-app notifications: the default subscriber for workflow events.
Delivery over other channels (e-mail, SMS) belongs to external consumers.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from errors import NotFound
from models import Notification
from services.events import DomainEvent, EventDispatcher, EventType

# event -> (notification type, title, message template)
TEMPLATES = {
    EventType.APPLICATION_SUBMITTED: (
        "application_submitted",
        "Solicitação de Crédito Enviada",
        'A sua solicitação de crédito para o projeto "{project_name}" foi enviada e está a ser analisada.',
    ),
    EventType.APPLICATION_UNDER_REVIEW: (
        "application_under_review",
        "Solicitação em Análise",
        'A sua solicitação de crédito para "{project_name}" está em análise.',
    ),
    EventType.APPLICATION_APPROVED: (
        "application_approved",
        "Solicitação Aprovada!",
        'A sua solicitação de crédito para "{project_name}" foi aprovada. '
        "Prestação mensal: {monthly_payment} AOA.",
    ),
    EventType.APPLICATION_REJECTED: (
        "application_rejected",
        "Solicitação Rejeitada",
        'A sua solicitação de crédito para "{project_name}" foi rejeitada. Motivo: {reason}',
    ),
    EventType.PAYMENT_RECORDED: (
        "payment_confirmed",
        "Pagamento Registado",
        "Pagamento de {amount} AOA registado. Saldo em dívida: {outstanding_balance} AOA.",
    ),
}


class NotificationRecorder:
    """Writes one notification row per event, in its own session and transaction."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def __call__(self, event: DomainEvent) -> None:
        kind, title, template = TEMPLATES[event.type]
        values = {"project_name": "", "reason": "", "monthly_payment": "", "amount": "", "outstanding_balance": ""}
        values.update(event.payload)
        now = datetime.now(timezone.utc)
        async with self.session_factory() as session:
            session.add(
                Notification(
                    id=f"ntf-{uuid.uuid4().hex[:12]}",
                    user_id=event.user_id,
                    type=kind,
                    title=title,
                    message=template.format(**values),
                    related_id=event.related_id,
                    is_read=False,
                    created_at=now,
                    updated_at=now,
                )
            )
            await session.commit()


def register_notification_recorder(
    dispatcher: EventDispatcher, session_factory: async_sessionmaker[AsyncSession]
) -> NotificationRecorder:
    recorder = NotificationRecorder(session_factory)
    dispatcher.subscribe_all(recorder)
    return recorder


async def list_notifications(session: AsyncSession, user_id: str, unread_only: bool = False) -> list[Notification]:
    stmt = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        stmt = stmt.where(Notification.is_read.is_(False))
    result = await session.execute(stmt.order_by(Notification.created_at.desc()))
    return list(result.scalars().all())


async def mark_read(session: AsyncSession, user_id: str, notification_id: str) -> None:
    result = await session.execute(
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == user_id)
        .values(is_read=True, updated_at=datetime.now(timezone.utc))
    )
    if result.rowcount == 0:
        raise NotFound("Notification not found", {"notification_id": notification_id})


async def mark_all_read(session: AsyncSession, user_id: str) -> int:
    result = await session.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True, updated_at=datetime.now(timezone.utc))
    )
    return result.rowcount
