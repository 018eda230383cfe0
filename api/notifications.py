from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import Actor, get_actor
from database import get_db
from services.notifications import list_notifications, mark_all_read, mark_read

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("")
async def get_notifications(
    unread_only: bool = False, actor: Actor = Depends(get_actor), db: AsyncSession = Depends(get_db)
):
    return [
        {
            "id": n.id,
            "type": n.type,
            "title": n.title,
            "message": n.message,
            "isRead": n.is_read,
            "relatedId": n.related_id,
            "createdAt": n.created_at.isoformat() if n.created_at else None,
        }
        for n in await list_notifications(db, actor.id, unread_only=unread_only)
    ]


@router.patch("/read-all")
async def read_all(actor: Actor = Depends(get_actor), db: AsyncSession = Depends(get_db)):
    updated = await mark_all_read(db, actor.id)
    return {"updated": updated}


@router.patch("/{notification_id}/read")
async def read_one(notification_id: str, actor: Actor = Depends(get_actor), db: AsyncSession = Depends(get_db)):
    await mark_read(db, actor.id, notification_id)
    return {"id": notification_id, "isRead": True}
