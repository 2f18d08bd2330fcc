import logging
from typing import List, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..data import db
from ..data.schema import GUEST_ID, NOTIFICATION_TYPES, Actor
from ..errors import NotFoundError
from ..monitoring.metrics import NOTIFICATIONS

logger = logging.getLogger(__name__)


def notify(
    session: Session,
    user_id: Optional[str],
    title: str,
    message: str = "",
    type_: str = "info",
) -> Optional[db.Notification]:
    """
    Registra notificação para ``user_id`` (sem commit: vai junto com a
    operação que a gerou). Ignora convidado, usuário inexistente e quem
    desligou notificações nas preferências.
    """
    if not user_id or user_id == GUEST_ID:
        return None
    profile = session.get(db.Profile, user_id)
    if profile is None:
        return None
    prefs = profile.preferences or {}
    if prefs.get("notifications") is False:
        return None
    if type_ not in NOTIFICATION_TYPES:
        type_ = "info"

    n = db.Notification(
        user_id=user_id,
        title=title,
        message=message,
        notification_type=type_,
        is_read=False,
    )
    session.add(n)
    try:
        NOTIFICATIONS.labels(type=type_).inc()
    except Exception:
        pass
    return n


def list_notifications(session: Session, actor: Actor) -> Tuple[List[db.Notification], int]:
    rows = session.scalars(
        select(db.Notification)
        .where(db.Notification.user_id == actor.id)
        .order_by(db.Notification.created_at.desc())
    ).all()
    unread = sum(1 for n in rows if not n.is_read)
    return list(rows), unread


def mark_read(session: Session, actor: Actor, notification_id: str) -> db.Notification:
    n = session.get(db.Notification, notification_id)
    if n is None or n.user_id != actor.id:
        raise NotFoundError("Notificação não encontrada")
    n.is_read = True
    session.commit()
    return n


def clear(session: Session, actor: Actor) -> int:
    res = session.execute(delete(db.Notification).where(db.Notification.user_id == actor.id))
    session.commit()
    return res.rowcount or 0
