# pawfence/Repositories/notification.py

from typing import List, Optional

from sqlalchemy.orm import Session

from pawfence.Core.timeutils import utcnow
from pawfence.Models.notification import Notification


def get_notifications(
    db: Session,
    dog_id: Optional[str] = None,
    unseen_only: bool = False,
    limit: int = 100,
) -> List[Notification]:
    """
    Notifications newest first.

    Args:
        db: Session SQLAlchemy
        dog_id: Optional filter by dog
        unseen_only: Only notifications not yet acknowledged
        limit: Maximum number of rows
    """
    query = db.query(Notification)
    if dog_id:
        query = query.filter(Notification.dog_id == dog_id)
    if unseen_only:
        query = query.filter(Notification.seen == False)  # noqa: E712
    return query.order_by(Notification.triggered_at.desc(), Notification.id).limit(limit).all()


def count_unseen(db: Session, dog_id: Optional[str] = None) -> int:
    query = db.query(Notification).filter(Notification.seen == False)  # noqa: E712
    if dog_id:
        query = query.filter(Notification.dog_id == dog_id)
    return query.count()


def get_notification_by_id(db: Session, notification_id: str) -> Optional[Notification]:
    return db.query(Notification).filter(Notification.id == notification_id).first()


def create_notification(db: Session, dog_id: str, message: str) -> Notification:
    """Manual notification (no boundary, no transition kind)."""
    new_notification = Notification(dog_id=dog_id, message=message, triggered_at=utcnow())
    db.add(new_notification)
    db.commit()
    db.refresh(new_notification)
    return new_notification


def mark_seen(db: Session, notification_id: str) -> Optional[Notification]:
    notification = get_notification_by_id(db, notification_id)
    if not notification:
        return None
    notification.seen = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_seen(db: Session, dog_id: Optional[str] = None) -> int:
    query = db.query(Notification).filter(Notification.seen == False)  # noqa: E712
    if dog_id:
        query = query.filter(Notification.dog_id == dog_id)
    updated = query.update({Notification.seen: True}, synchronize_session=False)
    db.commit()
    return updated


def delete_notification(db: Session, notification_id: str) -> bool:
    notification = get_notification_by_id(db, notification_id)
    if not notification:
        return False
    db.delete(notification)
    db.commit()
    return True
