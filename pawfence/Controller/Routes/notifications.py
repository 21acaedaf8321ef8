# pawfence/Controller/Routes/notifications.py

"""
Notification REST API

Endpoints:
- GET    /notifications/                       List notifications (filters: dog_id, unseen_only)
- POST   /notifications/send                   Create a manual notification
- POST   /notifications/seen                   Mark all (or one dog's) as seen
- PATCH  /notifications/{notification_id}/seen Mark one as seen
- DELETE /notifications/{notification_id}      Delete one

Boundary notifications are created by the ingestion pipeline; this API only
reads them and flips the `seen` flag.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from pawfence.Controller.deps import get_DB
from pawfence.Core import log_ws
from pawfence.Repositories import dog as dog_repo
from pawfence.Repositories import notification as notification_repo
from pawfence.Schemas import notification as notification_schema

router = APIRouter()


@router.get("/", response_model=notification_schema.NotificationListResponse)
def list_notifications(
    dog_id: Optional[str] = Query(None, description="Only notifications of this dog"),
    unseen_only: bool = Query(False, description="Only notifications not yet seen"),
    limit: int = Query(100, ge=1, le=1000),
    DB: Session = Depends(get_DB),
):
    """
    Notifications newest first, with the unseen counter for badges.

    Example:
        GET /notifications/?dog_id=d1&unseen_only=true
    """
    notifications = notification_repo.get_notifications(
        DB, dog_id=dog_id, unseen_only=unseen_only, limit=limit
    )
    return {
        "notifications": notifications,
        "total": len(notifications),
        "unseen": notification_repo.count_unseen(DB, dog_id=dog_id),
    }


@router.post("/send", response_model=notification_schema.NotificationGet, status_code=201)
def send_notification(
    notification: notification_schema.NotificationSend,
    DB: Session = Depends(get_DB),
):
    if not dog_repo.dog_exists(DB, notification.dog_id):
        raise HTTPException(status_code=404, detail=f"Dog '{notification.dog_id}' not found")

    created = notification_repo.create_notification(DB, notification.dog_id, notification.message)
    log_ws.log_from_thread(
        f"[NOTIFICATIONS] Manual notification for dog '{notification.dog_id}': {notification.message}"
    )
    return created


@router.post("/seen")
def mark_all_seen(
    dog_id: Optional[str] = Query(None, description="Only notifications of this dog"),
    DB: Session = Depends(get_DB),
):
    updated = notification_repo.mark_all_seen(DB, dog_id=dog_id)
    return {"updated": updated}


@router.patch("/{notification_id}/seen", response_model=notification_schema.NotificationGet)
def mark_seen(notification_id: str, DB: Session = Depends(get_DB)):
    notification = notification_repo.mark_seen(DB, notification_id)

    if notification is None:
        raise HTTPException(status_code=404, detail=f"Notification '{notification_id}' not found")

    return notification


@router.delete("/{notification_id}")
def delete_notification(notification_id: str, DB: Session = Depends(get_DB)):
    if not notification_repo.delete_notification(DB, notification_id):
        raise HTTPException(status_code=404, detail=f"Notification '{notification_id}' not found")

    return {
        "id": notification_id,
        "status": "deleted",
    }
