"""Notification endpoints for the Agora API."""

from fastapi import APIRouter, HTTPException, Query, status

from agora_stage.core.settings import settings
from agora_stage.schemas.notification import (
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from agora_stage.services.notifications import list_notifications, mark_read, unread_count

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=NotificationListResponse)
async def get_notifications(
    current_user: CurrentUserDep,
    db: SessionDep,
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1, description="Defaults to the configured page size"),
) -> NotificationListResponse:
    """List the caller's notifications, newest first."""
    size = min(
        page_size or settings.notifications_page_size,
        settings.notifications_max_page_size,
    )
    result = list_notifications(db, current_user.id, page=page, page_size=size)
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(item) for item in result.items],
        has_more=result.has_more,
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(current_user: CurrentUserDep, db: SessionDep) -> UnreadCountResponse:
    """Return the unread badge value for the caller."""
    return UnreadCountResponse(count=unread_count(db, current_user.id))


@router.patch("/{notification_id}/read")
async def read_notification(
    notification_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    """Mark one of the caller's notifications as read."""
    if not mark_read(db, notification_id, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found",
        )
    db.commit()
    return {"status": "read"}
