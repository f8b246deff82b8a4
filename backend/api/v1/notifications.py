"""Recipient inbox, preference and push device endpoints."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import CallerIdentity, get_current_identity, get_db, get_push_provider
from models import Notification
from services.notifications import (
    DEFAULT_INBOX_LIMIT,
    MAX_INBOX_LIMIT,
    InboxResponse,
    MarkReadResponse,
    NotificationPreferencesResponse,
    NotificationPreferencesUpdate,
    NotificationResponse,
    PushTargetRegistration,
    PushTargetResponse,
    UnreadCountResponse,
    archive_notification,
    count_unread,
    get_notification,
    get_preferences,
    list_inbox,
    mark_all_as_read,
    mark_as_read,
    register_push_target,
    remove_push_target,
    upsert_preferences,
)
from services.notifications.push import (
    PushCredentials,
    PushPlatform,
    PushProvider,
    PushProviderError,
    SubscriberInfo,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])

PreferenceScope = Literal["tenant", "global"]


async def _get_owned_notification(
    session: AsyncSession,
    notification_id: str,
    identity: CallerIdentity,
) -> Notification:
    notification = await get_notification(
        session,
        notification_id,
        user_id=identity.user_id,
        tenant_id=identity.tenant_id,
    )
    if notification is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found",
        )
    return notification


@router.get("", response_model=InboxResponse)
async def read_inbox(
    limit: int = Query(DEFAULT_INBOX_LIMIT, ge=1, le=MAX_INBOX_LIMIT),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_db),
    identity: CallerIdentity = Depends(get_current_identity),
) -> InboxResponse:
    notifications = await list_inbox(
        session,
        user_id=identity.user_id,
        tenant_id=identity.tenant_id,
        limit=limit,
        offset=offset,
    )
    unread = await count_unread(
        session,
        user_id=identity.user_id,
        tenant_id=identity.tenant_id,
    )
    return InboxResponse(
        notifications=[NotificationResponse.model_validate(item) for item in notifications],
        unread_count=unread,
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def read_unread_count(
    session: AsyncSession = Depends(get_db),
    identity: CallerIdentity = Depends(get_current_identity),
) -> UnreadCountResponse:
    unread = await count_unread(
        session,
        user_id=identity.user_id,
        tenant_id=identity.tenant_id,
    )
    return UnreadCountResponse(unread_count=unread)


@router.post("/read-all", response_model=MarkReadResponse)
async def read_all_notifications(
    session: AsyncSession = Depends(get_db),
    identity: CallerIdentity = Depends(get_current_identity),
) -> MarkReadResponse:
    updated = await mark_all_as_read(
        session,
        user_id=identity.user_id,
        tenant_id=identity.tenant_id,
    )
    return MarkReadResponse(updated_count=updated)


@router.get("/preferences", response_model=NotificationPreferencesResponse)
async def read_preferences(
    session: AsyncSession = Depends(get_db),
    identity: CallerIdentity = Depends(get_current_identity),
) -> NotificationPreferencesResponse:
    preferences = await get_preferences(session, identity.user_id, identity.tenant_id)
    return NotificationPreferencesResponse.model_validate(preferences)


@router.put("/preferences", response_model=NotificationPreferencesResponse)
async def update_preferences(
    payload: NotificationPreferencesUpdate,
    scope: PreferenceScope = Query("tenant"),
    session: AsyncSession = Depends(get_db),
    identity: CallerIdentity = Depends(get_current_identity),
) -> NotificationPreferencesResponse:
    tenant_id = identity.tenant_id if scope == "tenant" else None
    preferences = await upsert_preferences(
        session,
        identity.user_id,
        tenant_id,
        **payload.model_dump(exclude_unset=True),
    )
    return NotificationPreferencesResponse.model_validate(preferences)


def _push_provider_failure(exc: PushProviderError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=f"Push provider rejected the request: {exc}",
    )


@router.put("/push-target", response_model=PushTargetResponse)
async def register_device(
    payload: PushTargetRegistration,
    session: AsyncSession = Depends(get_db),
    identity: CallerIdentity = Depends(get_current_identity),
    push_provider: PushProvider = Depends(get_push_provider),
) -> PushTargetResponse:
    subscriber = SubscriberInfo(
        user_id=identity.user_id,
        email=payload.email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        locale=payload.locale,
    )
    credentials = PushCredentials(
        platform=payload.platform,
        token=payload.token,
        expo_push_token=payload.token if payload.is_expo_push_token else None,
    )
    try:
        target = await register_push_target(session, push_provider, subscriber, credentials)
    except PushProviderError as exc:
        raise _push_provider_failure(exc) from exc
    return PushTargetResponse.model_validate(target)


@router.delete(
    "/push-target",
    response_model=PushTargetResponse,
    status_code=status.HTTP_200_OK,
)
async def remove_device(
    platform: PushPlatform = Query(...),
    session: AsyncSession = Depends(get_db),
    identity: CallerIdentity = Depends(get_current_identity),
    push_provider: PushProvider = Depends(get_push_provider),
) -> PushTargetResponse:
    try:
        target = await remove_push_target(session, push_provider, identity.user_id, platform)
    except PushProviderError as exc:
        raise _push_provider_failure(exc) from exc
    if target is None:
        return PushTargetResponse(
            user_id=identity.user_id,
            novu_subscriber_id=None,
            push_platform=None,
            expo_push_token=None,
        )
    return PushTargetResponse.model_validate(target)


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def read_notification(
    notification_id: str,
    session: AsyncSession = Depends(get_db),
    identity: CallerIdentity = Depends(get_current_identity),
) -> NotificationResponse:
    notification = await _get_owned_notification(session, notification_id, identity)
    if notification.read_at is None:
        await mark_as_read(
            session,
            notification_id,
            user_id=identity.user_id,
            tenant_id=identity.tenant_id,
        )
        await session.refresh(notification)
    return NotificationResponse.model_validate(notification)


@router.post("/{notification_id}/archive", response_model=NotificationResponse)
async def archive(
    notification_id: str,
    session: AsyncSession = Depends(get_db),
    identity: CallerIdentity = Depends(get_current_identity),
) -> NotificationResponse:
    notification = await _get_owned_notification(session, notification_id, identity)
    if notification.archived_at is None:
        await archive_notification(
            session,
            notification_id,
            user_id=identity.user_id,
            tenant_id=identity.tenant_id,
        )
        await session.refresh(notification)
    return NotificationResponse.model_validate(notification)
