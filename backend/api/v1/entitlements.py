"""Tenant entitlement endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import CallerIdentity, get_current_identity, get_db
from services.subscriptions import TenantEntitlements, get_tenant_entitlements

router = APIRouter(prefix="/entitlements", tags=["entitlements"])


@router.get("", response_model=TenantEntitlements)
async def read_entitlements(
    session: AsyncSession = Depends(get_db),
    identity: CallerIdentity = Depends(get_current_identity),
) -> TenantEntitlements:
    return await get_tenant_entitlements(session, identity.tenant_id)
