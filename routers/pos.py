# routers/pos.py - POS connection and promo code sync endpoints
from typing import List, Optional

import httpx
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from auth import get_current_user_id
from database import get_db
from db_models import Merchant
from schemas import (
    AuthUrlResponse,
    ConnectRequest,
    ConnectResponse,
    PromoCodeSyncStatusList,
    ProviderInfo,
    SyncRequest,
    SyncResponse
)
from services.pos import (
    ConnectionManager,
    MerchantNotFound,
    OAuthStateManager,
    PromoSyncService,
    SyncStatusLedger,
    get_adapter,
    run_batch_sync
)
from settings import get_settings


router = APIRouter(prefix="/pos", tags=["POS"])

PROVIDERS = [
    ProviderInfo(
        id="square",
        name="Square",
        description="Complete POS solution with payments processing"
    ),
    ProviderInfo(
        id="clover",
        name="Clover",
        description="Flexible POS system for businesses of all sizes"
    ),
    ProviderInfo(
        id="lightspeed",
        name="Lightspeed",
        description="Cloud-based POS for retail and restaurants"
    )
]


def get_pos_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Transport for outbound provider calls; None uses httpx's default"""
    return None


def get_redirect_uri(provider: str) -> str:
    """Frontend page the provider redirects back to with the authorization code"""
    return f"{get_settings().OAUTH_REDIRECT_BASE_URL}/pos-callback/{provider}"


def verify_merchant_ownership(merchant_id: str, user_id: str, db: Session) -> Merchant:
    """Verify the caller owns the merchant"""
    merchant = db.query(Merchant).filter(
        Merchant.id == merchant_id,
        Merchant.user_id == user_id
    ).first()

    if not merchant:
        raise MerchantNotFound(merchant_id)

    return merchant


@router.get("/providers", response_model=List[ProviderInfo])
async def list_providers():
    """List supported POS providers"""
    return PROVIDERS


# ============ OAuth Flow Endpoints ============

@router.get("/{provider}/authorize", response_model=AuthUrlResponse)
async def initiate_oauth(
    provider: str,
    merchant_id: str = Query(..., description="Merchant to connect"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Step 1: Initiate OAuth flow
    Returns authorization URL for the frontend to redirect to
    """
    adapter = get_adapter(provider)
    verify_merchant_ownership(merchant_id, user_id, db)

    state = OAuthStateManager.generate_state(merchant_id, provider, user_id)
    auth_url = adapter.get_authorization_url(get_redirect_uri(provider), state)

    return AuthUrlResponse(authorization_url=auth_url, state=state)


@router.post("/connect-{provider}", response_model=ConnectResponse)
async def connect_provider(
    provider: str,
    body: ConnectRequest,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_pos_transport)
):
    """
    Step 2: Exchange the authorization code and store the connection.

    The merchant's existing promo codes are synced after the response is sent;
    their outcome shows up in the sync status ledger.
    """
    if body.state is not None:
        state_data = OAuthStateManager.validate_state(body.state)
        if (
            not state_data
            or state_data["merchant_id"] != body.merchant_id
            or state_data["provider"] != provider
            or state_data["user_id"] != user_id
        ):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid or expired state"
            )

    manager = ConnectionManager(db, transport=transport)
    result = await manager.connect(provider, body.authorization_code, body.merchant_id, user_id)

    background_tasks.add_task(run_batch_sync, body.merchant_id, transport)

    display_name = provider.capitalize()
    return ConnectResponse(
        success=True,
        message=f"Successfully connected to {display_name}",
        merchant_id=result.provider_merchant_id,
        merchant_name=result.provider_merchant_name
    )


# ============ Connection Management ============

@router.delete("/merchants/{merchant_id}/connection", status_code=status.HTTP_204_NO_CONTENT)
async def disconnect_provider(
    merchant_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Disconnect the merchant's POS system"""
    ConnectionManager(db).disconnect(merchant_id, user_id)


@router.get("/merchants/{merchant_id}/promo-codes", response_model=PromoCodeSyncStatusList)
async def list_promo_code_sync_status(
    merchant_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Sync status of every promo code for the merchant dashboard"""
    merchant = verify_merchant_ownership(merchant_id, user_id, db)

    return PromoCodeSyncStatusList(
        merchant_id=merchant.id,
        pos_system=merchant.pos_system,
        promo_codes=SyncStatusLedger(db).get(merchant.id)
    )


# ============ Promo Code Sync ============

@router.post("/sync-one-code", response_model=SyncResponse)
async def sync_one_code(
    body: SyncRequest,
    db: Session = Depends(get_db),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_pos_transport)
):
    """Resync a single promo code to the merchant's POS"""
    sync_service = PromoSyncService(db, transport=transport)
    result = await sync_service.sync_one(body.promo_code_id, body.merchant_id)

    return SyncResponse(success=result.success, message=result.message)
