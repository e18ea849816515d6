"""Binding merchants to a POS provider"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import safe_commit
from db_models import Merchant
from .exceptions import MerchantNotFound, PersistenceError
from .registry import get_adapter

logger = logging.getLogger(__name__)

# Cleared together on disconnect
POS_LINKAGE_FIELDS = (
    "pos_system",
    "pos_access_token",
    "pos_refresh_token",
    "pos_merchant_id",
    "pos_connected_at"
)


@dataclass
class ConnectResult:
    success: bool
    provider: str
    provider_merchant_id: str
    provider_merchant_name: Optional[str] = None


class ConnectionManager:
    """Connect and disconnect a merchant's POS provider"""

    def __init__(self, db: Session, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.db = db
        self.transport = transport

    def _get_owned_merchant(self, merchant_id: str, user_id: str) -> Merchant:
        merchant = self.db.query(Merchant).filter(
            Merchant.id == merchant_id,
            Merchant.user_id == user_id
        ).first()

        if not merchant:
            raise MerchantNotFound(merchant_id)

        return merchant

    async def connect(
        self,
        provider_name: str,
        authorization_code: str,
        merchant_id: str,
        user_id: str
    ) -> ConnectResult:
        """
        Exchange an OAuth authorization code and store the credential on the merchant.

        Nothing is written unless the exchange succeeds. Syncing the merchant's
        existing promo codes is left to the caller (see run_batch_sync).

        Raises:
            UnsupportedProvider: unknown provider name
            MerchantNotFound: merchant missing or not owned by the caller
            ProviderAuthError: the provider refused the code
            PersistenceError: the credential could not be saved
        """
        adapter = get_adapter(provider_name, transport=self.transport)
        self._get_owned_merchant(merchant_id, user_id)

        credential = await adapter.exchange_authorization_code(authorization_code)

        try:
            updated = self.db.query(Merchant).filter(
                Merchant.id == merchant_id,
                Merchant.user_id == user_id
            ).update(
                {
                    "pos_system": adapter.PROVIDER_NAME,
                    "pos_access_token": credential.access_token,
                    "pos_refresh_token": credential.refresh_token,
                    "pos_merchant_id": credential.provider_merchant_id,
                    "pos_connected_at": datetime.utcnow()
                },
                synchronize_session="fetch"
            )
            safe_commit(self.db)
        except SQLAlchemyError as e:
            logger.error(f"Failed to update merchant {merchant_id}: {e}")
            raise PersistenceError() from e

        if not updated:
            # Row vanished between the ownership check and the update
            raise MerchantNotFound(merchant_id)

        logger.info(
            f"Merchant {merchant_id} connected to {adapter.DISPLAY_NAME} "
            f"(provider merchant {credential.provider_merchant_id})"
        )

        return ConnectResult(
            success=True,
            provider=adapter.PROVIDER_NAME,
            provider_merchant_id=credential.provider_merchant_id,
            provider_merchant_name=credential.provider_merchant_name
        )

    def disconnect(self, merchant_id: str, user_id: str) -> None:
        """
        Clear every POS linkage field in one update.

        The token is not revoked at the provider. Disconnecting a merchant
        that is not connected is a no-op.
        """
        self._get_owned_merchant(merchant_id, user_id)

        try:
            self.db.query(Merchant).filter(
                Merchant.id == merchant_id,
                Merchant.user_id == user_id
            ).update(
                {field: None for field in POS_LINKAGE_FIELDS},
                synchronize_session="fetch"
            )
            safe_commit(self.db)
        except SQLAlchemyError as e:
            logger.error(f"Failed to disconnect merchant {merchant_id}: {e}")
            raise PersistenceError("Failed to disconnect POS system") from e

        logger.info(f"Merchant {merchant_id} disconnected from POS")
