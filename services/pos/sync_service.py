"""Promo code synchronization into connected POS systems"""
import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import SessionLocal
from db_models import Merchant, PromoCode
from .base import POSAdapter, ProviderCredential
from .exceptions import MerchantNotFound, PromoCodeNotFound, ProviderNotConnected
from .ledger import SyncStatusLedger, SYNCED, FAILED
from .registry import get_adapter

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    success: bool
    message: str


@dataclass
class BatchSyncSummary:
    synced: int = 0
    failed: int = 0


class PromoSyncService:
    """Pushes promo codes to the merchant's POS and records each outcome in the ledger"""

    def __init__(self, db: Session, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.db = db
        self.transport = transport
        self.ledger = SyncStatusLedger(db)

    def _get_adapter(self, merchant: Merchant) -> POSAdapter:
        # Provider is read from the record on every call, never cached
        if not merchant.pos_access_token or not merchant.pos_system:
            raise ProviderNotConnected()
        return get_adapter(merchant.pos_system, transport=self.transport)

    async def _sync_code(
        self,
        adapter: POSAdapter,
        credential: ProviderCredential,
        promo_code: PromoCode
    ) -> bool:
        """Create the discount for one code and record the outcome"""
        try:
            synced = await adapter.create_discount(credential, promo_code)
        except Exception as e:
            logger.error(f"Failed to sync promo code {promo_code.code}: {e}")
            synced = False

        self.ledger.set(promo_code.id, SYNCED if synced else FAILED)
        return synced

    async def sync_all(self, merchant: Merchant, promo_codes: List[PromoCode]) -> BatchSyncSummary:
        """
        Sync a batch of promo codes one after another.

        A failing code is marked failed and the loop moves on; nothing is
        retried. Results are only observable through the ledger, the summary
        exists for logging.

        Raises:
            ProviderNotConnected, UnsupportedProvider: before any code is touched
        """
        adapter = self._get_adapter(merchant)
        credential = ProviderCredential.from_merchant(merchant)
        summary = BatchSyncSummary()

        for promo_code in promo_codes:
            code = promo_code.code
            try:
                synced = await self._sync_code(adapter, credential, promo_code)
            except SQLAlchemyError as e:
                logger.error(f"Could not record sync status for promo code {code}: {e}")
                synced = False

            if synced:
                summary.synced += 1
            else:
                summary.failed += 1
                logger.warning(f"Promo code {code} failed to sync to {adapter.DISPLAY_NAME}")

        logger.info(
            f"Batch sync to {adapter.DISPLAY_NAME} for merchant {merchant.id}: "
            f"{summary.synced} synced, {summary.failed} failed"
        )
        return summary

    async def sync_one(self, promo_code_id: str, merchant_id: str) -> SyncResult:
        """
        On-demand resync of a single promo code.

        Raises:
            MerchantNotFound, PromoCodeNotFound, ProviderNotConnected,
            UnsupportedProvider: precondition failures, ledger untouched

        Past the preconditions this always returns a SyncResult.
        """
        merchant = self.db.query(Merchant).filter(Merchant.id == merchant_id).first()
        if not merchant:
            raise MerchantNotFound(merchant_id)

        promo_code = self.db.query(PromoCode).filter(PromoCode.id == promo_code_id).first()
        if not promo_code or promo_code.merchant_id != merchant.id:
            raise PromoCodeNotFound(promo_code_id)

        adapter = self._get_adapter(merchant)
        credential = ProviderCredential.from_merchant(merchant)

        try:
            synced = await self._sync_code(adapter, credential, promo_code)
        except SQLAlchemyError as e:
            logger.error(f"Could not record sync status for promo code {promo_code_id}: {e}")
            return SyncResult(success=False, message="Failed to record sync status")

        if synced:
            return SyncResult(success=True, message="Promo code synced successfully")
        return SyncResult(success=False, message="Failed to sync promo code")


async def run_batch_sync(
    merchant_id: str,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> Optional[BatchSyncSummary]:
    """Sync every promo code of a merchant in a session of its own (post-connect task)."""
    db = SessionLocal()
    try:
        merchant = db.query(Merchant).filter(Merchant.id == merchant_id).first()
        if not merchant or not merchant.is_pos_connected:
            logger.warning(f"Skipping promo code sync, merchant {merchant_id} is not connected")
            return None

        promo_codes = db.query(PromoCode).filter(
            PromoCode.merchant_id == merchant_id
        ).order_by(PromoCode.code).all()

        if not promo_codes:
            logger.info(f"Merchant {merchant_id} has no promo codes to sync")
            return BatchSyncSummary()

        return await PromoSyncService(db, transport=transport).sync_all(merchant, promo_codes)
    except Exception as e:
        logger.error(f"Promo code sync for merchant {merchant_id} failed: {e}", exc_info=True)
        return None
    finally:
        db.close()
