# POS provider adapters and promo code sync
from .base import POSAdapter, ProviderCredential, DISCOUNT_AMOUNT_CENTS
from .square import SquareAdapter
from .clover import CloverAdapter
from .lightspeed import LightspeedAdapter
from .registry import ADAPTERS, get_adapter, get_adapter_class
from .ledger import SyncStatusLedger, PENDING, SYNCED, FAILED, SYNC_STATUSES
from .sync_service import PromoSyncService, SyncResult, BatchSyncSummary, run_batch_sync
from .connection import ConnectionManager, ConnectResult
from .oauth import OAuthStateManager
from .exceptions import (
    POSIntegrationError,
    ProviderAuthError,
    UnsupportedProvider,
    ProviderNotConnected,
    MerchantNotFound,
    PromoCodeNotFound,
    PersistenceError
)

__all__ = [
    "POSAdapter",
    "ProviderCredential",
    "DISCOUNT_AMOUNT_CENTS",
    "SquareAdapter",
    "CloverAdapter",
    "LightspeedAdapter",
    "ADAPTERS",
    "get_adapter",
    "get_adapter_class",
    "SyncStatusLedger",
    "PENDING",
    "SYNCED",
    "FAILED",
    "SYNC_STATUSES",
    "PromoSyncService",
    "SyncResult",
    "BatchSyncSummary",
    "run_batch_sync",
    "ConnectionManager",
    "ConnectResult",
    "OAuthStateManager",
    "POSIntegrationError",
    "ProviderAuthError",
    "UnsupportedProvider",
    "ProviderNotConnected",
    "MerchantNotFound",
    "PromoCodeNotFound",
    "PersistenceError"
]
