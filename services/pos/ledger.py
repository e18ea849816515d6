"""Per promo code record of the last POS sync outcome"""
from datetime import datetime
from typing import Dict, List

from sqlalchemy.orm import Session

from database import safe_commit
from db_models import PromoCode

PENDING = "pending"
SYNCED = "synced"
FAILED = "failed"

SYNC_STATUSES = (PENDING, SYNCED, FAILED)


class SyncStatusLedger:
    """Read and write pos_sync_status; only the sync service writes"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, merchant_id: str) -> List[Dict[str, str]]:
        """Sync status of every promo code belonging to a merchant"""
        promo_codes = self.db.query(PromoCode).filter(
            PromoCode.merchant_id == merchant_id
        ).order_by(PromoCode.code).all()

        return [
            {"id": promo.id, "code": promo.code, "status": promo.pos_sync_status}
            for promo in promo_codes
        ]

    def set(self, code_id: str, status: str) -> None:
        """Record the outcome of the latest sync attempt, overwriting the previous one"""
        if status not in SYNC_STATUSES:
            raise ValueError(f"Invalid sync status: {status}")

        self.db.query(PromoCode).filter(PromoCode.id == code_id).update(
            {"pos_sync_status": status, "updated_at": datetime.utcnow()},
            synchronize_session="fetch"
        )
        safe_commit(self.db)
