# db_models.py
import uuid

from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Merchant(Base):
    """Partner business account that issues rewards"""
    __tablename__ = "merchants"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), nullable=False, index=True)  # Owning user (identity provider subject)
    business_name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    is_approved = Column(Boolean, default=False)

    # POS linkage - all set together on connect, all cleared together on disconnect
    pos_system = Column(String, nullable=True)  # 'square', 'clover', 'lightspeed'
    pos_access_token = Column(Text, nullable=True)
    pos_refresh_token = Column(Text, nullable=True)  # Square and Lightspeed only
    pos_merchant_id = Column(String, nullable=True)  # Square merchant / Clover merchant / Lightspeed account
    pos_connected_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    promo_codes = relationship("PromoCode", back_populates="merchant", cascade="all, delete-orphan")

    @property
    def is_pos_connected(self) -> bool:
        return bool(self.pos_system and self.pos_access_token and self.pos_merchant_id)


class PromoCode(Base):
    """Redeemable code for one reward, mirrored into the merchant's POS as a discount"""
    __tablename__ = "promo_codes"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    code = Column(String, nullable=False)  # e.g. SAVE5-001
    merchant_id = Column(String(36), ForeignKey("merchants.id", ondelete="CASCADE"), nullable=False, index=True)
    reward_id = Column(String(36), nullable=False)
    user_id = Column(String(36), nullable=True)  # Redeemer, for codes issued on redemption
    expires_at = Column(DateTime, nullable=True)

    # Outcome of the last POS sync attempt: pending, synced, failed
    pos_sync_status = Column(String, nullable=False, default="pending")

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    merchant = relationship("Merchant", back_populates="promo_codes")
