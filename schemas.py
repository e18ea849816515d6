# schemas.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List


# Request bodies use the frontend's camelCase keys
class ConnectRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    authorization_code: str = Field(..., alias="authorizationCode", min_length=1)
    merchant_id: str = Field(..., alias="merchantId", min_length=1)
    state: Optional[str] = None


class ConnectResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    merchant_id: str = Field(..., serialization_alias="merchantId")
    merchant_name: Optional[str] = Field(None, serialization_alias="merchantName")


class SyncRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    promo_code_id: str = Field(..., alias="promoCodeId", min_length=1)
    merchant_id: str = Field(..., alias="merchantId", min_length=1)


class SyncResponse(BaseModel):
    success: bool
    message: str


class PromoCodeSyncStatus(BaseModel):
    id: str
    code: str
    status: str


class PromoCodeSyncStatusList(BaseModel):
    merchant_id: str
    pos_system: Optional[str] = None
    promo_codes: List[PromoCodeSyncStatus]


class AuthUrlResponse(BaseModel):
    authorization_url: str
    state: str


class ProviderInfo(BaseModel):
    id: str
    name: str
    description: str
