"""Square POS adapter"""
import uuid
from typing import Dict, List, Any
from urllib.parse import urlencode

import httpx

from .base import POSAdapter, ProviderCredential, DISCOUNT_AMOUNT_CENTS, DISCOUNT_CURRENCY
from .exceptions import ProviderAuthError


class SquareAdapter(POSAdapter):
    """Square POS adapter: OAuth and catalog discounts"""

    PROVIDER_NAME = "square"
    DISPLAY_NAME = "Square"
    BASE_URL = "https://connect.squareup.com/v2"
    OAUTH_URL = "https://connect.squareup.com/oauth2"

    # Sandbox URLs for development
    SANDBOX_BASE_URL = "https://connect.squareupsandbox.com/v2"
    SANDBOX_OAUTH_URL = "https://connect.squareupsandbox.com/oauth2"

    def __init__(self, *args, api_version: str = "2023-10-18", **kwargs):
        super().__init__(*args, **kwargs)
        self.api_version = api_version

    def _get_base_url(self) -> str:
        """Get base URL based on environment"""
        return self.BASE_URL if self.is_production else self.SANDBOX_BASE_URL

    def _get_oauth_url(self) -> str:
        """Get OAuth URL based on environment"""
        return self.OAUTH_URL if self.is_production else self.SANDBOX_OAUTH_URL

    @classmethod
    def get_required_scopes(cls) -> List[str]:
        return [
            "MERCHANT_PROFILE_READ",
            "ITEMS_READ",
            "ITEMS_WRITE",
            "ORDERS_WRITE",
            "PAYMENTS_WRITE"
        ]

    def get_authorization_url(self, redirect_uri: str, state: str) -> str:
        """Generate Square OAuth authorization URL"""
        params = {
            "client_id": self.client_id,
            "scope": " ".join(self.get_required_scopes()),
            "session": "false",
            "state": state,
            "redirect_uri": redirect_uri
        }
        return f"{self._get_oauth_url()}/authorize?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> ProviderCredential:
        """Exchange authorization code for tokens"""
        async with self._client() as client:
            data = await self._request_token(
                client,
                f"{self._get_oauth_url()}/token",
                json={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "grant_type": "authorization_code"
                },
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json"
                }
            )

        if not data.get("merchant_id"):
            raise ProviderAuthError(self.PROVIDER_NAME, "token response has no merchant_id")

        return ProviderCredential(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            provider_merchant_id=data["merchant_id"]
        )

    def build_discount_payload(self, promo_code) -> Dict[str, Any]:
        # Square requires a unique key per request; the nonce means retries are new objects
        return {
            "idempotency_key": f"promo-{promo_code.id}-{uuid.uuid4().hex}",
            "object": {
                "type": "DISCOUNT",
                "id": f"#{promo_code.code}",  # Temporary client ID, Square assigns the real one
                "discount_data": {
                    "name": promo_code.code,
                    "discount_type": "FIXED_AMOUNT",
                    "amount_money": {
                        "amount": DISCOUNT_AMOUNT_CENTS,
                        "currency": DISCOUNT_CURRENCY
                    }
                }
            }
        }

    async def _send_discount(
        self,
        client: httpx.AsyncClient,
        credential: ProviderCredential,
        promo_code
    ) -> httpx.Response:
        headers = self._get_headers(credential)
        headers["Square-Version"] = self.api_version
        return await client.post(
            f"{self._get_base_url()}/catalog/objects",
            headers=headers,
            json=self.build_discount_payload(promo_code)
        )
