"""Clover POS adapter"""
import logging
from typing import Dict, Any, Optional
from urllib.parse import urlencode

import httpx

from .base import POSAdapter, ProviderCredential, DISCOUNT_AMOUNT_CENTS
from .exceptions import ProviderAuthError

logger = logging.getLogger(__name__)


class CloverAdapter(POSAdapter):
    """Clover POS adapter: OAuth and merchant discounts"""

    PROVIDER_NAME = "clover"
    DISPLAY_NAME = "Clover"
    BASE_URL = "https://api.clover.com/v3"
    OAUTH_URL = "https://www.clover.com/oauth"

    # Sandbox URLs
    SANDBOX_BASE_URL = "https://apisandbox.dev.clover.com/v3"
    SANDBOX_OAUTH_URL = "https://sandbox.dev.clover.com/oauth"

    def _get_base_url(self) -> str:
        return self.BASE_URL if self.is_production else self.SANDBOX_BASE_URL

    def _get_oauth_url(self) -> str:
        return self.OAUTH_URL if self.is_production else self.SANDBOX_OAUTH_URL

    def get_authorization_url(self, redirect_uri: str, state: str) -> str:
        """
        Generate Clover OAuth authorization URL.

        Clover takes no scope parameter; permissions are set on the app in the
        Clover developer dashboard.
        """
        params = {
            "client_id": self.client_id,
            "state": state,
            "redirect_uri": redirect_uri
        }
        return f"{self._get_oauth_url()}/authorize?{urlencode(params)}"

    async def _get_merchant_name(
        self,
        client: httpx.AsyncClient,
        access_token: str,
        merchant_id: str
    ) -> Optional[str]:
        """Best-effort lookup of the merchant's display name"""
        try:
            response = await client.get(
                f"{self._get_base_url()}/merchants/{merchant_id}",
                headers={"Authorization": f"Bearer {access_token}"}
            )
            response.raise_for_status()
            return response.json().get("name")
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.warning(f"Clover merchant lookup failed for {merchant_id}: {e}")
            return None

    async def exchange_authorization_code(self, code: str) -> ProviderCredential:
        """Exchange authorization code for tokens"""
        async with self._client() as client:
            data = await self._request_token(
                client,
                f"{self._get_oauth_url()}/token",
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "grant_type": "authorization_code"
                }
            )

            merchant_id = data.get("merchant_id")
            if not merchant_id:
                raise ProviderAuthError(self.PROVIDER_NAME, "token response has no merchant_id")

            merchant_name = await self._get_merchant_name(client, data["access_token"], merchant_id)

        return ProviderCredential(
            access_token=data["access_token"],
            refresh_token=None,  # Clover doesn't provide refresh tokens by default
            provider_merchant_id=merchant_id,
            provider_merchant_name=merchant_name
        )

    def build_discount_payload(self, promo_code) -> Dict[str, Any]:
        return {
            "name": promo_code.code,
            "amount": DISCOUNT_AMOUNT_CENTS,
            "percentage": None
        }

    async def _send_discount(
        self,
        client: httpx.AsyncClient,
        credential: ProviderCredential,
        promo_code
    ) -> httpx.Response:
        # TODO: look up existing discounts by name before creating; retries duplicate them today
        return await client.post(
            f"{self._get_base_url()}/merchants/{credential.provider_merchant_id}/discounts",
            headers=self._get_headers(credential),
            json=self.build_discount_payload(promo_code)
        )
