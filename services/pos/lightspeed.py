"""Lightspeed Retail POS adapter"""
import logging
from typing import Dict, List, Any
from urllib.parse import urlencode

import httpx

from .base import POSAdapter, ProviderCredential, DISCOUNT_AMOUNT_CENTS
from .exceptions import ProviderAuthError

logger = logging.getLogger(__name__)


class LightspeedAdapter(POSAdapter):
    """Lightspeed POS adapter: OAuth, account lookup and discounts"""

    PROVIDER_NAME = "lightspeed"
    DISPLAY_NAME = "Lightspeed"
    BASE_URL = "https://api.lightspeedapp.com/API"
    OAUTH_URL = "https://cloud.lightspeedapp.com/oauth"

    @classmethod
    def get_required_scopes(cls) -> List[str]:
        return ["employee:all"]

    def get_authorization_url(self, redirect_uri: str, state: str) -> str:
        """Generate Lightspeed OAuth authorization URL"""
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "scope": " ".join(self.get_required_scopes()),
            "redirect_uri": redirect_uri,
            "state": state
        }
        return f"{self.OAUTH_URL}/authorize.php?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> ProviderCredential:
        """
        Exchange authorization code for tokens.

        Lightspeed's token response carries no account ID, so a second call
        to the account endpoint resolves it.
        """
        async with self._client() as client:
            data = await self._request_token(
                client,
                f"{self.OAUTH_URL}/access_token.php",
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "grant_type": "authorization_code"
                }
            )

            try:
                response = await client.get(
                    f"{self.BASE_URL}/Account.json",
                    headers={"Authorization": f"Bearer {data['access_token']}"}
                )
                response.raise_for_status()
                account = response.json()["Account"]
                account_id = str(account["accountID"])
            except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
                logger.error(f"Lightspeed account lookup failed: {e}")
                raise ProviderAuthError(self.PROVIDER_NAME, f"account lookup failed: {e}") from e

        return ProviderCredential(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            provider_merchant_id=account_id,
            provider_merchant_name=account.get("name")
        )

    def build_discount_payload(self, promo_code) -> Dict[str, Any]:
        return {
            "Discount": {
                "name": promo_code.code,
                "type": "amount",
                "amount": f"{DISCOUNT_AMOUNT_CENTS / 100:.2f}",
                "couponCode": promo_code.code
            }
        }

    async def _send_discount(
        self,
        client: httpx.AsyncClient,
        credential: ProviderCredential,
        promo_code
    ) -> httpx.Response:
        return await client.post(
            f"{self.BASE_URL}/Account/{credential.provider_merchant_id}/Discount.json",
            headers=self._get_headers(credential),
            json=self.build_discount_payload(promo_code)
        )
