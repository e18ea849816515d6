"""Base class for all POS provider adapters"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Any

import httpx

from .exceptions import ProviderAuthError

logger = logging.getLogger(__name__)

# Every synced promo code becomes a fixed $5.00 discount, whatever the reward is worth
DISCOUNT_AMOUNT_CENTS = 500
DISCOUNT_CURRENCY = "USD"


@dataclass
class ProviderCredential:
    """Token triple returned by a provider's OAuth token endpoint"""
    access_token: str
    provider_merchant_id: str
    refresh_token: Optional[str] = None
    provider_merchant_name: Optional[str] = None

    @classmethod
    def from_merchant(cls, merchant) -> "ProviderCredential":
        """Rebuild the credential stored on a merchant record"""
        return cls(
            access_token=merchant.pos_access_token,
            provider_merchant_id=merchant.pos_merchant_id,
            refresh_token=merchant.pos_refresh_token
        )


class POSAdapter(ABC):
    """Abstract base class for POS provider adapters"""

    PROVIDER_NAME: str = ""
    DISPLAY_NAME: str = ""

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        environment: str = "production",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        # Missing app credentials are sent as empty strings; the provider rejects them
        self.client_id = client_id or ""
        self.client_secret = client_secret or ""
        self.environment = environment
        self.timeout = timeout
        self.transport = transport

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, timeout=self.timeout)

    def _get_headers(self, credential: ProviderCredential) -> Dict[str, str]:
        """Get default headers for API requests"""
        return {
            "Authorization": f"Bearer {credential.access_token}",
            "Content-Type": "application/json"
        }

    async def _request_token(
        self,
        client: httpx.AsyncClient,
        url: str,
        **kwargs
    ) -> Dict[str, Any]:
        """POST to a token endpoint and return the decoded body, or raise ProviderAuthError"""
        try:
            response = await client.post(url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{self.DISPLAY_NAME} token exchange request failed: {e}")
            raise ProviderAuthError(self.PROVIDER_NAME, str(e)) from e

        if not response.is_success:
            logger.error(
                f"{self.DISPLAY_NAME} token exchange failed ({response.status_code}): {response.text}"
            )
            raise ProviderAuthError(self.PROVIDER_NAME, response.text)

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"{self.DISPLAY_NAME} token response is not JSON: {response.text}")
            raise ProviderAuthError(self.PROVIDER_NAME, response.text) from e

        if not isinstance(data, dict) or not data.get("access_token"):
            logger.error(f"{self.DISPLAY_NAME} token response has no access token")
            raise ProviderAuthError(self.PROVIDER_NAME, "missing access_token")

        return data

    @abstractmethod
    def get_authorization_url(self, redirect_uri: str, state: str) -> str:
        """Generate OAuth authorization URL for the merchant to approve access"""
        pass

    @abstractmethod
    async def exchange_authorization_code(self, code: str) -> ProviderCredential:
        """
        Exchange an authorization code for a provider credential

        Raises:
            ProviderAuthError: token endpoint unreachable, non-success or
                missing the provider merchant identifier
        """
        pass

    @abstractmethod
    def build_discount_payload(self, promo_code) -> Dict[str, Any]:
        """Request body creating a discount named after the promo code"""
        pass

    @abstractmethod
    async def _send_discount(
        self,
        client: httpx.AsyncClient,
        credential: ProviderCredential,
        promo_code
    ) -> httpx.Response:
        pass

    async def create_discount(self, credential: ProviderCredential, promo_code) -> bool:
        """
        Create one discount in the provider's catalog for a promo code.

        Returns True only on an HTTP success status. Network errors, error
        statuses and bad input are logged and reported as False.
        """
        try:
            async with self._client() as client:
                response = await self._send_discount(client, credential, promo_code)
        except Exception as e:
            logger.error(f"{self.DISPLAY_NAME} sync error for promo code {promo_code.code}: {e}")
            return False

        if not response.is_success:
            logger.error(
                f"{self.DISPLAY_NAME} rejected promo code {promo_code.code} "
                f"({response.status_code}): {response.text}"
            )
            return False

        return True

    @classmethod
    def get_required_scopes(cls) -> List[str]:
        """Get required OAuth scopes for this provider"""
        return []
