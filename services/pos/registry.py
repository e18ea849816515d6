"""Adapter lookup keyed on the merchant's stored provider name"""
from typing import Optional

import httpx

from settings import Settings, get_settings
from .base import POSAdapter
from .square import SquareAdapter
from .clover import CloverAdapter
from .lightspeed import LightspeedAdapter
from .exceptions import UnsupportedProvider

ADAPTERS = {
    "square": SquareAdapter,
    "clover": CloverAdapter,
    "lightspeed": LightspeedAdapter
}


def get_adapter_class(provider: Optional[str]) -> type:
    """Get adapter class by provider name"""
    if provider not in ADAPTERS:
        raise UnsupportedProvider(provider)
    return ADAPTERS[provider]


def get_adapter(
    provider: Optional[str],
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> POSAdapter:
    """Create an adapter configured with the provider's app credentials"""
    cls = get_adapter_class(provider)
    settings = settings or get_settings()
    common = {"timeout": settings.POS_HTTP_TIMEOUT, "transport": transport}

    if cls is SquareAdapter:
        return SquareAdapter(
            client_id=settings.SQUARE_APPLICATION_ID,
            client_secret=settings.SQUARE_APPLICATION_SECRET,
            environment=settings.SQUARE_ENVIRONMENT,
            api_version=settings.SQUARE_API_VERSION,
            **common
        )
    if cls is CloverAdapter:
        return CloverAdapter(
            client_id=settings.CLOVER_APP_ID,
            client_secret=settings.CLOVER_APP_SECRET,
            environment=settings.CLOVER_ENVIRONMENT,
            **common
        )
    return LightspeedAdapter(
        client_id=settings.LIGHTSPEED_CLIENT_ID,
        client_secret=settings.LIGHTSPEED_CLIENT_SECRET,
        **common
    )
