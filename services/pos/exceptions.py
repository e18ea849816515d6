"""
Exceptions for the POS promo-code sync subsystem.

Each error carries the HTTP status code the API answers with, so routers can
raise them straight through to the handler registered in main.py.
"""


class POSIntegrationError(Exception):
    """Base exception for POS connection and sync errors."""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ProviderAuthError(POSIntegrationError):
    """Authorization code could not be exchanged for a token."""

    status_code = 400

    def __init__(self, provider: str, detail: str = None):
        self.provider = provider
        self.detail = detail
        super().__init__(f"Failed to connect to {provider.capitalize()}")


class UnsupportedProvider(POSIntegrationError):
    """No adapter is registered for the provider name."""

    status_code = 400

    def __init__(self, provider: str = None):
        self.provider = provider
        super().__init__("Unsupported POS system")


class ProviderNotConnected(POSIntegrationError):
    """Merchant has no stored POS credential."""

    status_code = 400

    def __init__(self):
        super().__init__("POS system not connected")


class MerchantNotFound(POSIntegrationError):
    status_code = 404

    def __init__(self, merchant_id: str = None):
        self.merchant_id = merchant_id
        super().__init__("Merchant not found")


class PromoCodeNotFound(POSIntegrationError):
    status_code = 404

    def __init__(self, promo_code_id: str = None):
        self.promo_code_id = promo_code_id
        super().__init__("Promo code not found")


class PersistenceError(POSIntegrationError):
    """Writing the connection to the data store failed."""

    status_code = 500

    def __init__(self, message: str = "Failed to save connection"):
        super().__init__(message)
