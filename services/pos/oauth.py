"""OAuth state management utilities"""
import secrets
from typing import Dict, Optional

from services.cache import SimpleCache

_state_cache = SimpleCache()

# State token expiry (5 minutes)
STATE_TTL_SECONDS = 300


class OAuthStateManager:
    """Manage OAuth state tokens for CSRF protection"""

    @staticmethod
    def generate_state(merchant_id: str, provider: str, user_id: str) -> str:
        """
        Generate and store OAuth state token

        Args:
            merchant_id: Merchant connecting the POS system
            provider: POS provider name (square, clover, lightspeed)
            user_id: User initiating the OAuth flow

        Returns:
            State token string
        """
        state = secrets.token_urlsafe(32)
        _state_cache.set(
            f"oauth_state:{state}",
            {
                "merchant_id": merchant_id,
                "provider": provider,
                "user_id": user_id
            },
            ttl_seconds=STATE_TTL_SECONDS
        )
        return state

    @staticmethod
    def validate_state(state: str) -> Optional[Dict]:
        """
        Validate and consume state token

        Returns:
            Dict with merchant_id, provider, user_id if valid,
            None if unknown, expired or already used
        """
        return _state_cache.pop(f"oauth_state:{state}")
