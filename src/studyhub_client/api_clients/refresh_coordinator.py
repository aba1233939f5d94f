"""Single-flight access token refresh.

All requests that hit a 401 while a refresh is running share that one
refresh and then retry their own request. Only one refresh call is ever in
flight per client.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from .credential_store import CredentialStore
from .models import unwrap_envelope

logger = logging.getLogger(__name__)


class RefreshState(Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


def extract_access_token(data: Any) -> Optional[str]:
    """Pull ``access_token`` out of a refresh/login body, enveloped or not."""
    payload = unwrap_envelope(data)
    if isinstance(payload, dict):
        token = payload.get("access_token")
        if isinstance(token, str) and token:
            return token
    return None


class AuthRefreshCoordinator:
    """Runs token refreshes and shares the outcome between concurrent callers.

    Args:
        refresh_call: Coroutine function performing the refresh request and
            returning the new access token, or None on failure
        credentials: Store that receives the refreshed token
    """

    def __init__(
        self,
        refresh_call: Callable[[], Awaitable[Optional[str]]],
        credentials: CredentialStore,
    ):
        self._refresh_call = refresh_call
        self.credentials = credentials
        self._inflight: Optional["asyncio.Future[bool]"] = None
        self.refresh_count = 0

    @property
    def state(self) -> RefreshState:
        if self._inflight is not None:
            return RefreshState.REFRESHING
        return RefreshState.IDLE

    async def refresh(self) -> bool:
        """Refresh the access token, joining a refresh already in flight.

        Returns:
            True if a new token was stored, False otherwise
        """
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._run())
        else:
            logger.debug("Token refresh already in flight, awaiting shared outcome")

        # Shielded so one waiter being cancelled does not abort the shared refresh
        return await asyncio.shield(self._inflight)

    async def _run(self) -> bool:
        self.refresh_count += 1
        logger.debug("Refreshing access token")
        try:
            token = await self._refresh_call()
            if not token:
                logger.info("Access token refresh failed")
                return False

            self.credentials.set(token)
            logger.debug(f"Access token refreshed: {token[:8]}...")
            return True
        except Exception as e:
            logger.warning(f"Unexpected error during token refresh: {e}")
            return False
        finally:
            self._inflight = None
