"""User preferences kept in the key-value store.

Two slots: the optional Untappd API credential pair and the "enabled" flag the
browser extension checks before asking for ratings. The resolver reads the
credential slot on every lookup; the API client clears it when Untappd rejects
the pair.
"""

import logging

from pydantic import ValidationError

from beer_ratings.orchestrator.schemas import CredentialPair, RatingSource
from beer_ratings.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

CREDENTIALS_KEY = "untappdApiKey"
ENABLED_KEY = "extensionEnabled"


class PreferenceStore:
    def __init__(self, store: KeyValueStore):
        self._store = store

    async def get_credentials(self) -> CredentialPair | None:
        """Return the stored key pair, or None when absent or unreadable."""
        try:
            raw = await self._store.get(CREDENTIALS_KEY)
            if not raw:
                return None
            return CredentialPair.model_validate(raw)
        except ValidationError as e:
            logger.warning("Stored API credentials are malformed — ignoring: %s", str(e)[:200])
            return None
        except Exception as e:
            logger.error("Error reading API credentials: %s", str(e)[:200])
            return None

    async def save_credentials(self, credentials: CredentialPair):
        try:
            await self._store.set(CREDENTIALS_KEY, credentials.to_wire())
            logger.info("API credentials saved | client_id=%s...", credentials.client_id[:6])
        except Exception as e:
            logger.error("Error saving API credentials: %s", str(e)[:200])
            raise

    async def clear_credentials(self):
        try:
            await self._store.remove(CREDENTIALS_KEY)
            logger.info("API credentials cleared")
        except Exception as e:
            logger.error("Error clearing API credentials: %s", str(e)[:200])

    async def data_source(self) -> RatingSource:
        """Which strategy is primary right now."""
        return "api" if await self.get_credentials() else "scrape"

    async def is_enabled(self) -> bool:
        """Defaults to True until the user turns rating lookups off."""
        try:
            value = await self._store.get(ENABLED_KEY)
        except Exception as e:
            logger.error("Error reading enabled flag: %s", str(e)[:200])
            return True
        return value is not False

    async def set_enabled(self, enabled: bool):
        try:
            await self._store.set(ENABLED_KEY, enabled)
        except Exception as e:
            logger.error("Error saving enabled flag: %s", str(e)[:200])
            raise
