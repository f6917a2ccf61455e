"""First-touch ad attribution.

UTM and click-id parameters seen on a landing are kept in durable storage for
a limited time. Values from the first landing win; later landings only fill in
keys that were not captured yet.
"""
from datetime import datetime, timedelta, timezone
from typing import Callable, Mapping
from services.storage import Storage
import json
import logging

logger = logging.getLogger(__name__)

UTM_STORAGE_KEY = "page_builder_utm_params"
UTM_EXPIRY_KEY = "page_builder_utm_expiry"
UTM_EXPIRY_DAYS = 30

UTM_KEYS = (
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "utm_id",
    "gclid",  # Google Click ID
    "fbclid",  # Facebook Click ID
    "ttclid",  # TikTok Click ID
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_utm_params(url_params: Mapping[str, str]) -> dict[str, str]:
    return {key: url_params[key] for key in UTM_KEYS if url_params.get(key)}


class AttributionStore:
    def __init__(
        self,
        storage: Storage,
        expiry_days: int = UTM_EXPIRY_DAYS,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.storage = storage
        self.expiry_days = expiry_days
        self.clock = clock

    def stored(self) -> dict[str, str]:
        """Stored parameters, or ``{}`` when nothing valid is stored."""
        expiry_str = self.storage.get(UTM_EXPIRY_KEY)
        try:
            if expiry_str and datetime.fromisoformat(expiry_str) < self.clock():
                logger.debug("stored UTM params expired at %s", expiry_str)
                self.clear()
                return {}

            raw = self.storage.get(UTM_STORAGE_KEY)
            if raw:
                params = json.loads(raw)
                if isinstance(params, dict):
                    return {k: v for k, v in params.items() if isinstance(v, str)}
        except (ValueError, TypeError) as e:
            logger.warning("Failed to read stored UTM params: %s", e)
            self.clear()

        return {}

    def store(self, params: Mapping[str, str]) -> None:
        if not params:
            return

        # Existing values take precedence (first touch)
        merged = {**params, **self.stored()}
        expiry = self.clock() + timedelta(days=self.expiry_days)

        self.storage.set(UTM_STORAGE_KEY, json.dumps(merged, separators=(",", ":")))
        self.storage.set(UTM_EXPIRY_KEY, expiry.isoformat())

    def clear(self) -> None:
        self.storage.delete(UTM_STORAGE_KEY)
        self.storage.delete(UTM_EXPIRY_KEY)

    def capture(self, url_params: Mapping[str, str]) -> dict[str, str]:
        """Store this landing's parameters and return the attribution in effect."""
        self.store(parse_utm_params(url_params))
        return self.stored()
