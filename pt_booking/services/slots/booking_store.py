# pt_booking/services/slots/booking_store.py
"""
Redis storage for per-slice booking metadata.

Key format: ymca_booking:{token}
Value: JSON object (trainer contacts, slice start) hidden from the link.
Every key expires after booking_ttl_seconds (24 hours by default).
"""

import json
from redis import Redis

from .config import SlicerConfig, get_slicer_config


class BookingRedisStore:
    """Expirable key-value wrapper for booking data."""

    KEY_PREFIX = "ymca_booking"

    def __init__(self, redis: Redis, config: SlicerConfig | None = None):
        self.redis = redis
        self.config = config or get_slicer_config()

    def _key(self, token: str) -> str:
        return f"{self.KEY_PREFIX}:{token}"

    # ── Write ────────────────────────────────────────────────────────────

    def set_with_expire(
        self,
        token: str,
        data: dict,
        ttl_seconds: int | None = None,
    ) -> None:
        """Store booking data under token with expiration."""
        ttl = ttl_seconds or self.config.booking_ttl_seconds
        self.redis.set(self._key(token), json.dumps(data), ex=ttl)

    def store_many(
        self,
        entries: dict[str, dict],
        ttl_seconds: int | None = None,
    ) -> None:
        """Batch store booking data for all slices of a search via pipeline."""
        if not entries:
            return

        ttl = ttl_seconds or self.config.booking_ttl_seconds
        pipe = self.redis.pipeline()
        for token, data in entries.items():
            pipe.set(self._key(token), json.dumps(data), ex=ttl)
        pipe.execute()

    # ── Read ─────────────────────────────────────────────────────────────

    def get(self, token: str) -> dict | None:
        """
        Get booking data.

        Returns:
            Stored dict, or None when missing or expired.
        """
        raw = self.redis.get(self._key(token))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode()
        return json.loads(raw)

    # ── Delete ───────────────────────────────────────────────────────────

    def delete(self, token: str) -> int:
        return self.redis.delete(self._key(token))
