import logging
import time
from typing import Optional

from .errors import StorageError
from .store import CounterStore


def now_ms() -> int:
    return int(time.time() * 1000)


def remaining_ms(expires_at: Optional[int], now: int) -> int:
    if expires_at is None:
        return 0
    return max(0, int(expires_at) - int(now))


class CooldownGate:
    def __init__(self, store: CounterStore):
        self.store = store
        self.logger = logging.getLogger("autoreply.cooldown")

    async def remaining(self, server_id: int, channel_id: int, now: Optional[int] = None) -> int:
        """
        Milliseconds left on the channel's pause window. A missing record, or a store
        that cannot be read, both count as no cooldown.
        """
        if now is None:
            now = now_ms()
        try:
            expires_at = await self.store.get_cooldown(server_id, channel_id)
        except StorageError as exc:
            self.logger.warning("Cooldown lookup failed for %s/%s: %s", server_id, channel_id, exc)
            return 0
        return remaining_ms(expires_at, now)
