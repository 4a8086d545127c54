import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .classifier import MessageOrigin
from .errors import StorageError
from .events import MessageEvent
from .settings import ReplyChannel
from .store import CounterStore


@dataclass(frozen=True)
class Decision:
    trigger: bool
    chance: int
    origin: MessageOrigin
    cooldown_ms: int = 0
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trigger": self.trigger,
            "chance": self.chance,
            "origin": self.origin.name,
            "cooldown_ms": self.cooldown_ms,
            "reason": self.reason,
        }


class EngagementEngine:
    """
    Accrues engagement pressure and decides whether a message gets an autonomous
    reply. Every message that reaches evaluate() bumps the channel counter exactly
    once, whether or not a reply follows.
    """

    def __init__(self, store: CounterStore, step: int = 1, cooldown_blocks_reply: bool = True):
        self.store = store
        self.step = step
        self.cooldown_blocks_reply = cooldown_blocks_reply
        self.logger = logging.getLogger("autoreply.engine")

    async def evaluate(
        self,
        event: MessageEvent,
        origin: MessageOrigin,
        reply_channel: Optional[ReplyChannel],
        cooldown_ms: int = 0,
    ) -> Decision:
        chance = await self._accrue(event.channel_id)

        if not origin.reply_eligible:
            return Decision(False, chance, origin, cooldown_ms, reason=f"origin:{origin.name.lower()}")
        if reply_channel is None:
            return Decision(False, chance, origin, cooldown_ms, reason="no_reply_policy")
        if cooldown_ms > 0 and self.cooldown_blocks_reply:
            return Decision(False, chance, origin, cooldown_ms, reason="cooldown")
        return Decision(True, chance, origin, cooldown_ms, reason="reply_channel")

    async def _accrue(self, channel_id: Optional[int]) -> int:
        if channel_id is None:
            return 0
        try:
            current = await self.store.get(channel_id) or 0
        except StorageError as exc:
            self.logger.warning("Could not read chance for channel %s: %s", channel_id, exc)
            current = 0
        try:
            return await self.store.increment(channel_id, self.step)
        except StorageError as exc:
            self.logger.error("Error updating chance for channel %s: %s", channel_id, exc)
            return current
