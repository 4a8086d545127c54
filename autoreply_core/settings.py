from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from .store import CounterStore


@dataclass(frozen=True)
class ReplyChannel:
    id: int
    chance: int = 0


@dataclass(frozen=True)
class ServerSettings:
    server_id: int
    reply_channels: List[ReplyChannel] = field(default_factory=list)

    def reply_channel(self, channel_id: Optional[int]) -> Optional[ReplyChannel]:
        if channel_id is None:
            return None
        for channel in self.reply_channels:
            if channel.id == int(channel_id):
                return channel
        return None


class SettingsProvider(Protocol):
    async def get_settings(self, server_id: int) -> ServerSettings:
        ...


class StoreSettingsProvider:
    """Reads per-server reply policy out of the counter store."""

    def __init__(self, store: CounterStore):
        self.store = store

    async def get_settings(self, server_id: int) -> ServerSettings:
        rows = await self.store.reply_channels(server_id)
        return ServerSettings(
            server_id=int(server_id),
            reply_channels=[ReplyChannel(id=int(channel_id), chance=chance) for channel_id, chance in rows],
        )
