import logging
import os
from typing import Optional

import aiohttp
import discord

from autoreply_core import (
    Attachment,
    CommandRegistry,
    CounterStore,
    Decision,
    MessageEvent,
    MessagePipeline,
    Poll,
    RuntimeConfig,
    TransportError,
    load_commands,
)
from autoreply_core.audit import build_logger


def _poll_from_message(message: discord.Message) -> Optional[Poll]:
    poll = getattr(message, "poll", None)
    if poll is None:
        return None
    question = getattr(poll, "question", "")
    # Older payloads expose the question as a media object with a .text attribute.
    question = getattr(question, "text", question) or ""
    answers = tuple(str(getattr(answer, "text", answer) or "") for answer in getattr(poll, "answers", []) or [])
    return Poll(question=str(question), answers=answers)


def message_to_event(message: discord.Message) -> MessageEvent:
    author = message.author
    flags = getattr(author, "public_flags", None)
    guild = message.guild
    channel = message.channel
    return MessageEvent(
        message_id=message.id,
        author_id=author.id,
        author_tag=getattr(author, "name", None) or "Unknown user",
        content=message.content or "",
        author_bot=bool(getattr(author, "bot", False)),
        author_verified_bot=bool(getattr(flags, "verified_bot", False)),
        author_system=bool(getattr(author, "system", False)),
        webhook_id=message.webhook_id,
        guild_id=guild.id if guild else None,
        guild_name=guild.name if guild else "Direct Message",
        channel_id=channel.id if channel is not None else None,
        channel_name=getattr(channel, "name", None) or "Direct Message",
        embed_count=len(message.embeds or []),
        poll=_poll_from_message(message),
        attachments=tuple(Attachment(url=a.url, filename=a.filename) for a in message.attachments),
        source=message,
    )


class DiscordTransport:
    """Routes pipeline side effects back through discord.py and fetches attachment bytes."""

    def __init__(self, client: discord.Client, fetch_timeout: float = 20.0):
        self.client = client
        self.fetch_timeout = fetch_timeout
        self._session: Optional[aiohttp.ClientSession] = None

    def _http(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.fetch_timeout))
        return self._session

    async def fetch_content(self, url: str) -> bytes:
        try:
            async with self._http().get(url) as resp:
                if resp.status != 200:
                    raise TransportError(f"Failed to fetch {url}: {resp.status} {resp.reason}")
                return await resp.read()
        except aiohttp.ClientError as exc:
            raise TransportError(f"Failed to fetch {url}: {exc}") from exc

    async def send_reaction(self, event: MessageEvent, emoji: str) -> None:
        try:
            await event.source.add_reaction(emoji)
        except discord.HTTPException as exc:
            raise TransportError(f"reaction failed: {exc}") from exc

    async def send_message(self, event: MessageEvent, text: str) -> None:
        try:
            await event.source.channel.send(text)
        except discord.HTTPException as exc:
            raise TransportError(f"send failed: {exc}") from exc

    async def delete_message(self, event: MessageEvent) -> None:
        try:
            await event.source.delete()
        except discord.HTTPException as exc:
            raise TransportError(f"delete failed: {exc}") from exc

    async def shutdown(self) -> None:
        await self.close()
        await self.client.close()

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()


class DiscordAdapter(discord.Client):
    def __init__(self, config: RuntimeConfig, store: CounterStore, registry: CommandRegistry):
        intents = discord.Intents.none()
        intents.guilds = True
        intents.messages = True
        intents.message_content = True
        super().__init__(
            intents=intents,
            max_messages=200,
            member_cache_flags=discord.MemberCacheFlags.none(),
            chunk_guilds_at_startup=False,
        )
        self.config = config
        self.store = store
        self.logger = logging.getLogger("autoreply.discord")
        self.transport = DiscordTransport(self, fetch_timeout=config.fetch_timeout_seconds)
        self.pipeline = MessagePipeline.build(
            config,
            store,
            self.transport,
            registry,
            reply_hook=self._emit_reply_trigger,
        )

    async def close(self) -> None:
        try:
            await super().close()
        finally:
            await self.transport.close()

    async def on_ready(self) -> None:
        self.logger.info(
            "Online as %s | guilds=%d owner=%s prefix=%s",
            self.user,
            len(self.guilds),
            self.config.owner_id or "-",
            self.config.command_prefix,
        )

    async def on_message(self, message: discord.Message) -> None:
        try:
            event = message_to_event(message)
        except Exception as exc:
            await self.pipeline.alerts.report("messageCreate", exc)
            return
        await self.pipeline.handle(event)

    async def _emit_reply_trigger(self, event: MessageEvent, decision: Decision) -> None:
        # Reply generation listens for on_reply_trigger(message, decision).
        self.logger.debug("Reply trigger for message %s at %d%%", event.message_id, decision.chance)
        self.dispatch("reply_trigger", event.source, decision)


async def main() -> None:
    token = os.getenv("DISCORD_TOKEN")
    if not token:
        raise RuntimeError("DISCORD_TOKEN environment variable required.")

    config = RuntimeConfig.from_env()
    logger = build_logger(config)
    if not config.owner_id:
        logger.warning("No owner id configured; owner commands are disabled.")

    registry = load_commands()
    logger.info("Loaded %d owner commands: %s", len(registry), ", ".join(registry.names()))

    store = CounterStore.from_config(config)
    await store.open()
    adapter = DiscordAdapter(config=config, store=store, registry=registry)
    try:
        await adapter.start(token)
    finally:
        if not adapter.is_closed():
            await adapter.close()
        await store.close()
