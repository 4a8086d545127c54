import asyncio
import logging
import math
from typing import Awaitable, Callable, Optional

from .alerting import AlertReporter
from .archiver import ArchiveReport, AttachmentArchiver
from .audit import log_message_event
from .classifier import MessageOrigin, classify
from .config import RuntimeConfig
from .cooldown import CooldownGate
from .engine import Decision, EngagementEngine
from .errors import PipelineError, StorageError
from .events import MessageEvent
from .optout import OptOutGate
from .owner import CommandRegistry, OwnerCommandDispatcher
from .settings import ReplyChannel, SettingsProvider, StoreSettingsProvider
from .store import CounterStore
from .transport import Transport

ReplyHook = Callable[[MessageEvent, Decision], Awaitable[None]]


async def _no_reply(event: MessageEvent, decision: Decision) -> None:
    return None


class MessagePipeline:
    """
    Per-message control flow: owner override, guild check, opt-out, cooldown,
    counter accrual and reply decision, with attachment archiving alongside.
    handle() is the error boundary; nothing it catches reaches the transport.
    """

    def __init__(
        self,
        config: RuntimeConfig,
        dispatcher: OwnerCommandDispatcher,
        settings: SettingsProvider,
        optout: OptOutGate,
        cooldown: CooldownGate,
        engine: EngagementEngine,
        archiver: AttachmentArchiver,
        alerts: AlertReporter,
        reply_hook: ReplyHook = _no_reply,
    ):
        self.config = config
        self.dispatcher = dispatcher
        self.settings = settings
        self.optout = optout
        self.cooldown = cooldown
        self.engine = engine
        self.archiver = archiver
        self.alerts = alerts
        self.reply_hook = reply_hook
        self.logger = logging.getLogger("autoreply.pipeline")

    @classmethod
    def build(
        cls,
        config: RuntimeConfig,
        store: CounterStore,
        transport: Transport,
        registry: CommandRegistry,
        reply_hook: ReplyHook = _no_reply,
        alerts: Optional[AlertReporter] = None,
        exit_func: Optional[Callable[[int], None]] = None,
    ) -> "MessagePipeline":
        dispatcher_kwargs = {"exit_func": exit_func} if exit_func is not None else {}
        return cls(
            config=config,
            dispatcher=OwnerCommandDispatcher(config, registry, transport, store, **dispatcher_kwargs),
            settings=StoreSettingsProvider(store),
            optout=OptOutGate(store),
            cooldown=CooldownGate(store),
            engine=EngagementEngine(
                store,
                step=config.chance_step,
                cooldown_blocks_reply=config.cooldown_blocks_reply,
            ),
            archiver=AttachmentArchiver(transport, config.media_dir, fetch_timeout=config.fetch_timeout_seconds),
            alerts=alerts or AlertReporter(config.alert_webhook_url, timeout=config.alert_timeout_seconds),
            reply_hook=reply_hook,
        )

    async def handle(self, event: MessageEvent) -> Optional[Decision]:
        try:
            return await self._process(event)
        except Exception as exc:
            self.logger.error("%s", PipelineError(event.message_id, exc))
            await self.alerts.report("messageCreate", exc)
            return None

    async def _process(self, event: MessageEvent) -> Optional[Decision]:
        origin = classify(event)

        if await self.dispatcher.dispatch(event):
            return None

        if not event.in_guild:
            if origin is MessageOrigin.DIRECT:
                log_message_event(origin, event)
            else:
                self.logger.debug("Message outside a guild channel from %s; skipping", event.author_tag)
            return None

        if await self.optout.is_suppressed(event.author_tag, event.author_id):
            self.logger.debug("User %s is opted out", event.author_tag)
            return None

        reply_channel = await self._reply_channel(event)

        cooldown_ms = await self.cooldown.remaining(event.guild_id, event.channel_id)
        if cooldown_ms > 0:
            self.logger.info(
                "Replies are paused in #%s for another %d minutes.",
                event.channel_name,
                math.ceil(cooldown_ms / 60000),
            )

        # Both branches finish before any failure propagates to the error boundary.
        decision, archived = await asyncio.gather(
            self._decide(event, origin, reply_channel, cooldown_ms),
            self._archive(event, origin),
            return_exceptions=True,
        )
        for outcome in (decision, archived):
            if isinstance(outcome, BaseException):
                raise outcome
        return decision

    async def _reply_channel(self, event: MessageEvent) -> Optional[ReplyChannel]:
        try:
            settings = await self.settings.get_settings(event.guild_id)
        except StorageError as exc:
            self.logger.warning("Could not load settings for server %s: %s", event.guild_id, exc)
            return None
        return settings.reply_channel(event.channel_id)

    async def _decide(
        self,
        event: MessageEvent,
        origin: MessageOrigin,
        reply_channel: Optional[ReplyChannel],
        cooldown_ms: int,
    ) -> Decision:
        decision = await self.engine.evaluate(event, origin, reply_channel, cooldown_ms)
        shown_chance = decision.chance if origin is MessageOrigin.GUILD and reply_channel else None
        log_message_event(origin, event, chance=shown_chance)
        if decision.trigger:
            await self.reply_hook(event, decision)
        return decision

    async def _archive(self, event: MessageEvent, origin: MessageOrigin) -> Optional[ArchiveReport]:
        if not self.config.archive_attachments or not origin.reply_eligible or not event.attachments:
            return None
        return await self.archiver.archive(event)
