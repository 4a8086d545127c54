import importlib
import logging
import pkgutil
import sys
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Awaitable, Callable, Dict, Iterable, Mapping, Optional, Tuple

from .audit import log_command
from .config import RuntimeConfig
from .errors import DispatchError
from .events import MessageEvent
from .store import CounterStore
from .transport import Transport

NOT_FOUND_REACTION = "❔"


@dataclass(frozen=True)
class CommandContext:
    event: MessageEvent
    args: Tuple[str, ...]
    transport: Transport
    store: CounterStore
    config: RuntimeConfig

    async def reply(self, text: str) -> None:
        await self.transport.send_message(self.event, text)


@dataclass(frozen=True)
class OwnerCommand:
    name: str
    execute: Callable[[CommandContext], Awaitable[None]]
    description: str = ""


@dataclass(frozen=True)
class CommandRegistry:
    """Name to handler mapping. Built once at startup and never mutated afterwards."""

    commands: Mapping[str, OwnerCommand] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def of(cls, commands: Iterable[OwnerCommand]) -> "CommandRegistry":
        table: Dict[str, OwnerCommand] = {}
        for command in commands:
            if command.name in table:
                raise ValueError(f"Duplicate owner command: {command.name}")
            table[command.name] = command
        return cls(commands=MappingProxyType(table))

    def get(self, name: str) -> Optional[OwnerCommand]:
        return self.commands.get(name)

    def names(self) -> list[str]:
        return sorted(self.commands)

    def __len__(self) -> int:
        return len(self.commands)


def load_commands(package: str = "autoreply_core.commands") -> CommandRegistry:
    """
    Import every module of `package` that defines NAME and an async execute(ctx).
    Modules without both are skipped.
    """
    pkg = importlib.import_module(package)
    found: list[OwnerCommand] = []
    for info in sorted(pkgutil.iter_modules(pkg.__path__), key=lambda item: item.name):
        module = importlib.import_module(f"{package}.{info.name}")
        name = getattr(module, "NAME", None)
        execute = getattr(module, "execute", None)
        if not name or not callable(execute):
            continue
        found.append(OwnerCommand(name=name, execute=execute, description=getattr(module, "DESCRIPTION", "")))
    return CommandRegistry.of(found)


def parse_command(content: str, prefix: str) -> Tuple[str, Tuple[str, ...]]:
    body = content[len(prefix):]
    tokens = body.split()
    if not tokens or body[:1].isspace():
        return "", tuple(tokens)
    return tokens[0], tuple(tokens[1:])


class OwnerCommandDispatcher:
    """
    Privileged short-circuit for the single configured owner. Runs on every message,
    so nothing raised in here may escape into the surrounding pipeline.
    """

    def __init__(
        self,
        config: RuntimeConfig,
        registry: CommandRegistry,
        transport: Transport,
        store: CounterStore,
        exit_func: Callable[[int], None] = sys.exit,
    ):
        self.config = config
        self.registry = registry
        self.transport = transport
        self.store = store
        self.exit_func = exit_func
        self.logger = logging.getLogger("autoreply.owner")

    async def dispatch(self, event: MessageEvent) -> bool:
        """Returns True when the event was consumed as an owner command."""
        if not self.config.is_owner(event.author_id):
            return False
        content = event.flat_content
        handled = False
        try:
            # The restart phrase may itself carry the prefix, so it is matched first.
            if content == self.config.restart_phrase:
                handled = True
                await self._restart(event)
            elif self.config.command_prefix and content.startswith(self.config.command_prefix):
                handled = True
                await self._run_command(event, content)
        except Exception as exc:
            self.logger.error("Error processing owner commands: %s", exc, exc_info=True)
        return handled

    async def _run_command(self, event: MessageEvent, content: str) -> None:
        name, args = parse_command(content, self.config.command_prefix)
        log_command(event)
        command = self.registry.get(name)
        if command is None:
            await self.transport.send_reaction(event, NOT_FOUND_REACTION)
            return
        ctx = CommandContext(
            event=event,
            args=args,
            transport=self.transport,
            store=self.store,
            config=self.config,
        )
        try:
            await command.execute(ctx)
        except Exception as exc:
            error = DispatchError(name, exc)
            self.logger.error("%s", error, exc_info=exc)

    async def _restart(self, event: MessageEvent) -> None:
        self.logger.warning("Restart requested by owner %s", event.author_tag)
        try:
            await self.transport.delete_message(event)
        except Exception as exc:
            self.logger.warning("Could not delete restart message: %s", exc)
        try:
            await self.transport.shutdown()
        except Exception as exc:
            self.logger.error("Transport shutdown failed during restart: %s", exc, exc_info=True)
        finally:
            self.exit_func(0)
