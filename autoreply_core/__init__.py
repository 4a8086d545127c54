"""
Autoreply core runtime package.

This package holds the engagement pipeline (owner commands, opt-out and cooldown
gates, chance accrual, reply decision and attachment archiving) together with its
sqlite-backed state. Discord integration lives in the adapter layer.
"""

from .config import RuntimeConfig
from .events import Attachment, MessageEvent, Poll
from .classifier import MessageOrigin, classify
from .store import CounterStore
from .settings import ReplyChannel, ServerSettings, StoreSettingsProvider
from .cooldown import CooldownGate
from .optout import OptOutGate
from .owner import CommandRegistry, OwnerCommandDispatcher, load_commands
from .engine import Decision, EngagementEngine
from .archiver import AttachmentArchiver
from .alerting import AlertReporter
from .pipeline import MessagePipeline
from .errors import DispatchError, PipelineError, StorageError, TransportError

__all__ = [
    "RuntimeConfig",
    "Attachment",
    "MessageEvent",
    "Poll",
    "MessageOrigin",
    "classify",
    "CounterStore",
    "ReplyChannel",
    "ServerSettings",
    "StoreSettingsProvider",
    "CooldownGate",
    "OptOutGate",
    "CommandRegistry",
    "OwnerCommandDispatcher",
    "load_commands",
    "Decision",
    "EngagementEngine",
    "AttachmentArchiver",
    "AlertReporter",
    "MessagePipeline",
    "DispatchError",
    "PipelineError",
    "StorageError",
    "TransportError",
]
