from enum import Enum

from .events import MessageEvent


class MessageOrigin(Enum):
    SYSTEM = ("SYSTEM", False)
    APPLICATION = ("APP", False)
    VERIFIED_APPLICATION = ("✓ APP", True)
    WEBHOOK = ("WEBHOOK", False)
    DIRECT = ("DM", True)
    GUILD = ("GUILD", True)

    def __init__(self, label: str, reply_eligible: bool):
        self.label = label
        self.reply_eligible = reply_eligible


def classify(event: MessageEvent) -> MessageOrigin:
    """
    Map a message onto exactly one origin. Checks run in precedence order and the
    first match wins, so a system account that is also flagged as a bot is SYSTEM.
    """
    if event.author_system:
        return MessageOrigin.SYSTEM
    if event.author_bot and not event.author_verified_bot:
        return MessageOrigin.APPLICATION
    if event.author_verified_bot:
        return MessageOrigin.VERIFIED_APPLICATION
    if event.webhook_id is not None:
        return MessageOrigin.WEBHOOK
    if event.guild_id is None:
        return MessageOrigin.DIRECT
    return MessageOrigin.GUILD
