import re
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple


@dataclass(frozen=True)
class Attachment:
    url: str
    filename: str


@dataclass(frozen=True)
class Poll:
    question: str
    answers: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MessageEvent:
    """
    One inbound chat message, detached from the transport objects that delivered it.
    `source` keeps the transport's own handle so reactions and deletes can be routed
    back; it takes no part in equality or repr.
    """

    message_id: int
    author_id: int
    author_tag: str
    content: str = ""
    author_bot: bool = False
    author_verified_bot: bool = False
    author_system: bool = False
    webhook_id: Optional[int] = None
    guild_id: Optional[int] = None
    guild_name: str = "Direct Message"
    channel_id: Optional[int] = None
    channel_name: str = "Direct Message"
    embed_count: int = 0
    poll: Optional[Poll] = None
    attachments: Tuple[Attachment, ...] = ()
    source: Any = field(default=None, compare=False, repr=False)

    @property
    def in_guild(self) -> bool:
        return self.guild_id is not None and self.channel_id is not None

    @property
    def flat_content(self) -> str:
        return _collapse_newlines(self.content)


def _collapse_newlines(text: str) -> str:
    return re.sub(r"[\r\n]+", " ", text or "")


def describe_content(event: MessageEvent) -> str:
    """Single-line rendering of the message body with embed and poll markers."""
    text = event.flat_content
    if event.embed_count > 0:
        text += " EMBED "
    if event.poll is not None:
        question = _collapse_newlines(event.poll.question)
        answers = ", ".join(event.poll.answers)
        text += f" POLL  {question} - {answers} "
    return text
