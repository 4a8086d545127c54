from typing import Protocol

from .events import MessageEvent


class Transport(Protocol):
    """
    What the pipeline needs from the chat connection. Implementations raise
    TransportError when a network operation fails.
    """

    async def fetch_content(self, url: str) -> bytes:
        ...

    async def send_reaction(self, event: MessageEvent, emoji: str) -> None:
        ...

    async def send_message(self, event: MessageEvent, text: str) -> None:
        ...

    async def delete_message(self, event: MessageEvent) -> None:
        ...

    async def shutdown(self) -> None:
        ...
