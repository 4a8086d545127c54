from pathlib import Path

import pytest

from autoreply_core.config import RuntimeConfig
from autoreply_core.errors import TransportError
from autoreply_core.events import MessageEvent

OWNER_ID = 1000
GUILD_ID = 10
CHANNEL_ID = 20


class FakeTransport:
    """Records every call in order so tests can assert on side-effect sequencing."""

    def __init__(self, content: dict | None = None, fail_urls: tuple = ()):
        self.content = content or {}
        self.fail_urls = set(fail_urls)
        self.calls: list[tuple] = []
        self.fail_delete = False

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]

    async def fetch_content(self, url: str) -> bytes:
        self.calls.append(("fetch", url))
        if url in self.fail_urls:
            raise TransportError(f"Failed to fetch {url}: 404")
        return self.content.get(url, b"payload")

    async def send_reaction(self, event, emoji: str) -> None:
        self.calls.append(("react", emoji))

    async def send_message(self, event, text: str) -> None:
        self.calls.append(("send", text))

    async def delete_message(self, event) -> None:
        self.calls.append(("delete", event.message_id))
        if self.fail_delete:
            raise TransportError("missing permissions")

    async def shutdown(self) -> None:
        self.calls.append(("shutdown",))

    @property
    def sent(self) -> list[str]:
        return [call[1] for call in self.calls if call[0] == "send"]


@pytest.fixture
def config(tmp_path: Path) -> RuntimeConfig:
    return RuntimeConfig(
        owner_id=str(OWNER_ID),
        command_prefix="ar.",
        restart_phrase="ar.restart",
        data_dir=tmp_path,
        db_path=tmp_path / "autoreply.db",
        media_dir=tmp_path / "media",
        log_path=tmp_path / "autoreply.log",
    )


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def make_event():
    def _make(**overrides) -> MessageEvent:
        fields = {
            "message_id": 555,
            "author_id": 42,
            "author_tag": "alice",
            "content": "hello there",
            "guild_id": GUILD_ID,
            "guild_name": "Test Server",
            "channel_id": CHANNEL_ID,
            "channel_name": "general",
        }
        fields.update(overrides)
        return MessageEvent(**fields)

    return _make
