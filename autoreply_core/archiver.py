import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Callable, List, Tuple

from .errors import TransportError
from .events import Attachment, MessageEvent
from .transport import Transport

_UNSAFE = re.compile(r"[^a-zA-Z0-9.\-_]")


def sanitize(name: str) -> str:
    return _UNSAFE.sub("_", name)


def build_filename(author: str, filename: str, day: str) -> str:
    """`<author>-<YYYY-MM-DD>-<base><ext>`, unsafe characters replaced by underscores."""
    clean = sanitize(PurePosixPath(filename).name) or "attachment"
    suffix = PurePosixPath(clean).suffix
    base = clean[: -len(suffix)] if suffix else clean
    return f"{sanitize(author)}-{day}-{base}{suffix}"


def unique_path(directory: Path, filename: str) -> Path:
    candidate = directory / filename
    if not candidate.exists():
        return candidate
    suffix = candidate.suffix
    stem = candidate.name[: -len(suffix)] if suffix else candidate.name
    counter = 1
    while True:
        candidate = directory / f"{stem}-{counter}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1


@dataclass
class ArchiveReport:
    saved: List[Path] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


class AttachmentArchiver:
    """
    Best-effort copy of message attachments into the media directory. One failed
    attachment is logged and skipped; archive() itself never raises.
    """

    def __init__(
        self,
        transport: Transport,
        media_dir: Path,
        fetch_timeout: float = 20.0,
        today: Callable[[], str] = _today,
    ):
        self.transport = transport
        self.media_dir = Path(media_dir)
        self.fetch_timeout = fetch_timeout
        self.today = today
        self.logger = logging.getLogger("autoreply.archive")
        # Serializes name selection so two tasks never claim the same free path.
        self._name_lock = asyncio.Lock()

    async def archive(self, event: MessageEvent) -> ArchiveReport:
        report = ArchiveReport()
        if not event.attachments:
            return report
        try:
            await asyncio.to_thread(self.media_dir.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            self.logger.error("Error processing attachments: %s", exc)
            report.failed.extend((a.filename, str(exc)) for a in event.attachments)
            return report

        for attachment in event.attachments:
            try:
                path = await self._save(event, attachment)
            except asyncio.TimeoutError:
                self.logger.error("Timed out downloading attachment %s", attachment.filename)
                report.failed.append((attachment.filename, "timeout"))
            except (TransportError, OSError) as exc:
                self.logger.error("Error downloading attachment %s: %s", attachment.filename, exc)
                report.failed.append((attachment.filename, str(exc)))
            except Exception as exc:
                self.logger.error("Unexpected error archiving %s: %s", attachment.filename, exc, exc_info=True)
                report.failed.append((attachment.filename, str(exc)))
            else:
                self.logger.info("Downloaded attachment to %s", path)
                report.saved.append(path)
        return report

    async def _save(self, event: MessageEvent, attachment: Attachment) -> Path:
        data = await asyncio.wait_for(self.transport.fetch_content(attachment.url), timeout=self.fetch_timeout)
        filename = build_filename(event.author_tag, attachment.filename, self.today())
        async with self._name_lock:
            path = unique_path(self.media_dir, filename)
            await asyncio.to_thread(path.write_bytes, data)
        return path
