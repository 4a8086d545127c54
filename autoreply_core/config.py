import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, TypeVar

T = TypeVar("T")


def _parse_bool(val: str | None, default: bool) -> bool:
    if val is None:
        return default
    normalized = val.strip().lower()
    if not normalized:
        return default
    return normalized in {"1", "true", "yes", "on"}


def _parse(val: str | None, caster: Callable[[str], T], default: T) -> T:
    if val is None or not val.strip():
        return default
    try:
        return caster(val.strip())
    except (TypeError, ValueError):
        return default


def _first_env(*keys: str) -> str | None:
    for key in keys:
        val = os.getenv(key)
        if val is not None and val.strip():
            return val.strip()
    return None


@dataclass(frozen=True)
class RuntimeConfig:
    owner_id: str | None = None
    command_prefix: str = "ar."
    restart_phrase: str = "ar.restart"
    data_dir: Path = Path("data")
    db_path: Path = Path("data/autoreply.db")
    media_dir: Path = Path("data/media")
    log_path: Path = Path("data/autoreply.log")
    log_level: str = "INFO"
    chance_step: int = 1
    # Cooldown is always reported; this decides whether it also withholds the reply trigger.
    cooldown_blocks_reply: bool = True
    archive_attachments: bool = True
    fetch_timeout_seconds: float = 20.0
    storage_timeout_seconds: float = 5.0
    alert_webhook_url: str | None = None
    alert_timeout_seconds: float = 10.0

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Build a config instance from the environment. The legacy OWNERID and PREFIX
        variables are honoured when the namespaced ones are missing.
        """
        default = cls()
        data_dir = Path(os.getenv("AUTOREPLY_DATA_DIR") or default.data_dir)
        return cls(
            owner_id=_first_env("AUTOREPLY_OWNER_ID", "OWNERID"),
            command_prefix=_first_env("AUTOREPLY_PREFIX", "PREFIX") or default.command_prefix,
            restart_phrase=_first_env("AUTOREPLY_RESTART_PHRASE") or default.restart_phrase,
            data_dir=data_dir,
            db_path=Path(os.getenv("AUTOREPLY_DB_PATH") or data_dir / "autoreply.db"),
            media_dir=Path(os.getenv("AUTOREPLY_MEDIA_DIR") or data_dir / "media"),
            log_path=Path(os.getenv("AUTOREPLY_LOG_PATH") or data_dir / "autoreply.log"),
            log_level=(os.getenv("AUTOREPLY_LOG_LEVEL") or default.log_level).strip().upper(),
            chance_step=max(1, _parse(os.getenv("AUTOREPLY_CHANCE_STEP"), int, default.chance_step)),
            cooldown_blocks_reply=_parse_bool(
                os.getenv("AUTOREPLY_COOLDOWN_BLOCKS_REPLY"), default.cooldown_blocks_reply
            ),
            archive_attachments=_parse_bool(
                os.getenv("AUTOREPLY_ARCHIVE_ATTACHMENTS"), default.archive_attachments
            ),
            fetch_timeout_seconds=_parse(
                os.getenv("AUTOREPLY_FETCH_TIMEOUT"), float, default.fetch_timeout_seconds
            ),
            storage_timeout_seconds=_parse(
                os.getenv("AUTOREPLY_STORAGE_TIMEOUT"), float, default.storage_timeout_seconds
            ),
            alert_webhook_url=_first_env("AUTOREPLY_ALERT_WEBHOOK_URL"),
            alert_timeout_seconds=_parse(
                os.getenv("AUTOREPLY_ALERT_TIMEOUT"), float, default.alert_timeout_seconds
            ),
        )

    def ensure_paths(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.media_dir.mkdir(parents=True, exist_ok=True)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def is_owner(self, author_id: str | int | None) -> bool:
        if not self.owner_id or author_id is None:
            return False
        return str(author_id) == self.owner_id
