import logging
from typing import Optional

from .classifier import MessageOrigin
from .config import RuntimeConfig
from .events import MessageEvent, describe_content

FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"

message_logger = logging.getLogger("autoreply.messages")


def build_logger(config: RuntimeConfig) -> logging.Logger:
    config.ensure_paths()
    logger = logging.getLogger("autoreply")
    if logger.handlers:
        return logger
    logger.setLevel(getattr(logging, config.log_level, logging.INFO))
    formatter = logging.Formatter(FORMAT, datefmt=DATEFMT)
    file_handler = logging.FileHandler(config.log_path, encoding="utf-8")
    file_handler.setFormatter(formatter)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(file_handler)
    logger.addHandler(stream_handler)
    return logger


def format_message_line(origin: MessageOrigin, event: MessageEvent, chance: Optional[int] = None) -> str:
    content = describe_content(event)
    if origin is MessageOrigin.DIRECT:
        return f"DM - {event.author_tag} - {content}"
    if chance is not None:
        label = f"{chance}%"
    elif origin is MessageOrigin.GUILD:
        label = "0%"
    else:
        label = origin.label
    return f"{label} - {event.guild_name} - #{event.channel_name} - {event.author_tag} - {content}"


def log_message_event(origin: MessageOrigin, event: MessageEvent, chance: Optional[int] = None) -> None:
    message_logger.info(format_message_line(origin, event, chance))


def log_command(event: MessageEvent) -> None:
    logging.getLogger("autoreply.owner").info(
        "%s - #%s - %s - %s", event.guild_name, event.channel_name, event.author_tag, event.flat_content
    )
