"""
Entrypoint that boots the autoreply engine via the Discord adapter.
"""

import asyncio
import logging

from dotenv import load_dotenv

load_dotenv()

from discord_adapter import main  # noqa: E402


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        # PM2 restarts typically send SIGINT which surfaces as KeyboardInterrupt.
        logging.getLogger("autoreply").info("Received interrupt; exiting cleanly.")
