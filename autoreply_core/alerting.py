import logging
import traceback
from typing import Optional

import aiohttp

DISCORD_CONTENT_LIMIT = 2000


def format_report(context: str, exc: BaseException) -> str:
    stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return f"Error executing {context}:\n{stack}"


def _webhook_payload(report: str) -> dict:
    # Leave room for the code fence inside Discord's content limit.
    body = report[-(DISCORD_CONTENT_LIMIT - 12):]
    return {"content": f"```\n{body}\n```"}


class AlertReporter:
    """
    Sends failure reports to an operator channel. Without a webhook URL the report is
    only logged. report() never raises.
    """

    def __init__(self, webhook_url: Optional[str] = None, timeout: float = 10.0):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.logger = logging.getLogger("autoreply.alerts")

    async def report(self, context: str, exc: BaseException) -> bool:
        text = format_report(context, exc)
        self.logger.error(text)
        if not self.webhook_url:
            return False
        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.webhook_url, json=_webhook_payload(text)) as resp:
                    if resp.status >= 300:
                        self.logger.warning("Alert webhook returned %s", resp.status)
                        return False
            return True
        except Exception as exc_send:
            self.logger.warning("Alert webhook delivery failed: %s", exc_send)
            return False
