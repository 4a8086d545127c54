import logging
from typing import Optional

from .errors import StorageError
from .store import CounterStore


class OptOutGate:
    """
    Membership test against the opt-out table. Entries are matched on the user tag
    the opt-out was recorded with; passing the stable user id also matches rows
    written after a rename.
    """

    def __init__(self, store: CounterStore):
        self.store = store
        self.logger = logging.getLogger("autoreply.optout")

    async def is_suppressed(self, user_tag: str, user_id: Optional[int] = None) -> bool:
        try:
            return await self.store.is_opted_out(user_tag, user_id)
        except StorageError as exc:
            self.logger.warning("Opt-out lookup failed for %s: %s", user_tag, exc)
            return False
