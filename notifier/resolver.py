"""Recipient resolution: group -> available users -> device tokens."""
from __future__ import annotations

import logging
from datetime import datetime

from notifier.store.base import Store
from notifier.timeutil import hhmm

logger = logging.getLogger(__name__)


class RecipientResolver:
    """Each step is a hard filter; an empty result means nothing to send."""

    def __init__(self, store: Store):
        self.store = store

    def resolve(self, group_id: str, now: datetime) -> set[str]:
        """Tokens of group members whose pause window covers `now` (local HH:mm)."""
        user_ids = self.store.group_user_ids(group_id)
        if not user_ids:
            logger.info("Group %s has no users", group_id)
            return set()
        available = set(self.store.available_user_ids(user_ids, hhmm(now))) & set(user_ids)
        logger.info(
            "Group %s: %s user(s), %s available at %s",
            group_id,
            len(user_ids),
            len(available),
            hhmm(now),
        )
        tokens: set[str] = set()
        for user_id in sorted(available):
            tokens |= self.devices_for_user(user_id)
        return tokens

    def devices_for_user(self, user_id: str) -> set[str]:
        return {t for t in self.store.device_tokens(user_id) if t}
