"""Dispatcher: the only path from evaluators to a push channel."""
from __future__ import annotations

import logging

from notifier.channel.base import PushChannel
from notifier.models import DispatchResult, PushMessage

logger = logging.getLogger(__name__)


class Dispatcher:
    """Suppresses empty batches, honours dry-run, logs the delivery counts."""

    def __init__(self, channel: PushChannel | None, dry_run: bool = False):
        self.channel = channel
        self.dry_run = dry_run

    def dispatch(self, msg: PushMessage) -> DispatchResult:
        tokens = {t for t in msg.tokens if t}
        if not tokens:
            logger.info("No tokens for %r, nothing sent", msg.title)
            return DispatchResult()
        batch = PushMessage(tokens=tokens, title=msg.title, body=msg.body, data=dict(msg.data))
        if self.dry_run or self.channel is None:
            logger.info(
                "Dry-run: would send to %s device(s) title=%r body=%r data=%s",
                len(tokens),
                batch.title,
                batch.body,
                batch.data,
            )
            return DispatchResult(requested=len(tokens))
        result = self.channel.send(batch)
        if result.failure:
            logger.warning("Sent %r: %s ok, %s failed", batch.title, result.success, result.failure)
        else:
            logger.info("Sent %r: %s ok", batch.title, result.success)
        return result
