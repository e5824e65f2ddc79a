"""Firebase Cloud Messaging channel (multicast)."""
from __future__ import annotations

import logging

from firebase_admin import messaging
from firebase_admin.exceptions import FirebaseError

from notifier.channel.base import PushChannel
from notifier.errors import DispatchError
from notifier.models import DispatchResult, PushMessage

logger = logging.getLogger(__name__)

# FCM rejects multicast messages with more than 500 tokens.
MULTICAST_LIMIT = 500


def _mask(token: str) -> str:
    return f"{token[:6]}***" if len(token) > 6 else "***"


class FcmChannel(PushChannel):
    """Send one notification to many device tokens via send_each_for_multicast."""

    def __init__(self, app=None):
        self._app = app

    def send(self, msg: PushMessage) -> DispatchResult:
        tokens = sorted(t for t in msg.tokens if t)
        result = DispatchResult()
        for i in range(0, len(tokens), MULTICAST_LIMIT):
            chunk = tokens[i : i + MULTICAST_LIMIT]
            multicast = messaging.MulticastMessage(
                tokens=chunk,
                notification=messaging.Notification(title=msg.title, body=msg.body),
                data={k: str(v) for k, v in msg.data.items()},
            )
            try:
                response = messaging.send_each_for_multicast(multicast, app=self._app)
            except FirebaseError as e:
                raise DispatchError(f"FCM multicast failed: {e}") from e
            result.requested += len(chunk)
            result.success += response.success_count
            for token, resp in zip(chunk, response.responses):
                if not resp.success:
                    logger.warning("FCM token %s rejected: %s", _mask(token), resp.exception)
        return result
