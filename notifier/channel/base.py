"""Channel abstraction for push delivery."""
from __future__ import annotations

from abc import ABC, abstractmethod

from notifier.models import DispatchResult, PushMessage


class PushChannel(ABC):
    """Abstract channel: send(msg) -> DispatchResult with per-token success count."""

    @abstractmethod
    def send(self, msg: PushMessage) -> DispatchResult:
        """Deliver msg to every token in msg.tokens; raise DispatchError if the call fails."""
        ...
