"""Channel layer: base + FCM; factory by type."""
from __future__ import annotations

from notifier.channel.base import PushChannel


def _fcm_channel() -> type[PushChannel]:
    from notifier.channel.fcm import FcmChannel

    return FcmChannel


_CHANNELS = {
    "fcm": _fcm_channel,
}


def get_channel(channel_type: str) -> type[PushChannel]:
    """Return channel class for given type (only 'fcm')."""
    if channel_type not in _CHANNELS:
        raise ValueError(f"Unknown channel type: {channel_type}")
    return _CHANNELS[channel_type]()


__all__ = ["PushChannel", "get_channel"]
