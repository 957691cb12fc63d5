"""Change notification delivery."""

from ._bus import (
    REPOSITORY_CHANGED,
    DeliveryFailure,
    Handler,
    MessageBus,
    PublishResult,
    Subscription,
)

__all__ = [
    "REPOSITORY_CHANGED",
    "DeliveryFailure",
    "Handler",
    "MessageBus",
    "PublishResult",
    "Subscription",
]
