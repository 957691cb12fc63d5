"""In-process message bus for repository change notifications.

The bus is the default publisher for trackers. Handlers are registered per
topic and called synchronously on the publishing thread. The subscriber list
is copied under the lock and handlers run outside it, so a handler may
subscribe or unsubscribe without deadlocking.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from types import TracebackType
from typing import TYPE_CHECKING, Final, Self

if TYPE_CHECKING:
    from repostate.repository._models import RepositoryRoot

# Topic published once per detected repository state change
REPOSITORY_CHANGED: Final = "repository.changed"

type Handler = Callable[[RepositoryRoot], object]


@dataclass(frozen=True, slots=True)
class DeliveryFailure:
    """A handler that raised while a notification was delivered.

    Attributes:
        handler: The handler that failed.
        error: The exception it raised.
    """

    handler: Handler
    error: Exception


@dataclass(frozen=True, slots=True)
class PublishResult:
    """Outcome of delivering one notification.

    Attributes:
        topic: The topic that was published.
        delivered: Number of handlers that returned normally.
        failures: Handlers that raised, with their exceptions.
    """

    topic: str
    delivered: int = 0
    failures: tuple[DeliveryFailure, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        """Return True when no handler raised."""
        return not self.failures


class Subscription:
    """Handle returned by MessageBus.subscribe().

    Usable as a context manager; leaving the block unsubscribes.
    """

    __slots__ = ("_active", "_bus", "handler", "topic")

    def __init__(self, bus: "MessageBus", topic: str, handler: Handler) -> None:  # noqa: UP037
        self._bus: MessageBus = bus
        self.topic: str = topic
        self.handler: Handler = handler
        self._active: bool = True

    @property
    def active(self) -> bool:
        """Return True until unsubscribe() has been called."""
        return self._active

    def unsubscribe(self) -> None:
        """Stop receiving notifications. Calling twice is harmless."""
        if self._active:
            self._active = False
            self._bus._remove(self)  # noqa: SLF001

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.unsubscribe()


class MessageBus:
    """Thread-safe topic to handlers registry.

    Example:
        >>> bus = MessageBus()
        >>> sub = bus.subscribe(REPOSITORY_CHANGED, lambda root: print(root.path))
        >>> bus.publish(REPOSITORY_CHANGED, root).delivered
        1
    """

    __slots__ = ("_lock", "_subscriptions")

    def __init__(self) -> None:
        self._lock: threading.Lock = threading.Lock()
        self._subscriptions: dict[str, list[Subscription]] = {}

    def subscribe(self, topic: str, handler: Handler) -> Subscription:
        """Register a handler for a topic.

        Args:
            topic: The topic name, e.g. REPOSITORY_CHANGED.
            handler: Callable invoked with the changed repository's root.

        Returns:
            Subscription that removes the handler when unsubscribed.
        """
        subscription = Subscription(self, topic, handler)
        with self._lock:
            self._subscriptions.setdefault(topic, []).append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            subscriptions = self._subscriptions.get(subscription.topic, [])
            self._subscriptions[subscription.topic] = [
                s for s in subscriptions if s is not subscription
            ]

    def subscriber_count(self, topic: str) -> int:
        """Return the number of handlers registered for a topic."""
        with self._lock:
            return len(self._subscriptions.get(topic, ()))

    def publish(self, topic: str, root: "RepositoryRoot") -> PublishResult:  # noqa: UP037
        """Deliver a notification to every handler of a topic.

        Each handler is called once. An exception raised by one handler is
        recorded and does not prevent delivery to the others.

        Args:
            topic: The topic name.
            root: The repository the notification is about.

        Returns:
            PublishResult counting deliveries and listing failures.
        """
        with self._lock:
            targets = list(self._subscriptions.get(topic, ()))

        delivered = 0
        failures: list[DeliveryFailure] = []
        for subscription in targets:
            try:
                _ = subscription.handler(root)
            except Exception as e:  # noqa: BLE001
                failures.append(DeliveryFailure(handler=subscription.handler, error=e))
            else:
                delivered += 1
        return PublishResult(topic=topic, delivered=delivered, failures=tuple(failures))
