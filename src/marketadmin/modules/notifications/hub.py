"""In-process publish/subscribe channel for notification feeds.

Channels are keyed by recipient id. Each subscription owns one queue and
one consumer task that hands every published feed to its callback, in
publish order, exactly once. The hub also owns the per-recipient locks
that serialize changes, so publish order matches change order.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable

import structlog

from marketadmin.core.constants import NOTIFICATION_LOCK_STRIPES
from marketadmin.modules.notifications.schemas import NotificationFeed


log = structlog.get_logger()

OnChange = Callable[[NotificationFeed], Awaitable[None] | None]

_CLOSED = object()


class Subscription:
    """A live feed for one recipient.

    Created through NotificationHub.subscribe. ``unsubscribe`` is
    idempotent and safe after the hub has closed; once it returns no
    further deliveries happen.
    """

    def __init__(self, hub: "NotificationHub", recipient_id: str, on_change: OnChange) -> None:
        self.recipient_id = recipient_id
        self._hub = hub
        self._on_change = on_change
        self._queue: asyncio.Queue[NotificationFeed | object] = asyncio.Queue()
        self._closed = False
        self._task = asyncio.create_task(
            self._consume(), name=f"notification-feed:{recipient_id}"
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def offer(self, feed: NotificationFeed) -> None:
        """Queue a feed for delivery unless the subscription is closed."""
        if not self._closed:
            self._queue.put_nowait(feed)

    async def _consume(self) -> None:
        while True:
            item = await self._queue.get()
            if item is _CLOSED or self._closed:
                return
            try:
                result = self._on_change(item)  # type: ignore[arg-type]
                if inspect.isawaitable(result):
                    await result
            except Exception:
                log.exception("notification_delivery_failed", recipient_id=self.recipient_id)

    def unsubscribe(self) -> None:
        """Stop deliveries and release the consumer task."""
        if self._closed:
            return
        self._closed = True
        self._hub._remove(self)
        self._queue.put_nowait(_CLOSED)
        if not self._task.done() and self._task is not asyncio.current_task():
            self._task.cancel()
        log.debug("notification_unsubscribed", recipient_id=self.recipient_id)

    async def wait_closed(self) -> None:
        """Wait until the consumer task has exited."""
        await asyncio.gather(self._task, return_exceptions=True)


class NotificationHub:
    """Registry of live subscriptions keyed by recipient."""

    def __init__(self, lock_stripes: int = NOTIFICATION_LOCK_STRIPES) -> None:
        self._subscriptions: dict[str, set[Subscription]] = {}
        self._locks = [asyncio.Lock() for _ in range(lock_stripes)]

    def lock_for(self, recipient_id: str) -> asyncio.Lock:
        """Lock serializing changes to one recipient's notifications."""
        return self._locks[hash(recipient_id) % len(self._locks)]

    def subscribe(self, recipient_id: str, on_change: OnChange) -> Subscription:
        """Open a live feed for a recipient."""
        subscription = Subscription(self, recipient_id, on_change)
        self._subscriptions.setdefault(recipient_id, set()).add(subscription)
        log.debug("notification_subscribed", recipient_id=recipient_id)
        return subscription

    def publish(self, recipient_id: str, feed: NotificationFeed) -> int:
        """Deliver a feed to every live subscription of the recipient.

        Returns:
            Number of subscriptions the feed was queued for
        """
        subscriptions = list(self._subscriptions.get(recipient_id, ()))
        for subscription in subscriptions:
            subscription.offer(feed)
        return len(subscriptions)

    def subscriber_count(self, recipient_id: str) -> int:
        return len(self._subscriptions.get(recipient_id, ()))

    def _remove(self, subscription: Subscription) -> None:
        subscriptions = self._subscriptions.get(subscription.recipient_id)
        if subscriptions is None:
            return
        subscriptions.discard(subscription)
        if not subscriptions:
            del self._subscriptions[subscription.recipient_id]

    def close(self) -> None:
        """Close every subscription, e.g. at application shutdown."""
        for subscriptions in list(self._subscriptions.values()):
            for subscription in list(subscriptions):
                subscription.unsubscribe()
        self._subscriptions.clear()


class NotificationHubHolder:
    """Holder for the process-wide hub, created on first use."""

    hub: NotificationHub | None = None


def get_notification_hub() -> NotificationHub:
    """Dependency returning the process-wide hub."""
    if NotificationHubHolder.hub is None:
        NotificationHubHolder.hub = NotificationHub()
    return NotificationHubHolder.hub
