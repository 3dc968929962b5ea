import asyncio
import inspect
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Hashable, Union

EventT = Hashable
CallbackT = Callable[[Any], Union[Any, Awaitable[Any]]]

ALL_EVENTS = "::[*]::"

_token_ids = itertools.count(1)

@dataclass(frozen=True)
class SubscriptionToken:
    event: EventT
    id: int = field(default_factory=lambda: next(_token_ids))

@dataclass
class _Subscription:
    token: SubscriptionToken
    callback: CallbackT
    once: bool

class EventBus:
    """
    Keyed publish/subscribe.

    Listeners are stored per event key so an emit only visits the
    listeners registered for that key, plus any wildcard listeners
    registered under ALL_EVENTS. Delivery happens synchronously in
    subscription order.
    """
    def __init__(self):
        self._subscriptions: dict[EventT, dict[int, _Subscription]] = {}
        self._pending: set[asyncio.Task] = set()
        self.logger = logging.getLogger(self.__class__.__name__)

    def subscribe(self, event: EventT, callback: CallbackT, once: bool = False) -> SubscriptionToken:
        token = SubscriptionToken(event)
        self._subscriptions.setdefault(event, {})[token.id] = _Subscription(token, callback, once)
        return token

    def unsubscribe(self, token: SubscriptionToken) -> bool:
        """Remove a subscription. Returns False if it was already gone."""
        listeners = self._subscriptions.get(token.event)
        if not listeners or token.id not in listeners:
            return False
        del listeners[token.id]
        if not listeners:
            del self._subscriptions[token.event]
        return True

    def is_subscribed(self, token: SubscriptionToken) -> bool:
        return token.id in self._subscriptions.get(token.event, {})

    def listener_count(self, event: EventT) -> int:
        return len(self._subscriptions.get(event, {}))

    def emit(self, event: EventT, payload: Any = None) -> int:
        """
        Deliver ``payload`` to the listeners of ``event`` and to wildcard
        listeners. Returns the number of listeners invoked.
        """
        targets = list(self._subscriptions.get(event, {}).values())
        if event != ALL_EVENTS:
            targets += list(self._subscriptions.get(ALL_EVENTS, {}).values())

        delivered = 0
        for subscription in targets:
            if subscription.once:
                # Already consumed by an earlier delivery in this loop
                if not self.unsubscribe(subscription.token):
                    continue
            elif not self.is_subscribed(subscription.token):
                continue

            delivered += 1
            try:
                result = subscription.callback(payload)
                if inspect.isawaitable(result):
                    self._schedule(result)
            except Exception as e:
                self.logger.exception(f"Listener for {event} failed: {e}")
        return delivered

    def clear(self) -> None:
        self._subscriptions.clear()

    def _schedule(self, awaitable: Awaitable[Any]) -> None:
        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
