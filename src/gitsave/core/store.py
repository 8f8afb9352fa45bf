"""State store holding the view state and notifying subscribers per field.

Writes are applied synchronously; subscribers receive changes through their own
``asyncio.Queue`` so that every subscription observes writes to a field in the
order they happened. The store is meant to be used from a single event loop,
which acts as the only consumer applying state changes.
"""

import asyncio
import logging
from typing import Any, Iterable, List, Optional, Tuple

from gitsave.models.state import ViewState

logger = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """Async iterator over changes of one field or a combination of fields.

    A single-field subscription yields the field value. A multi-field
    subscription yields a tuple with the current value of every watched
    field whenever any of them changes.
    """

    def __init__(self, store: "StateStore", fields: Tuple[str, ...]):
        self._store = store
        self.fields = fields
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def _push(self, value: Any) -> None:
        if not self.closed:
            self._queue.put_nowait(value)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> Any:
        if self.closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item

    async def next(self, timeout: Optional[float] = None) -> Any:
        """Wait for the next value.

        Raises:
            asyncio.TimeoutError: If nothing arrived within ``timeout``.
            StopAsyncIteration: If the subscription was closed.
        """
        if timeout is None:
            return await self.__anext__()
        return await asyncio.wait_for(self.__anext__(), timeout)

    def pending(self) -> int:
        """Number of values queued and not yet consumed."""
        return self._queue.qsize()

    def close(self) -> None:
        """Detach from the store and wake up any waiting consumer."""
        if self.closed:
            return
        self.closed = True
        self._store._detach(self)
        self._queue.put_nowait(_CLOSED)


class StateStore:
    """Holds a ``ViewState`` and publishes field changes to subscribers."""

    def __init__(self, state: Optional[ViewState] = None):
        self._state = state if state is not None else ViewState()
        self._subscriptions: List[Subscription] = []

    @property
    def state(self) -> ViewState:
        """The live state. Mutate it only through ``set``/``update``."""
        return self._state

    def get(self, field: str) -> Any:
        """Read the current value of a field."""
        self._check_field(field)
        return getattr(self._state, field)

    def set(self, field: str, value: Any) -> bool:
        """Write a field and notify its subscribers if the value changed.

        Returns:
            True if the stored value changed.
        """
        self._check_field(field)
        old = getattr(self._state, field)
        setattr(self._state, field, value)
        new = getattr(self._state, field)
        if new == old:
            return False

        logger.debug("state %s changed", field)
        for subscription in list(self._subscriptions):
            if field in subscription.fields:
                subscription._push(self._current(subscription.fields))
        return True

    def update(self, **changes: Any) -> List[str]:
        """Write several fields in order. Returns the names that changed."""
        return [name for name, value in changes.items() if self.set(name, value)]

    def subscribe(self, *fields: str, initial: bool = True) -> Subscription:
        """Subscribe to one field or a combination of fields.

        Args:
            fields: Field names to watch.
            initial: Deliver the current value first.
        """
        if not fields:
            raise ValueError("subscribe() needs at least one field")
        for field in fields:
            self._check_field(field)

        subscription = Subscription(self, tuple(fields))
        self._subscriptions.append(subscription)
        if initial:
            subscription._push(self._current(subscription.fields))
        return subscription

    def close(self) -> None:
        """Close every open subscription."""
        for subscription in list(self._subscriptions):
            subscription.close()

    def _current(self, fields: Iterable[str]) -> Any:
        values = tuple(getattr(self._state, field) for field in fields)
        return values[0] if len(values) == 1 else values

    def _detach(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    @staticmethod
    def _check_field(field: str) -> None:
        if field not in ViewState.model_fields:
            raise AttributeError(f"ViewState has no field {field!r}")
