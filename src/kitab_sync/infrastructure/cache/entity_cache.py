"""In-memory store for one server-owned collection."""
from __future__ import annotations

import logging
from typing import Any, Callable, Collection, Generic, Iterable, TypeVar

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=Collection[Any])

Listener = Callable[[Any], None]


class EntityCache(Generic[C]):
    """Holds an immutable snapshot of a collection and replaces it only on change.

    ``normalize`` turns whatever the caller passes in into the stored form
    (``tuple`` for ordered lists, ``frozenset`` for sets). Replacement happens
    only when the normalized incoming value differs structurally from the held
    one, so identical poll results keep the same object and fire no listeners.
    """

    def __init__(
        self,
        name: str,
        normalize: Callable[[Iterable[Any]], C] = tuple,  # type: ignore[assignment]
    ) -> None:
        self.name = name
        self._normalize = normalize
        self._value: C = normalize(())
        self._loaded = False
        self._listeners: list[Listener] = []

    @property
    def value(self) -> C:
        return self._value

    @property
    def loaded(self) -> bool:
        return self._loaded

    def merge(self, incoming: Iterable[Any]) -> bool:
        """Replace the held collection if ``incoming`` differs. Return whether it did."""
        new_value = self._normalize(incoming)
        # An empty first load is still a load: seed it.
        if self._loaded and new_value == self._value:
            return False
        self._value = new_value
        self._loaded = True
        logger.debug("%s cache replaced (%d entries)", self.name, len(new_value))
        self._notify()
        return True

    def update(self, fn: Callable[[C], Iterable[Any]]) -> bool:
        """Apply a local edit through the same compare-and-replace path."""
        return self.merge(fn(self._value))

    def reset(self) -> None:
        """Drop back to unloaded. Listeners see the empty value so stale data is cleared."""
        shown = self._loaded or len(self._value) > 0
        self._value = self._normalize(())
        self._loaded = False
        if shown:
            self._notify()

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._value)
            except Exception:
                logger.exception("%s cache listener failed", self.name)
