"""Minimal signal/slot wiring between the host layer and the controller."""

from typing import Callable, Dict, Generic, TypeVar

from .logging_utility import logger

T = TypeVar("T")


class Signal(Generic[T]):
    """
    A typed event source.

    Handlers are called synchronously, in connection order, with the emitted
    payload. connect() returns an id that disconnect() accepts; subscribers
    must disconnect when they are torn down.
    """

    def __init__(self, name: str):
        self.name = name
        self._handlers: Dict[int, Callable[[T], object]] = {}
        self._next_id = 1

    def connect(self, handler: Callable[[T], object]) -> int:
        handler_id = self._next_id
        self._next_id += 1
        self._handlers[handler_id] = handler
        return handler_id

    def disconnect(self, handler_id: int) -> None:
        self._handlers.pop(handler_id, None)

    def emit(self, payload: T) -> None:
        for handler_id, handler in list(self._handlers.items()):
            try:
                handler(payload)
            except Exception as e:
                logger.error(f"Handler {handler_id} of '{self.name}' failed: {e}")

    def __len__(self) -> int:
        return len(self._handlers)
