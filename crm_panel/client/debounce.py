import asyncio
from typing import Callable, Generic, List, Optional, TypeVar

T = TypeVar("T")

DEFAULT_DEBOUNCE_SECONDS = 0.3


class Debouncer(Generic[T]):
    """
    Lagging copy of a rapidly changing value.

    `push` records the latest input and (re)starts the timer; the settled
    `value` only changes once the input has been stable for `delay` seconds.
    Intermediate inputs are dropped. Must be driven from a running event loop.
    """

    def __init__(
        self,
        initial: T,
        delay: float = DEFAULT_DEBOUNCE_SECONDS,
        on_settle: Optional[Callable[[T], None]] = None,
    ):
        if delay < 0:
            raise ValueError("Debounce delay must be zero or greater.")
        self.delay = delay
        self._value = initial
        self._latest = initial
        self._handle: Optional[asyncio.TimerHandle] = None
        self._listeners: List[Callable[[T], None]] = []
        if on_settle is not None:
            self._listeners.append(on_settle)

    @property
    def value(self) -> T:
        return self._value

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def subscribe(self, listener: Callable[[T], None]) -> None:
        self._listeners.append(listener)

    def push(self, value: T) -> None:
        self._cancel_timer()
        self._latest = value
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        """Drop the pending update; the settled value stays as it was."""
        self._cancel_timer()
        self._latest = self._value

    def reset(self, value: T) -> None:
        """Set both the input and the settled value without notifying listeners."""
        self._cancel_timer()
        self._latest = value
        self._value = value

    def flush(self) -> None:
        """Settle the pending value immediately."""
        if self._handle is not None:
            self._cancel_timer()
            self._fire()

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._value = self._latest
        for listener in list(self._listeners):
            listener(self._value)
