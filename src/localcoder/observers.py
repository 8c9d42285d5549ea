"""Receivers of turn progress events."""

import queue
from typing import Callable, List, Optional

from .models import TurnEvent


class Observer:
    """Receives :class:`TurnEvent` notifications while a turn runs.

    After :meth:`cancel` no further events are delivered, and the engine
    stops before its next model request.
    """

    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def emit(self, event: TurnEvent) -> None:
        if not self.cancelled:
            self.handle(event)

    def handle(self, event: TurnEvent) -> None:
        pass


class CallbackObserver(Observer):
    """Forwards every event to a callable."""

    def __init__(self, callback: Callable[[TurnEvent], None]):
        super().__init__()
        self.callback = callback

    def handle(self, event):
        self.callback(event)


class RecordingObserver(Observer):
    """Keeps every event in memory."""

    def __init__(self) -> None:
        super().__init__()
        self.events: List[TurnEvent] = []

    def handle(self, event):
        self.events.append(event)

    def types(self) -> List[str]:
        return [event.type for event in self.events]


class QueueObserver(Observer):
    """Hands events to another thread, e.g. a server-sent events response.

    ``close`` puts a sentinel on the queue so the consumer knows the turn is
    over; :meth:`drain` yields events until that sentinel.
    """

    _SENTINEL = None

    def __init__(self) -> None:
        super().__init__()
        self.queue: "queue.Queue[Optional[TurnEvent]]" = queue.Queue()

    def handle(self, event):
        self.queue.put(event)

    def close(self) -> None:
        self.queue.put(self._SENTINEL)

    def drain(self):
        while True:
            event = self.queue.get()
            if event is self._SENTINEL:
                return
            yield event
