# ------------------------------ IMPORTS ------------------------------
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
import logging

from fastapi import WebSocket
from starlette.websockets import WebSocketState

logger = logging.getLogger(__name__)

# ------------------------------ EVENTS ------------------------------

@dataclass(frozen=True)
class ProgressEvent:
    """One progress update; link is only set on the final success event."""
    percent: int
    status: str
    link: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"percent": self.percent, "status": self.status}
        if self.link is not None:
            data["link"] = self.link
        return data

# ------------------------------ LISTENERS ------------------------------

class ProgressListener:
    """Receiver for progress events of one request."""

    @property
    def is_open(self) -> bool:
        raise NotImplementedError

    async def send(self, event: Dict[str, Any]) -> None:
        raise NotImplementedError

class WebSocketListener(ProgressListener):
    """Delivers progress events as JSON messages over an accepted WebSocket."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send(self, event: Dict[str, Any]) -> None:
        await self.websocket.send_json(event)

# ------------------------------ REPORTER ------------------------------

class ProgressReporter:
    """Registry of at most one listener per request id. No buffering, no replay."""

    def __init__(self):
        self._listeners: Dict[str, ProgressListener] = {}

    def attach(self, request_id: str, listener: ProgressListener) -> None:
        if request_id in self._listeners:
            logger.info(f"Replacing progress listener for request {request_id}")
        self._listeners[request_id] = listener

    def detach(self, request_id: str, listener: Optional[ProgressListener] = None) -> None:
        """Remove the listener; when one is given, only if it is still the attached one."""
        current = self._listeners.get(request_id)
        if current is None:
            return
        if listener is None or current is listener:
            del self._listeners[request_id]

    def get_listener(self, request_id: str) -> Optional[ProgressListener]:
        return self._listeners.get(request_id)

    def sink(self, request_id: Optional[str], observer: Optional[Callable[[ProgressEvent], None]] = None) -> "ProgressSink":
        """A fresh sink for one attempt of request_id."""
        return ProgressSink(self, request_id, observer)

# ------------------------------ SINK ------------------------------

class ProgressSink:
    """
    Per-attempt progress channel handed to the upload state machine.

    The state machine emits unconditionally. The sink enforces ordering
    (percent never decreases, duplicates are dropped) and quietly skips
    delivery when nobody is listening.
    """

    def __init__(
        self,
        reporter: Optional[ProgressReporter] = None,
        request_id: Optional[str] = None,
        observer: Optional[Callable[[ProgressEvent], None]] = None,
    ):
        self.reporter = reporter
        self.request_id = request_id
        self.observer = observer
        self.last_event: Optional[ProgressEvent] = None

    async def emit(self, percent: int, status: str, link: Optional[str] = None) -> Optional[ProgressEvent]:
        """Record and deliver an event; returns it, or None if it was dropped as out of order."""
        percent = max(0, min(100, int(percent)))
        event = ProgressEvent(percent=percent, status=status, link=link)

        if self.last_event is not None:
            if percent < self.last_event.percent or event == self.last_event:
                return None

        self.last_event = event
        if self.observer:
            self.observer(event)

        await self._deliver(event)
        return event

    async def _deliver(self, event: ProgressEvent) -> None:
        if self.reporter is None or self.request_id is None:
            return

        listener = self.reporter.get_listener(self.request_id)
        if listener is None or not listener.is_open:
            return

        try:
            await listener.send(event.to_dict())
        except Exception as e:
            logger.warning(f"Dropping progress listener for request {self.request_id}: {e}")
            self.reporter.detach(self.request_id, listener)

# ------------------------------ END OF FILE ------------------------------
