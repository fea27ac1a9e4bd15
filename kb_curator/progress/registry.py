"""Progress channels for long-running analyses.

A :class:`ProgressRegistry` maps an opaque analysis id to a
:class:`ProgressChannel`. Producers publish by id; an event published for an
id with no open channel is dropped and logged, never buffered. Channels can
be closed after a delay so a slow consumer still receives the final event.
"""

import json
import logging
import queue
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

logger = logging.getLogger(__name__)


@dataclass
class ProgressEvent:
    """One progress update: step name, percentage, message and free-form details."""
    step: str
    progress: int
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "step": self.step,
            "progress": self.progress,
            "message": self.message,
            "details": self.details,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)


_CLOSED = object()


class ProgressChannel:
    """Multi-producer, single-consumer event queue with an end marker."""

    def __init__(self, analysis_id: str):
        self.analysis_id = analysis_id
        self._queue: queue.Queue = queue.Queue()
        self._closed = threading.Event()
        self.closing = False

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def put(self, event: ProgressEvent) -> None:
        if self.closed:
            logger.warning(f"Dropping event for closed channel {self.analysis_id}")
            return
        self._queue.put(event)

    def close(self) -> None:
        if not self.closed:
            self._closed.set()
            self._queue.put(_CLOSED)

    def events(self, timeout: Optional[float] = None) -> Iterator[ProgressEvent]:
        """Yield events until the channel closes.

        Args:
            timeout: Give up after this many seconds without an event.
                None waits indefinitely.
        """
        while True:
            try:
                item = self._queue.get(timeout=timeout)
            except queue.Empty:
                return
            if item is _CLOSED:
                return
            yield item

    def drain(self) -> list[ProgressEvent]:
        """Return every event queued so far without blocking."""
        items = []
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return items
            if item is not _CLOSED:
                items.append(item)


class ProgressRegistry:
    """Thread-safe map of analysis ids to open progress channels."""

    def __init__(self):
        self._channels: dict[str, ProgressChannel] = {}
        self._lock = threading.Lock()

    @staticmethod
    def new_id(prefix: str = "analysis") -> str:
        return f"{prefix}-{uuid.uuid4().hex}"

    def open(self, analysis_id: str) -> ProgressChannel:
        """Create (or return the existing) channel for an id.

        A channel already scheduled for closing is replaced, so a reused id
        never inherits a finished batch's channel.
        """
        with self._lock:
            channel = self._channels.get(analysis_id)
            if channel is None or channel.closed or channel.closing:
                channel = ProgressChannel(analysis_id)
                self._channels[analysis_id] = channel
                logger.info(f"Opened progress channel for {analysis_id}")
            return channel

    def get(self, analysis_id: str) -> Optional[ProgressChannel]:
        with self._lock:
            return self._channels.get(analysis_id)

    def active_ids(self) -> list[str]:
        with self._lock:
            return list(self._channels)

    def publish(
        self,
        analysis_id: str,
        step: str,
        progress: int,
        message: str,
        details: Optional[dict] = None,
    ) -> bool:
        """Send an event to the channel for ``analysis_id``.

        Returns:
            True when delivered, False when no channel was open and the event
            was dropped.
        """
        event = ProgressEvent(step=step, progress=progress, message=message, details=details or {})
        channel = self.get(analysis_id)
        if channel is None:
            logger.warning(f"No active progress channel for {analysis_id}, dropping '{step}'")
            return False

        logger.debug(f"Progress {analysis_id}: {step} {progress}%")
        channel.put(event)
        return True

    def close(self, analysis_id: str, delay: float = 0) -> None:
        """Close and unregister a channel, optionally after ``delay`` seconds."""
        channel = self.get(analysis_id)
        if channel is None:
            return
        channel.closing = True
        if delay > 0:
            timer = threading.Timer(delay, self._close_now, args=(analysis_id, channel))
            timer.daemon = True
            timer.start()
        else:
            self._close_now(analysis_id, channel)

    def _close_now(self, analysis_id: str, channel: ProgressChannel) -> None:
        # A reopened id owns a new channel; only the one scheduled here is torn down.
        with self._lock:
            if self._channels.get(analysis_id) is channel:
                del self._channels[analysis_id]
        if not channel.closed:
            channel.close()
            logger.info(f"Closed progress channel for {analysis_id}")
