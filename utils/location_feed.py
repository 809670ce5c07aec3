"""
Position readings as a channel, consumed by a proximity watcher thread.

A LocationFeed is filled by whatever produces positions (a device, an HTTP
handler, a test fixture) and drained in arrival order by exactly one
ProximityWatcher, which owns the notifier state.
"""

from __future__ import annotations

import logging
import queue
from threading import Lock, Thread
from typing import Callable, Iterable, Iterator, Optional, Tuple

from utils.proximity import Landmark, ProximityEvent, ProximityNotifier


logger = logging.getLogger(__name__)

_CLOSED = object()


class FeedClosed(Exception):
    pass


class LocationFeed:
    def __init__(self, maxsize: int = 0):
        self._q: "queue.Queue[object]" = queue.Queue(maxsize=maxsize)
        self._closed = False
        # push and close share it so no reading lands behind the sentinel.
        self._lock = Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, latitude: float, longitude: float) -> None:
        reading = (float(latitude), float(longitude))
        with self._lock:
            if self._closed:
                raise FeedClosed("location feed is closed")
            self._q.put(reading)

    def close(self) -> None:
        with self._lock:
            if not self._closed:
                self._closed = True
                self._q.put(_CLOSED)

    def __iter__(self) -> Iterator[Tuple[float, float]]:
        while True:
            item = self._q.get()
            if item is _CLOSED:
                return
            yield item


def simulated_feed(landmarks: Iterable[Landmark], close: bool = True) -> LocationFeed:
    """A feed that stands exactly on each landmark in turn."""
    feed = LocationFeed()
    for landmark in landmarks:
        feed.push(landmark.latitude, landmark.longitude)
    if close:
        feed.close()
    return feed


class ProximityWatcher:
    """
    Drains a LocationFeed on a background thread and calls `on_event` for
    every proximity notification. Call stop() (or use as a context manager)
    to close the feed and join the thread.
    """

    def __init__(
        self,
        feed: LocationFeed,
        notifier: ProximityNotifier,
        on_event: Callable[[ProximityEvent], None],
    ):
        self.feed = feed
        self.notifier = notifier
        self.on_event = on_event
        self.processed = 0
        self.error: Optional[BaseException] = None
        self._thread: Optional[Thread] = None

    def _run(self) -> None:
        try:
            for latitude, longitude in self.feed:
                event = self.notifier.update(latitude, longitude)
                self.processed += 1
                if event is not None:
                    logger.info("Near landmark %s (%.2fm)", event.landmark.name, event.distance_m)
                    self.on_event(event)
        except Exception as e:
            self.error = e
            logger.exception("Proximity watcher stopped on error")

    def start(self) -> "ProximityWatcher":
        if self._thread is not None:
            raise RuntimeError("watcher already started")
        self._thread = Thread(target=self._run, name="proximity-watcher", daemon=True)
        self._thread.start()
        return self

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self.feed.close()
        self.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def __enter__(self) -> "ProximityWatcher":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.stop()
