from __future__ import annotations

import os
import secrets
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Sequence

from utils.landmarks import LANDMARKS
from utils.proximity import DEFAULT_THRESHOLD_M, Landmark, ProximityEvent, ProximityNotifier


VISIT_IDLE_MINUTES = int(os.getenv("VISIT_IDLE_MINUTES", "60"))


@dataclass
class Visit:
    id: str
    notifier: ProximityNotifier
    last_seen: float
    lock: threading.Lock = field(default_factory=threading.Lock)

    def update(self, latitude: float, longitude: float, now: float) -> Optional[ProximityEvent]:
        # Readings for one visit are applied one at a time, in arrival order.
        with self.lock:
            self.last_seen = now
            return self.notifier.update(latitude, longitude)

    def reset(self, now: float) -> None:
        with self.lock:
            self.last_seen = now
            self.notifier.reset()


class VisitRegistry:
    """In-memory visits, one ProximityNotifier each. Lost on restart."""

    def __init__(
        self,
        landmarks: Sequence[Landmark] = LANDMARKS,
        threshold: float = DEFAULT_THRESHOLD_M,
        clock: Callable[[], float] = time.time,
    ):
        self.landmarks = tuple(landmarks)
        self.threshold = threshold
        self._clock = clock
        self._visits: Dict[str, Visit] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._visits)

    def now(self) -> float:
        return self._clock()

    def create(self) -> Visit:
        visit = Visit(
            id=secrets.token_urlsafe(12),
            notifier=ProximityNotifier(landmarks=self.landmarks, threshold=self.threshold),
            last_seen=self._clock(),
        )
        with self._lock:
            self._visits[visit.id] = visit
        return visit

    def get(self, visit_id: str) -> Optional[Visit]:
        return self._visits.get(visit_id)

    def drop(self, visit_id: str) -> bool:
        with self._lock:
            return self._visits.pop(visit_id, None) is not None

    def drop_idle(self, idle_seconds: float = VISIT_IDLE_MINUTES * 60) -> int:
        cutoff = self._clock() - idle_seconds
        with self._lock:
            stale = [k for k, v in self._visits.items() if v.last_seen < cutoff]
            for k in stale:
                del self._visits[k]
        return len(stale)


_registry: Optional[VisitRegistry] = None


def get_visit_registry() -> VisitRegistry:
    global _registry
    if _registry is None:
        _registry = VisitRegistry()
    return _registry
