from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence, Set, Tuple


EARTH_RADIUS_M = 6371e3
# 10 feet in meters
DEFAULT_THRESHOLD_M = float(os.getenv("PROXIMITY_THRESHOLD_M", "3.048"))

NEARBY_PROMPT = "You are near a location of interest. Press read aloud to listen"

Point = Tuple[float, float]


@dataclass(frozen=True)
class Landmark:
    name: str
    latitude: float
    longitude: float
    description: str
    image: Optional[str] = None

    @property
    def coordinates(self) -> Point:
        return (self.latitude, self.longitude)

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "description": self.description,
            "image": self.image,
        }


@dataclass(frozen=True)
class ProximityEvent:
    landmark: Landmark
    distance_m: float
    prompt: str = NEARBY_PROMPT

    def as_dict(self) -> dict:
        return {
            "landmark": self.landmark.as_dict(),
            "distance_m": round(self.distance_m, 3),
            "prompt": self.prompt,
        }


def distance_meters(a: Point, b: Point) -> float:
    """Great-circle distance between two (lat, lon) points, haversine formula."""
    lat1, lon1 = a
    lat2, lon2 = b
    rad_lat1 = math.radians(lat1)
    rad_lat2 = math.radians(lat2)
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    h = math.sin(d_lat / 2) ** 2 + math.cos(rad_lat1) * math.cos(rad_lat2) * math.sin(d_lon / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def check_proximity(
    position: Point,
    landmarks: Iterable[Landmark],
    armed: Set[str],
    threshold: float = DEFAULT_THRESHOLD_M,
) -> Optional[ProximityEvent]:
    """
    Walk `landmarks` in order and update `armed` in place.

    The first landmark within `threshold` that is not yet armed is armed and
    returned as an event; evaluation stops there, so at most one event fires
    per call. Landmarks outside the threshold are disarmed so they can fire
    again on the next visit.
    """
    for landmark in landmarks:
        distance = distance_meters(position, landmark.coordinates)
        if distance <= threshold:
            if landmark.name not in armed:
                armed.add(landmark.name)
                return ProximityEvent(landmark=landmark, distance_m=distance)
        else:
            armed.discard(landmark.name)
    return None


@dataclass
class ProximityNotifier:
    """Armed-set state for one visitor, fed one position at a time."""

    landmarks: Sequence[Landmark]
    threshold: float = DEFAULT_THRESHOLD_M
    armed: Set[str] = field(default_factory=set)

    def update(self, latitude: float, longitude: float) -> Optional[ProximityEvent]:
        return check_proximity((latitude, longitude), self.landmarks, self.armed, self.threshold)

    def reset(self) -> None:
        self.armed.clear()

    def find(self, name: str) -> Optional[Landmark]:
        for landmark in self.landmarks:
            if landmark.name == name:
                return landmark
        return None
