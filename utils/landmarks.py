from __future__ import annotations

from typing import Tuple

from utils.proximity import Landmark


MAP_CENTER = (44.624081, -63.919488)
# South-west, north-east corners of the pannable area.
MAP_BOUNDS = ((44.605, -63.94), (44.64, -63.89))

LANDMARKS: Tuple[Landmark, ...] = (
    Landmark(
        name="Farmhouse",
        latitude=44.626430,
        longitude=-63.923172,
        description="What's left of a small farmhouse that once stood here, now quiet and softened by moss and trees.",
        image="FarmHouse.jpg",
    ),
    Landmark(
        name="Entrance",
        latitude=44.626556,
        longitude=-63.923382,
        description=(
            "The main entrance overlooking the bay, surrounded by birch and spruce trees. "
            "This starting point gives visitors their first glimpse of the natural beauty of the site."
        ),
        image="Entrance.jpg",
    ),
    Landmark(
        name="Natural burial",
        latitude=44.625050,
        longitude=-63.921247,
        description="A quiet, designated area for natural burials, surrounded by trees and native plants.",
    ),
    Landmark(
        name="Labyrinth Entrance",
        latitude=44.624081,
        longitude=-63.919488,
        description=(
            "Entrance to the woodland labyrinth, marked by open pathways and fallen logs. "
            "This area begins the circular walking route used for reflection and mindfulness."
        ),
        image="Labyrinth.jpg",
    ),
    Landmark(
        name="Birch Forest",
        latitude=44.624640,
        longitude=-63.920329,
        description=(
            "A quiet birch grove filled with golden leaves, mossy rocks, and tall slender trees. "
            "One of the most scenic spots in the woodland conservation area."
        ),
        image="BirchTrees.jpg",
    ),
    Landmark(
        name="Dock",
        latitude=44.620829,
        longitude=-63.914325,
        description=(
            "This dock provides a scenic viewpoint over the bay. Visitors often stop here to enjoy "
            "the water, the breeze, and the surrounding coastal landscape."
        ),
        image="Dock.jpg",
    ),
)
