"""Pixel components → geographic LineString road features."""

from __future__ import annotations

import logging
from typing import Sequence

from roadgraph.core.config import DEFAULT_CONFIG, RasterConfig
from roadgraph.core.models import BoundingBox, Coordinate, Feature
from roadgraph.geometry.kernel import polyline_length_m

logger = logging.getLogger("roadgraph.raster.vectorize")


def pixel_to_lnglat(
    x: float,
    y: float,
    bbox: BoundingBox,
    image_width: int,
    image_height: int,
) -> Coordinate:
    """Linear pixel → (lng, lat) mapping; y grows southwards."""
    lng = bbox.west + (x / image_width) * (bbox.east - bbox.west)
    lat = bbox.north - (y / image_height) * (bbox.north - bbox.south)
    return (lng, lat)


def classify_road_length(length_m: float, config: RasterConfig = DEFAULT_CONFIG.raster) -> str:
    """Road class from approximate length in metres."""
    if length_m > config.primary_min_m:
        return "primary"
    if length_m > config.secondary_min_m:
        return "secondary"
    if length_m > config.tertiary_min_m:
        return "tertiary"
    return "residential"


def component_confidence(component: Sequence[tuple[int, int]]) -> float:
    """Length-based confidence scaled by chain continuity, within [0.1, 1.0]."""
    n = len(component)
    if n < 2:
        return 0.1
    confidence = min(1.0, n / 100)
    continuity = 0
    for i in range(1, n):
        dx = abs(component[i][0] - component[i - 1][0])
        dy = abs(component[i][1] - component[i - 1][1])
        if dx <= 1 and dy <= 1:
            continuity += 1
    confidence *= continuity / (n - 1)
    return max(0.1, min(1.0, confidence))


def components_to_features(
    components: Sequence[Sequence[tuple[int, int]]],
    bbox: BoundingBox,
    image_width: int,
    image_height: int,
    min_road_width: int,
    config: RasterConfig = DEFAULT_CONFIG.raster,
) -> list[Feature]:
    """Project components to LineStrings and classify them.

    Components with fewer pixels than ``min_road_width`` are dropped; the
    feature id is the component's position in ``components``.
    """
    roads: list[Feature] = []
    for index, component in enumerate(components):
        if len(component) < min_road_width or len(component) < 2:
            continue
        coordinates = [
            list(pixel_to_lnglat(x, y, bbox, image_width, image_height))
            for x, y in component
        ]
        length_m = polyline_length_m(coordinates, config.meters_per_degree)
        roads.append(
            {
                "type": "Feature",
                "id": index,
                "geometry": {"type": "LineString", "coordinates": coordinates},
                "properties": {
                    "index": index,
                    "highway": classify_road_length(length_m, config),
                    "type": "derived",
                    "lengthM": round(length_m, 1),
                    "pixelCount": len(component),
                    "confidence": round(component_confidence(component), 3),
                },
            }
        )
    logger.info("Vectorised %d of %d components into roads", len(roads), len(components))
    return roads
