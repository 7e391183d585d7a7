"""Intersection graph builder — split roads at crossings and emit junction points.

For every unordered pair of LineString features the builder collects the
crossings between their sub-segments, deduplicates them by rounded
coordinate, records which roads meet there, and splices the crossing into
both roads as a new vertex.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from roadgraph.core.config import DEFAULT_CONFIG, GeometryConfig
from roadgraph.core.models import Coordinate, Feature, ScanMode, is_intersection
from roadgraph.geometry.kernel import (
    near,
    point_on_segment,
    polyline_intersections,
    round_key,
)

logger = logging.getLogger("roadgraph.geometry.intersections")


@dataclass
class BuildStats:
    """Counters collected during one build."""

    roads: int = 0
    pairs_checked: int = 0
    hits: int = 0
    points: int = 0
    vertices_inserted: int = 0


class IntersectionGraphBuilder:
    """Finds road crossings and splices them into road geometries.

    Usage::

        builder = IntersectionGraphBuilder()
        features = builder.build(roads)
        points = [f for f in features if f["properties"].get("isIntersection")]

    The builder never mutates the caller's features: every road's
    coordinate list is copied before vertices are inserted. Intersection
    points already present in the input are dropped and rebuilt, so
    feeding the output back in yields the same point set.
    """

    def __init__(
        self,
        config: GeometryConfig = DEFAULT_CONFIG.geometry,
        scan: ScanMode = ScanMode.FULL,
    ):
        self.config = config
        self.scan = scan
        self.stats = BuildStats()

    def build(self, features: Iterable[Feature]) -> list[Feature]:
        """Return the input features in order (roads with inserted vertices)
        followed by the intersection points."""
        self.stats = BuildStats()
        output: list[Feature] = []
        roads: list[Feature] = []
        road_ids: list[Any] = []

        for index, feature in enumerate(features):
            if not isinstance(feature, dict):
                logger.warning("Skipping non-object feature at index %d", index)
                continue
            if is_intersection(feature):
                continue
            geometry = feature.get("geometry")
            if geometry is not None and not isinstance(geometry, dict):
                logger.warning("Skipping feature with malformed geometry at index %d", index)
                continue
            if (geometry or {}).get("type") != "LineString":
                output.append(feature)
                continue
            road = _copy_road(feature)
            if road is None:
                logger.warning("Skipping malformed LineString at index %d", index)
                continue
            if road.get("id") is None:
                road["id"] = _road_id(feature, index)
            roads.append(road)
            road_ids.append(road["id"])
            output.append(road)

        self.stats.roads = len(roads)
        points: dict[str, Feature] = {}

        for i in range(len(roads)):
            for j in range(i + 1, len(roads)):
                self._process_pair(roads[i], roads[j], road_ids[i], road_ids[j], points)

        self.stats.points = len(points)
        logger.info(
            "Intersection build: %d roads, %d pairs, %d hits → %d points, %d vertices inserted",
            self.stats.roads,
            self.stats.pairs_checked,
            self.stats.hits,
            self.stats.points,
            self.stats.vertices_inserted,
        )
        return output + list(points.values())

    # ── internals ───────────────────────────────────────────────────

    def _process_pair(
        self,
        road1: Feature,
        road2: Feature,
        id1: Any,
        id2: Any,
        points: dict[str, Feature],
    ) -> None:
        coords1 = road1["geometry"]["coordinates"]
        coords2 = road2["geometry"]["coordinates"]
        self.stats.pairs_checked += 1

        hits = polyline_intersections(
            coords1,
            coords2,
            epsilon=self.config.parallel_epsilon,
            first_only=self.scan is ScanMode.FIRST_HIT,
        )
        for point in hits:
            self.stats.hits += 1
            key = round_key(point, self.config.key_precision)
            existing = points.get(key)
            if existing is None:
                points[key] = {
                    "type": "Feature",
                    "geometry": {"type": "Point", "coordinates": [point[0], point[1]]},
                    "properties": {
                        "isIntersection": True,
                        "connectedRoads": [id1, id2],
                    },
                }
            else:
                connected = existing["properties"]["connectedRoads"]
                for road_id in (id1, id2):
                    if road_id not in connected:
                        connected.append(road_id)

            if self._splice(coords1, point):
                self.stats.vertices_inserted += 1
            if self._splice(coords2, point):
                self.stats.vertices_inserted += 1

    def _splice(self, coords: list, point: Coordinate) -> bool:
        """Insert ``point`` after the start of the first segment containing it."""
        tol = self.config.vertex_tolerance
        for i in range(len(coords) - 1):
            if point_on_segment(point, coords[i], coords[i + 1], tol):
                if any(near(c, point, tol) for c in coords):
                    return False
                coords.insert(i + 1, [point[0], point[1]])
                return True
        return False


def _copy_road(feature: Feature) -> Optional[Feature]:
    coords = feature["geometry"].get("coordinates")
    try:
        copied = [[float(c[0]), float(c[1]), *c[2:]] for c in coords]
    except (TypeError, ValueError, IndexError, KeyError):
        return None
    if len(copied) < 2:
        return None
    road = {key: value for key, value in feature.items() if key not in ("geometry", "properties")}
    road["geometry"] = {**feature["geometry"], "coordinates": copied}
    road["properties"] = copy.deepcopy(feature.get("properties") or {})
    return road


def _road_id(feature: Feature, index: int) -> Any:
    props = feature.get("properties") or {}
    if props.get("osmId") is not None:
        return props["osmId"]
    return index


def detect_intersections(
    features: Iterable[Feature],
    config: GeometryConfig = DEFAULT_CONFIG.geometry,
    scan: ScanMode = ScanMode.FULL,
) -> list[Feature]:
    """Convenience wrapper around :class:`IntersectionGraphBuilder`."""
    return IntersectionGraphBuilder(config=config, scan=scan).build(features)
