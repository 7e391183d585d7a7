"""Boundary clipper: keep whole features that touch the region's polygons.

This is a membership filter, not a geometric cut. A LineString is kept
when any of its vertices lies inside any boundary polygon; a Point is
kept when it lies inside any boundary polygon.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from roadgraph.core.models import Feature, Region
from roadgraph.geometry.kernel import point_in_polygon

logger = logging.getLogger("roadgraph.geometry.clipper")


def _inside_any(point: Any, rings: list[list]) -> bool:
    try:
        return any(point_in_polygon(point, ring) for ring in rings)
    except (TypeError, IndexError):
        return False


def clip_to_boundary(features: Iterable[Feature], region: Any) -> list[Feature]:
    """Filter ``features`` to those touching any Polygon of ``region``.

    Returns the input features unchanged when the region carries no
    usable Polygon (outer ring with at least 3 coordinates).
    """
    features = list(features)
    rings = list(Region.from_geojson(region).polygon_rings())
    if not rings:
        logger.info("No boundary polygon in region; clipping skipped")
        return features

    kept: list[Feature] = []
    for feature in features:
        geometry = feature.get("geometry") if isinstance(feature, dict) else None
        if not isinstance(geometry, dict):
            continue

        gtype = geometry.get("type")
        coords = geometry.get("coordinates") or []
        if gtype == "LineString":
            keep = any(_inside_any(coord, rings) for coord in coords)
        elif gtype == "Point":
            keep = bool(coords) and _inside_any(coords, rings)
        else:
            keep = False

        if keep:
            kept.append(
                {
                    **feature,
                    "geometry": {**geometry},
                    "properties": {**(feature.get("properties") or {})},
                }
            )

    logger.info("Clipped %d → %d features to %d boundary polygon(s)",
                len(features), len(kept), len(rings))
    return kept
