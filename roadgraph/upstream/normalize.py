"""Convert Overpass ``out geom`` elements into LineString road features."""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable

from roadgraph.core.exceptions import DataIntegrityError
from roadgraph.core.models import Feature

logger = logging.getLogger("roadgraph.upstream.normalize")

# First present tag wins.
CATEGORY_PRECEDENCE = ("highway", "aeroway", "railway", "waterway")


def classify_tags(tags: dict[str, Any]) -> tuple[str, str]:
    """Return ``(category, value)`` for the first matching tag category."""
    for category in CATEGORY_PRECEDENCE:
        value = tags.get(category)
        if value:
            return category, str(value)
    return "unknown", "unknown"


def way_to_feature(way: Any) -> Feature:
    """Normalise one way element.

    Raises
    ------
    DataIntegrityError
        If the element is not an object, has fewer than two nodes, or a
        node lacks numeric ``lon``/``lat``.
    """
    if not isinstance(way, dict):
        raise DataIntegrityError(f"Way element is not an object: {way!r}")

    nodes = way.get("geometry")
    if not isinstance(nodes, list):
        raise DataIntegrityError(f"Way {way.get('id')} has no geometry array")

    coordinates = []
    for node in nodes:
        try:
            lon, lat = float(node["lon"]), float(node["lat"])
        except (TypeError, KeyError, ValueError) as exc:
            raise DataIntegrityError(
                f"Way {way.get('id')} has a malformed node: {node!r}"
            ) from exc
        if not (math.isfinite(lon) and math.isfinite(lat)):
            raise DataIntegrityError(f"Way {way.get('id')} has a non-finite node")
        coordinates.append([lon, lat])

    if len(coordinates) < 2:
        raise DataIntegrityError(
            f"Way {way.get('id')} has {len(coordinates)} node(s); at least 2 required"
        )

    tags = way.get("tags") or {}
    category, value = classify_tags(tags)
    return {
        "type": "Feature",
        "id": way.get("id"),
        "geometry": {"type": "LineString", "coordinates": coordinates},
        "properties": {
            "highway": value,
            "name": tags.get("name") or "Unnamed",
            "osmId": way.get("id"),
            "type": category,
        },
    }


def ways_to_features(elements: Iterable[Any]) -> list[Feature]:
    """Normalise every ``way`` element that carries geometry, skipping bad ones."""
    features: list[Feature] = []
    skipped = 0
    for element in elements or []:
        if not isinstance(element, dict):
            skipped += 1
            logger.warning("Skipping non-object element: %r", element)
            continue
        if element.get("type") != "way" or not element.get("geometry"):
            continue
        try:
            features.append(way_to_feature(element))
        except DataIntegrityError as exc:
            skipped += 1
            logger.warning("Skipping way: %s", exc)

    logger.info("Normalised %d ways (%d skipped)", len(features), skipped)
    return features
