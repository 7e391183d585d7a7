"""Editing operations on an analysed road network.

All operations return new feature lists; the collection passed to
``EditSession`` is never modified. The current selection lives on the
session object rather than in module state.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Optional, Sequence

from roadgraph.core.exceptions import InputError
from roadgraph.core.models import Feature, is_intersection

logger = logging.getLogger("roadgraph.editing.session")


def feature_identifier(feature: Optional[Feature], index: Optional[int] = None) -> Optional[str]:
    """Stable identifier for selection and editing.

    ``id-<id>`` when the feature has an id, otherwise a hash of its first
    and last coordinates and vertex count, otherwise ``idx-<index>``.
    """
    if not feature:
        return None
    if feature.get("id") is not None:
        return f"id-{feature['id']}"

    coords = (feature.get("geometry") or {}).get("coordinates")
    if coords:
        if isinstance(coords[0], (int, float)):
            coords = [coords]
        try:
            first, last = coords[0], coords[-1]
            return f"coords-{first[0]}-{first[1]}-{last[0]}-{last[1]}-{len(coords)}"
        except (TypeError, IndexError):
            pass

    if index is not None:
        return f"idx-{index}"
    return None


def network_stats(collection: dict[str, Any]) -> dict[str, int]:
    """Counts of all features, LineString roads and intersection points."""
    features = collection.get("features") or []
    roads = sum(
        1 for f in features if (f.get("geometry") or {}).get("type") == "LineString"
    )
    intersections = sum(1 for f in features if is_intersection(f))
    return {"total": len(features), "roads": roads, "intersections": intersections}


def split_network(collection: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Separate a network into (roads, intersections) FeatureCollections."""
    features = collection.get("features") or []
    roads = [f for f in features if not is_intersection(f)]
    points = [f for f in features if is_intersection(f)]
    return (
        {"type": "FeatureCollection", "features": roads},
        {"type": "FeatureCollection", "features": points},
    )


class EditSession:
    """Holds one network under edit plus the current selection.

    Usage::

        session = EditSession(outcome.to_geojson())
        session.toggle_selection(feature)
        session.delete_feature(session.selected_id)
        edited = session.collection
    """

    def __init__(self, collection: dict[str, Any]):
        if not isinstance(collection, dict) or not isinstance(collection.get("features"), list):
            raise InputError("EditSession requires a FeatureCollection with a features array")
        self._features: list[Feature] = copy.deepcopy(collection["features"])
        self.selected_id: Optional[str] = None

    @property
    def collection(self) -> dict[str, Any]:
        return {"type": "FeatureCollection", "features": copy.deepcopy(self._features)}

    @property
    def features(self) -> list[Feature]:
        return list(self._features)

    def identifiers(self) -> list[Optional[str]]:
        return [feature_identifier(f, i) for i, f in enumerate(self._features)]

    def find(self, identifier: str) -> Optional[Feature]:
        for i, feature in enumerate(self._features):
            if feature_identifier(feature, i) == identifier:
                return feature
        return None

    # ── selection ───────────────────────────────────────────────────

    def toggle_selection(self, feature: Optional[Feature], index: Optional[int] = None) -> Optional[str]:
        """Select ``feature``; selecting the already-selected feature clears it."""
        clicked = feature_identifier(feature, index)
        if clicked is not None and clicked == self.selected_id:
            self.selected_id = None
        else:
            self.selected_id = clicked
        logger.debug("Selection: %s", self.selected_id)
        return self.selected_id

    def clear_selection(self) -> None:
        self.selected_id = None

    # ── edits ───────────────────────────────────────────────────────

    def delete_feature(self, identifier: str) -> bool:
        """Remove the feature with ``identifier``; clears the selection if it was selected."""
        before = len(self._features)
        self._features = [
            f for i, f in enumerate(self._features) if feature_identifier(f, i) != identifier
        ]
        removed = len(self._features) < before
        if removed and self.selected_id == identifier:
            self.selected_id = None
        if removed:
            logger.info("Deleted feature %s", identifier)
        return removed

    def move_intersection(self, identifier: str, lon: float, lat: float) -> Feature:
        """Move an intersection point to ``(lon, lat)``."""
        feature = self.find(identifier)
        if feature is None or (feature.get("geometry") or {}).get("type") != "Point":
            raise InputError(f"No point feature with identifier {identifier!r}")
        feature["geometry"] = {**feature["geometry"], "coordinates": [float(lon), float(lat)]}
        return copy.deepcopy(feature)

    def update_road_coordinates(
        self, identifier: str, coordinates: Sequence[Sequence[float]]
    ) -> Feature:
        """Replace a road's vertices (at least two pairs)."""
        feature = self.find(identifier)
        if feature is None or (feature.get("geometry") or {}).get("type") != "LineString":
            raise InputError(f"No road feature with identifier {identifier!r}")
        try:
            coords = [[float(c[0]), float(c[1])] for c in coordinates]
        except (TypeError, ValueError, IndexError) as exc:
            raise InputError(f"Malformed coordinates for {identifier!r}") from exc
        if len(coords) < 2:
            raise InputError("A road needs at least 2 coordinate pairs")
        feature["geometry"] = {**feature["geometry"], "coordinates": coords}
        return copy.deepcopy(feature)

    def stats(self) -> dict[str, int]:
        return network_stats({"features": self._features})
