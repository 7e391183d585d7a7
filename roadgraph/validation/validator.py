"""Region validation — check a GeoJSON region before analysis.

Checks run in order:
1. Object type is a FeatureCollection
2. ``features`` is a non-empty array
3. Every feature carries a geometry that shapely can build
4. Polygon outer rings have at least 3 coordinate pairs
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from shapely.errors import ShapelyError
from shapely.geometry import shape

from roadgraph.core.exceptions import InputError

logger = logging.getLogger("roadgraph.validation")


@dataclass
class ValidationResult:
    """Result of validating one region."""

    passed: bool
    checks_run: list[str] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)


class RegionValidator:
    """Validates a region GeoJSON object.

    Usage::

        v = RegionValidator()
        result = v.validate(geojson)
        if not result.passed:
            print("Rejected:", result.failures)
    """

    def __init__(self, require_area: bool = False):
        # When set, at least one Polygon is required (Points alone are rejected).
        self.require_area = require_area

    def validate(self, obj: Any) -> ValidationResult:
        result = ValidationResult(passed=True)

        # Check 1: FeatureCollection
        result.checks_run.append("type_check")
        if not isinstance(obj, dict) or obj.get("type") != "FeatureCollection":
            result.passed = False
            result.failures.append("GeoJSON must be a FeatureCollection")
            return result

        # Check 2: features array
        result.checks_run.append("features_check")
        features = obj.get("features")
        if not isinstance(features, list):
            result.passed = False
            result.failures.append("A 'features' array is required")
            return result
        if not features:
            result.passed = False
            result.failures.append("The GeoJSON has no features")
            return result

        # Check 3 + 4: geometries and polygon rings
        result.checks_run.append("geometry_check")
        result.checks_run.append("ring_check")
        polygons = 0
        for index, feature in enumerate(features):
            geometry = feature.get("geometry") if isinstance(feature, dict) else None
            if not isinstance(geometry, dict):
                result.failures.append(f"Feature {index} has no geometry")
                continue

            if geometry.get("type") == "Polygon":
                rings = geometry.get("coordinates") or [[]]
                ring = rings[0] if rings else []
                if len(ring) < 3:
                    result.failures.append(
                        f"Feature {index} polygon ring has {len(ring)} coordinate pair(s)"
                    )
                    continue

            try:
                geom = shape(geometry)
            except (ShapelyError, ValueError, TypeError, IndexError, AttributeError) as exc:
                result.failures.append(
                    f"Feature {index} has malformed {geometry.get('type')!r} geometry: {exc}"
                )
                continue
            if geom.is_empty:
                result.failures.append(f"Feature {index} has an empty geometry")
                continue
            if geom.geom_type == "Polygon":
                polygons += 1

        if self.require_area and polygons == 0:
            result.failures.append("At least one Polygon feature is required")

        if result.failures:
            result.passed = False
            logger.warning("Region validation failed: %s", "; ".join(result.failures))

        return result

    def ensure_valid(self, obj: Any) -> dict:
        """Return ``obj`` unchanged or raise :class:`InputError`."""
        result = self.validate(obj)
        if not result.passed:
            raise InputError("Invalid region: " + "; ".join(result.failures))
        return obj
