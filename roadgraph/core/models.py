"""Core data models for the RoadGraph pipeline.

Features travel through the system as GeoJSON-shaped dicts:
  Region → BoundingBox → road features → (+ intersection points) → AnalysisOutcome
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional

from roadgraph.core.exceptions import InputError

Coordinate = tuple[float, float]
Feature = dict[str, Any]

# ── Enums ───────────────────────────────────────────────────────────────


class AnalysisMode(Enum):
    """Whether the vector analyzer builds the intersection graph."""

    RAW = "raw"                     # upstream ways only
    INTERSECTIONS = "intersections"  # split roads + intersection points


class ScanMode(Enum):
    """How many sub-segment hits are collected per road pair."""

    FULL = "full"             # every sub-segment pair
    FIRST_HIT = "first_hit"   # stop at the first crossing


class EdgeDetection(Enum):
    """Edge detection method requested for the raster pipeline."""

    SOBEL = "sobel"
    CANNY = "canny"
    LAPLACIAN = "laplacian"


# ── Bounding Box ────────────────────────────────────────────────────────


def _plain_decimal(value: float) -> str:
    """Fixed-point text without trailing zeros (``1e-05`` -> ``0.00001``)."""
    text = f"{value + 0.0:.7f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in geographic degrees.

    West > east (antimeridian wraparound) is not supported.
    """

    north: float
    south: float
    east: float
    west: float

    @property
    def width(self) -> float:
        return self.east - self.west

    @property
    def height(self) -> float:
        return self.north - self.south

    @property
    def area(self) -> float:
        """Area in square degrees."""
        return self.width * self.height

    def as_query_bbox(self) -> str:
        """Overpass ordering: ``south,west,north,east``, in plain decimals."""
        return ",".join(
            _plain_decimal(v) for v in (self.south, self.west, self.north, self.east)
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "north": self.north,
            "south": self.south,
            "east": self.east,
            "west": self.west,
        }


# ── Region ──────────────────────────────────────────────────────────────


_GEOMETRY_TYPES = {
    "Point",
    "MultiPoint",
    "LineString",
    "MultiLineString",
    "Polygon",
    "MultiPolygon",
    "GeometryCollection",
}


@dataclass(frozen=True)
class Region:
    """The area of interest supplied by the caller.

    Holds the caller's features as-is; the core never mutates them.
    """

    features: tuple[Feature, ...] = ()

    @classmethod
    def from_geojson(cls, obj: Any) -> "Region":
        """Build a region from a FeatureCollection, Feature, geometry or feature list."""
        if isinstance(obj, Region):
            return obj
        if obj is None:
            raise InputError("No region supplied: expected a GeoJSON FeatureCollection")
        if isinstance(obj, (list, tuple)):
            return cls(features=tuple(obj))
        if not isinstance(obj, dict):
            raise InputError(
                f"Malformed GeoJSON: expected an object, got {type(obj).__name__}"
            )

        gtype = obj.get("type")
        if gtype == "FeatureCollection":
            features = obj.get("features")
            if not isinstance(features, list):
                raise InputError("Malformed GeoJSON: 'features' must be an array")
            return cls(features=tuple(features))
        if gtype == "Feature":
            return cls(features=(obj,))
        if gtype in _GEOMETRY_TYPES:
            return cls(features=({"type": "Feature", "geometry": obj, "properties": {}},))
        raise InputError(f"Malformed GeoJSON: unsupported type {gtype!r}")

    def __len__(self) -> int:
        return len(self.features)

    def polygon_rings(self) -> Iterator[list]:
        """Yield the outer ring of every Polygon feature with at least 3 pairs."""
        for feature in self.features:
            geometry = _geometry_of(feature)
            if geometry is None or geometry.get("type") != "Polygon":
                continue
            rings = geometry.get("coordinates") or []
            if not rings or not rings[0] or len(rings[0]) < 3:
                continue
            yield rings[0]

    def has_polygon(self) -> bool:
        return next(self.polygon_rings(), None) is not None

    def to_geojson(self) -> dict[str, Any]:
        return {"type": "FeatureCollection", "features": list(self.features)}


def _geometry_of(feature: Any) -> Optional[dict]:
    if not isinstance(feature, dict):
        return None
    geometry = feature.get("geometry")
    return geometry if isinstance(geometry, dict) else None


# ── Raster Options ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class ImageAnalysisOptions:
    """Options for the raster road extraction pipeline.

    ``sensitivity`` is the inverse of the binarization threshold;
    ``min_road_width`` is compared against a component's pixel count.
    """

    sensitivity: float = 0.7
    min_road_width: int = 3
    max_road_width: int = 50
    noise_reduction: bool = True
    edge_detection: EdgeDetection = EdgeDetection.CANNY

    def __post_init__(self) -> None:
        if isinstance(self.edge_detection, str):
            try:
                method = EdgeDetection(self.edge_detection.lower())
            except ValueError:
                raise InputError(
                    f"Unknown edge detection method: {self.edge_detection!r}"
                ) from None
            object.__setattr__(self, "edge_detection", method)
        try:
            object.__setattr__(self, "sensitivity", float(self.sensitivity))
            object.__setattr__(self, "min_road_width", int(self.min_road_width))
            object.__setattr__(self, "max_road_width", int(self.max_road_width))
        except (TypeError, ValueError, OverflowError) as exc:
            raise InputError(f"Invalid image analysis option: {exc}") from exc
        object.__setattr__(self, "noise_reduction", bool(self.noise_reduction))
        if not 0.1 <= self.sensitivity <= 1.0:
            raise InputError(
                f"sensitivity must be within [0.1, 1.0], got {self.sensitivity}"
            )
        if self.min_road_width < 0 or self.max_road_width < self.min_road_width:
            raise InputError(
                "road width bounds must satisfy 0 <= min_road_width <= max_road_width"
            )

    @property
    def threshold(self) -> float:
        """Binarization threshold on the 0–255 edge intensity scale."""
        return 255 * (1 - self.sensitivity)

    @classmethod
    def from_dict(cls, values: Optional[dict[str, Any]]) -> "ImageAnalysisOptions":
        """Build options from camelCase or snake_case keys, ignoring unknown ones."""
        if not values:
            return cls()
        aliases = {
            "minRoadWidth": "min_road_width",
            "maxRoadWidth": "max_road_width",
            "noiseReduction": "noise_reduction",
            "edgeDetection": "edge_detection",
        }
        known = {"sensitivity", "min_road_width", "max_road_width",
                 "noise_reduction", "edge_detection"}
        kwargs = {}
        for key, value in values.items():
            key = aliases.get(key, key)
            if key in known:
                kwargs[key] = value
        return cls(**kwargs)


# ── Analysis Outcome ────────────────────────────────────────────────────


@dataclass
class AnalysisOutcome:
    """Flat result of one analysis call: input features followed by intersection points."""

    features: list[Feature]
    bbox: BoundingBox
    source: str
    warnings: list[str] = field(default_factory=list)

    @property
    def roads(self) -> list[Feature]:
        return [f for f in self.features if not is_intersection(f)]

    @property
    def intersections(self) -> list[Feature]:
        return [f for f in self.features if is_intersection(f)]

    def to_geojson(self) -> dict[str, Any]:
        return {"type": "FeatureCollection", "features": self.features}


def is_intersection(feature: Feature) -> bool:
    """True for point features produced by the intersection builder."""
    props = feature.get("properties") or {}
    return bool(props.get("isIntersection"))
