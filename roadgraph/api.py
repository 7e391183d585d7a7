"""One-liner API for RoadGraph — ``import roadgraph; roadgraph.analyze(region)``.

Provides convenience functions that wrap the vector and raster analyzers
for scripting, notebooks, and CLI usage.

Examples
--------
>>> import roadgraph
>>> region = roadgraph.load_region("area.geojson")
>>> result = roadgraph.analyze(region, clip=True)
>>> roadgraph.save_result(result, "network.geojson")
>>> roadgraph.analyze_image(region, options={"sensitivity": 0.8})
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

import geopandas as gpd

from roadgraph.analysis.image import ImageRoadAnalyzer
from roadgraph.analysis.vector import VectorRoadAnalyzer
from roadgraph.core.config import DEFAULT_CONFIG, RoadGraphConfig
from roadgraph.core.exceptions import InputError
from roadgraph.core.models import AnalysisMode, AnalysisOutcome, ImageAnalysisOptions
from roadgraph.editing.session import network_stats
from roadgraph.raster.source import ImageSource
from roadgraph.upstream.overpass import OverpassClient
from roadgraph.validation.validator import RegionValidator

logger = logging.getLogger("roadgraph.api")

GEOJSON_SUFFIXES = {".geojson", ".json"}
SUPPORTED_SUFFIXES = GEOJSON_SUFFIXES | {".shp", ".gpkg", ".gml", ".kml"}


# ── Result Container ────────────────────────────────────────────────────


class NetworkResult(dict):
    """A road-network FeatureCollection with a nice ``__repr__``."""

    @classmethod
    def from_outcome(cls, outcome: AnalysisOutcome) -> "NetworkResult":
        result = cls(type="FeatureCollection", features=outcome.features)
        result.bbox = outcome.bbox
        result.source = outcome.source
        result.warnings = list(outcome.warnings)
        return result

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.bbox = None
        self.source = "unknown"
        self.warnings: list[str] = []

    @property
    def roads(self) -> list[dict]:
        return [f for f in self["features"] if not (f.get("properties") or {}).get("isIntersection")]

    @property
    def intersections(self) -> list[dict]:
        return [f for f in self["features"] if (f.get("properties") or {}).get("isIntersection")]

    def __repr__(self) -> str:
        stats = network_stats(self)
        return (
            f"<NetworkResult source={self.source} roads={stats['roads']} "
            f"intersections={stats['intersections']}>"
        )

    def summary(self) -> str:
        """Return a human-readable summary string."""
        stats = network_stats(self)
        lines = [
            "🛣️  RoadGraph Network",
            f"   Source:         {self.source}",
            f"   Features:       {stats['total']}",
            f"   Roads:          {stats['roads']}",
            f"   Intersections:  {stats['intersections']}",
        ]
        if self.bbox is not None:
            b = self.bbox
            lines.append(
                f"   Bounding box:   N {b.north:.6f} S {b.south:.6f} "
                f"E {b.east:.6f} W {b.west:.6f}"
            )
        classes: dict[str, int] = {}
        for road in self.roads:
            label = (road.get("properties") or {}).get("highway", "unknown")
            classes[label] = classes.get(label, 0) + 1
        if classes:
            lines.append("   Road classes:")
            for label, count in sorted(classes.items(), key=lambda kv: -kv[1]):
                lines.append(f"     • {label}: {count}")
        for warning in self.warnings:
            lines.append(f"   ⚠️  {warning}")
        return "\n".join(lines)


# ── Region / Result I/O ─────────────────────────────────────────────────


def load_region(source: Union[str, Path, dict]) -> dict:
    """Load and validate a region.

    Parameters
    ----------
    source : str, Path or dict
        A GeoJSON object, a path to a GeoJSON file, or any vector file
        geopandas can read (Shapefile, GeoPackage, GML, KML).

    Raises
    ------
    FileNotFoundError, ValueError
        Missing file or unsupported format.
    InputError
        The region is not a usable FeatureCollection.
    """
    if isinstance(source, dict):
        return RegionValidator().ensure_valid(source)

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ValueError(
            f"Unsupported format '{suffix}'. Supported: {', '.join(sorted(SUPPORTED_SUFFIXES))}"
        )

    if suffix in GEOJSON_SUFFIXES:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise InputError(f"Region file is not valid JSON: {exc}") from exc
    else:
        gdf = gpd.read_file(str(path))
        if gdf.crs is not None and not gdf.crs.equals("EPSG:4326"):
            gdf = gdf.to_crs("EPSG:4326")
        data = json.loads(gdf.to_json())

    region = RegionValidator().ensure_valid(data)
    logger.info("Loaded region with %d features from %s", len(region["features"]), path.name)
    return region


def save_result(result: dict, path: Union[str, Path]) -> Path:
    """Write a network FeatureCollection.

    GeoJSON is written directly; other formats go through geopandas with
    list-valued properties JSON-encoded.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    collection = {"type": "FeatureCollection", "features": list(result["features"])}

    if suffix in GEOJSON_SUFFIXES:
        path.write_text(json.dumps(collection, ensure_ascii=False, indent=2), encoding="utf-8")
    elif suffix in SUPPORTED_SUFFIXES:
        flattened = []
        for feature in collection["features"]:
            props = {
                key: json.dumps(value) if isinstance(value, (list, dict)) else value
                for key, value in (feature.get("properties") or {}).items()
            }
            flattened.append({**feature, "properties": props})
        gdf = gpd.GeoDataFrame.from_features(flattened, crs="EPSG:4326")
        gdf.to_file(str(path))
    else:
        raise ValueError(
            f"Unsupported format '{suffix}'. Supported: {', '.join(sorted(SUPPORTED_SUFFIXES))}"
        )

    logger.info("Saved %d features to %s", len(collection["features"]), path)
    return path


# ── Public API ──────────────────────────────────────────────────────────


def analyze(
    region: Any,
    *,
    clip: bool = False,
    mode: Union[AnalysisMode, str] = AnalysisMode.INTERSECTIONS,
    config: Optional[RoadGraphConfig] = None,
    client: Optional[OverpassClient] = None,
) -> NetworkResult:
    """Fetch the road network for a region from Overpass.

    Parameters
    ----------
    region : dict, str or Path
        Region GeoJSON or a path accepted by :func:`load_region`.
    clip : bool
        Keep only features touching the region's polygons.
    mode : AnalysisMode or str
        ``"intersections"`` (default) splits roads and adds intersection
        points; ``"raw"`` returns the upstream ways untouched.

    Examples
    --------
    >>> r = roadgraph.analyze("area.geojson", clip=True)
    >>> print(r.summary())
    """
    if isinstance(region, (str, Path)):
        region = load_region(region)
    analyzer = VectorRoadAnalyzer(config or DEFAULT_CONFIG, client=client)
    try:
        outcome = analyzer.analyze(region, clip=clip, mode=mode)
    finally:
        analyzer.close()
    return NetworkResult.from_outcome(outcome)


def analyze_image(
    region: Any,
    *,
    options: Union[ImageAnalysisOptions, dict, None] = None,
    clip: bool = False,
    config: Optional[RoadGraphConfig] = None,
    image_source: Optional[ImageSource] = None,
) -> NetworkResult:
    """Extract the road network for a region from imagery.

    ``options`` may be an :class:`ImageAnalysisOptions` or a dict using
    either snake_case or camelCase keys.
    """
    if isinstance(region, (str, Path)):
        region = load_region(region)
    if not isinstance(options, ImageAnalysisOptions):
        options = ImageAnalysisOptions.from_dict(options)
    analyzer = ImageRoadAnalyzer(config or DEFAULT_CONFIG, image_source=image_source)
    outcome = analyzer.analyze(region, options, clip=clip)
    return NetworkResult.from_outcome(outcome)
