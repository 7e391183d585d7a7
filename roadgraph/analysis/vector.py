"""Vector road-network analyzer — Overpass ways → road graph.

Pipeline:
  1. validate region      4. fetch with endpoint failover
  2. bounding box         5. normalise ways
  3. build query          6. intersection graph (mode flag)
                          7. boundary clip (optional)
"""

from __future__ import annotations

import logging
import warnings
from typing import Any, Optional, Union

from roadgraph.core.config import DEFAULT_CONFIG, RoadGraphConfig
from roadgraph.core.exceptions import GeometryWarning, InputError
from roadgraph.core.models import AnalysisMode, AnalysisOutcome, BoundingBox, Region
from roadgraph.geometry.clipper import clip_to_boundary
from roadgraph.geometry.intersections import IntersectionGraphBuilder
from roadgraph.geometry.kernel import bounding_box_of
from roadgraph.upstream.normalize import ways_to_features
from roadgraph.upstream.overpass import OverpassClient, build_overpass_query

logger = logging.getLogger("roadgraph.analysis.vector")


def require_region(region: Any) -> Region:
    """Parse the region and reject it when it has no features."""
    parsed = Region.from_geojson(region)
    if len(parsed) == 0:
        raise InputError("No analysis region: the GeoJSON has no features")
    return parsed


def check_bbox_area(bbox: BoundingBox, limit: float) -> Optional[str]:
    """Warn (non-fatally) when the bounding box is larger than ``limit`` sq deg."""
    if bbox.area <= limit:
        return None
    message = (
        f"Bounding box area {bbox.area:.4f} sq deg exceeds {limit} sq deg; "
        "the upstream query may be slow or fail"
    )
    logger.warning("%s", message)
    warnings.warn(message, GeometryWarning, stacklevel=3)
    return message


class VectorRoadAnalyzer:
    """Fetches road ways for a region and builds the intersection graph.

    Usage::

        analyzer = VectorRoadAnalyzer()
        outcome = analyzer.analyze(region_geojson, clip=True)
        outcome.roads, outcome.intersections

    ``mode=AnalysisMode.RAW`` returns the upstream ways as-is (no
    intersection points, no inserted vertices).
    """

    def __init__(
        self,
        config: RoadGraphConfig = DEFAULT_CONFIG,
        client: Optional[OverpassClient] = None,
    ):
        self.config = config
        self._owns_client = client is None
        self.client = client or OverpassClient.with_cache(config.overpass, config.cache)

    def close(self) -> None:
        """Release the Overpass client if this analyzer created it."""
        if self._owns_client:
            self.client.close()

    def analyze(
        self,
        region: Any,
        *,
        clip: bool = False,
        mode: Union[AnalysisMode, str] = AnalysisMode.INTERSECTIONS,
    ) -> AnalysisOutcome:
        try:
            mode = AnalysisMode(mode)
        except ValueError:
            raise InputError(f"Unknown analysis mode: {mode!r}") from None
        parsed = require_region(region)
        bbox = bounding_box_of(parsed)
        logger.info(
            "Vector analysis: %d region feature(s), bbox=%s, mode=%s, clip=%s",
            len(parsed),
            bbox.as_query_bbox(),
            mode.value,
            clip,
        )

        notes = []
        area_warning = check_bbox_area(bbox, self.config.geometry.large_area_sq_deg)
        if area_warning:
            notes.append(area_warning)

        query = build_overpass_query(
            bbox,
            server_timeout=self.config.overpass.server_timeout_s,
            maxsize=self.config.overpass.maxsize,
        )
        data = self.client.fetch(query)

        elements = data.get("elements")
        if not isinstance(elements, list):
            logger.warning("Overpass response has no elements array")
            elements = []
        features = ways_to_features(elements)

        if mode is AnalysisMode.INTERSECTIONS:
            builder = IntersectionGraphBuilder(config=self.config.geometry)
            features = builder.build(features)

        if clip:
            features = clip_to_boundary(features, parsed)

        outcome = AnalysisOutcome(
            features=features, bbox=bbox, source="overpass", warnings=notes
        )
        logger.info(
            "Vector analysis complete: %d roads, %d intersections",
            len(outcome.roads),
            len(outcome.intersections),
        )
        return outcome
