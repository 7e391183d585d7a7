"""Image road analyzer — imagery → extracted roads → intersection graph."""

from __future__ import annotations

import logging
from typing import Any, Optional

from roadgraph.core.config import DEFAULT_CONFIG, RoadGraphConfig
from roadgraph.core.exceptions import RasterAnalysisError, RoadGraphError
from roadgraph.core.models import AnalysisOutcome, ImageAnalysisOptions
from roadgraph.analysis.vector import check_bbox_area, require_region
from roadgraph.geometry.clipper import clip_to_boundary
from roadgraph.geometry.intersections import IntersectionGraphBuilder
from roadgraph.geometry.kernel import bounding_box_of
from roadgraph.raster.pipeline import extract_roads
from roadgraph.raster.registry import StageRegistry, build_default_registry
from roadgraph.raster.source import ImageSource, SyntheticImageSource

logger = logging.getLogger("roadgraph.analysis.image")


class ImageRoadAnalyzer:
    """Extracts roads from imagery covering a region.

    Usage::

        analyzer = ImageRoadAnalyzer(image_source=FileImageSource("tile.png"))
        outcome = analyzer.analyze(region_geojson, ImageAnalysisOptions(sensitivity=0.8))

    Without an explicit source a synthetic scene of the configured size
    is analysed.
    """

    def __init__(
        self,
        config: RoadGraphConfig = DEFAULT_CONFIG,
        image_source: Optional[ImageSource] = None,
        registry: Optional[StageRegistry] = None,
    ):
        self.config = config
        self.image_source = image_source or SyntheticImageSource(
            config.raster.image_width, config.raster.image_height
        )
        self.registry = registry or build_default_registry()

    def analyze(
        self,
        region: Any,
        options: Optional[ImageAnalysisOptions] = None,
        *,
        clip: bool = False,
    ) -> AnalysisOutcome:
        options = options or ImageAnalysisOptions()
        parsed = require_region(region)
        bbox = bounding_box_of(parsed)
        logger.info(
            "Image analysis: %d region feature(s), bbox=%s, options=%s, clip=%s",
            len(parsed),
            bbox.as_query_bbox(),
            options,
            clip,
        )
        notes = []
        area_warning = check_bbox_area(bbox, self.config.geometry.large_area_sq_deg)
        if area_warning:
            notes.append(area_warning)

        try:
            image = self.image_source(bbox)
            roads = extract_roads(image, bbox, options, self.config.raster, self.registry)

            builder = IntersectionGraphBuilder(
                config=self.config.geometry,
                scan=self.config.raster.intersection_scan,
            )
            features = builder.build(roads)

            if clip:
                features = clip_to_boundary(features, parsed)
        except RoadGraphError:
            raise
        except Exception as exc:
            logger.error("Image analysis failed: %s", exc)
            raise RasterAnalysisError(f"Image analysis failed: {exc}") from exc

        outcome = AnalysisOutcome(features=features, bbox=bbox, source="image", warnings=notes)
        logger.info(
            "Image analysis complete: %d roads, %d intersections",
            len(outcome.roads),
            len(outcome.intersections),
        )
        return outcome
