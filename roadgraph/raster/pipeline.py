"""Raster road extraction: preprocess → binarize → thin → components → roads."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from roadgraph.core.config import DEFAULT_CONFIG, RasterConfig
from roadgraph.core.models import BoundingBox, Feature, ImageAnalysisOptions
from roadgraph.raster.registry import StageRegistry, build_default_registry
from roadgraph.raster.stages import binarize, connected_components, skeletonize
from roadgraph.raster.vectorize import components_to_features

logger = logging.getLogger("roadgraph.raster.pipeline")


def preprocess(
    image: np.ndarray,
    options: ImageAnalysisOptions,
    registry: Optional[StageRegistry] = None,
) -> np.ndarray:
    """Grayscale, optional blur, then edge detection."""
    registry = registry or build_default_registry()
    result = registry.get("grayscale").apply(image)
    if options.noise_reduction:
        result = registry.get("gaussian_blur").apply(result)
    return registry.edge_stage(options.edge_detection).apply(result)


def extract_roads(
    image: np.ndarray,
    bbox: BoundingBox,
    options: ImageAnalysisOptions,
    config: RasterConfig = DEFAULT_CONFIG.raster,
    registry: Optional[StageRegistry] = None,
) -> list[Feature]:
    """Run the full raster pipeline on an RGBA image covering ``bbox``."""
    if image.ndim != 3 or image.shape[2] != 4:
        raise ValueError(f"Expected an (H, W, 4) RGBA image, got shape {image.shape}")
    height, width = image.shape[:2]

    edges = preprocess(image, options, registry)
    mask = binarize(edges, options.sensitivity)
    skeleton = skeletonize(mask)
    components = connected_components(skeleton, config.min_component_pixels)
    logger.info(
        "Raster: %dx%d image, threshold=%.1f, %d foreground, %d skeleton px, %d components",
        width,
        height,
        options.threshold,
        int(mask.sum()),
        int(skeleton.sum()),
        len(components),
    )
    return components_to_features(
        components,
        bbox,
        width,
        height,
        options.min_road_width,
        config,
    )
