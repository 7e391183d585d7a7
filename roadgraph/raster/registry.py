"""Stage registry — maps stage names to RasterStage instances."""

from __future__ import annotations

import logging
from typing import Optional, Union

from roadgraph.core.models import EdgeDetection
from roadgraph.raster.stages import RasterStage

logger = logging.getLogger("roadgraph.raster.registry")


class StageRegistry:
    """Registry that maps stage names to RasterStage instances.

    Usage::

        registry = build_default_registry()
        gray = registry.get("grayscale").apply(image)
        edges = registry.edge_stage(EdgeDetection.CANNY).apply(gray)
    """

    FALLBACK_EDGE = EdgeDetection.SOBEL

    def __init__(self) -> None:
        self._stages: dict[str, RasterStage] = {}

    def register(self, stage: RasterStage) -> None:
        """Register a stage by its name."""
        if stage.name in self._stages:
            logger.warning("Overwriting raster stage: %s", stage.name)
        self._stages[stage.name] = stage
        logger.debug("Registered raster stage: %s", stage.name)

    def get(self, name: str) -> Optional[RasterStage]:
        """Look up a stage by name."""
        return self._stages.get(name)

    def list_stages(self) -> list[str]:
        return list(self._stages.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._stages

    def edge_stage(self, method: Union[EdgeDetection, str]) -> RasterStage:
        """Return the edge detector for ``method``.

        Methods without a registered stage degrade to Sobel.
        """
        method = EdgeDetection(method)
        stage = self._stages.get(method.value)
        if stage is None:
            logger.info(
                "Edge detection %r is not implemented; using %s",
                method.value,
                self.FALLBACK_EDGE.value,
            )
            stage = self._stages[self.FALLBACK_EDGE.value]
        return stage


def build_default_registry() -> StageRegistry:
    """Create a registry pre-loaded with the built-in stages."""
    from roadgraph.raster.stages import GaussianBlurStage, GrayscaleStage, SobelStage

    registry = StageRegistry()
    for stage in (GrayscaleStage(), GaussianBlurStage(), SobelStage()):
        registry.register(stage)
    return registry
