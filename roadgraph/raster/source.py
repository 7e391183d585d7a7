"""Image acquisition for the raster pipeline.

Real imagery services are outside the core; an image source is any
callable ``(bbox) -> ndarray`` returning an ``(H, W, 4)`` uint8 RGBA
array. Two sources are provided: a synthetic scene and an image file.
"""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Callable, Optional, Union

import numpy as np
from PIL import Image, ImageDraw

from roadgraph.core.models import BoundingBox

logger = logging.getLogger("roadgraph.raster.source")

ImageSource = Callable[[BoundingBox], np.ndarray]

# Scene layout on a 1024x1024 reference canvas.
_REFERENCE_SIZE = 1024
_MAIN_ROADS = [
    ((100, 200), (900, 250)),
    ((200, 100), (180, 900)),
    ((500, 150), (600, 800)),
    ((300, 400), (800, 450)),
    ((700, 200), (750, 700)),
]
_MINOR_ROADS = [
    ((150, 300), (350, 320)),
    ((400, 500), (450, 650)),
    ((600, 300), (750, 280)),
]
GROUND_COLOR = "#4a5d3a"
MAIN_ROAD_COLOR = "#666666"
MINOR_ROAD_COLOR = "#555555"
CLUTTER_COLORS = ("#2d3d2d", "#1a2a1a")


def synthesize_image(
    width: int = _REFERENCE_SIZE,
    height: int = _REFERENCE_SIZE,
    seed: Optional[int] = None,
    clutter: int = 50,
) -> np.ndarray:
    """Draw a simulated aerial scene: ground, five main roads, three minor roads, clutter.

    The layout is scaled from the 1024x1024 reference canvas to
    ``width`` x ``height``; ``seed`` makes the clutter reproducible.
    """
    sx = width / _REFERENCE_SIZE
    sy = height / _REFERENCE_SIZE
    scale = min(sx, sy)

    img = Image.new("RGBA", (width, height), GROUND_COLOR)
    draw = ImageDraw.Draw(img)

    def _line(road, color, line_width):
        (x0, y0), (x1, y1) = road
        draw.line(
            [(x0 * sx, y0 * sy), (x1 * sx, y1 * sy)],
            fill=color,
            width=max(1, round(line_width * scale)),
        )

    for road in _MAIN_ROADS:
        _line(road, MAIN_ROAD_COLOR, 8)
    for road in _MINOR_ROADS:
        _line(road, MINOR_ROAD_COLOR, 4)

    rng = random.Random(seed)
    for _ in range(clutter):
        x = rng.random() * width
        y = rng.random() * height
        size = (rng.random() * 20 + 5) * scale
        color = CLUTTER_COLORS[0] if rng.random() > 0.5 else CLUTTER_COLORS[1]
        draw.rectangle([x, y, x + size, y + size], fill=color)

    logger.debug("Synthesized %dx%d scene (seed=%s)", width, height, seed)
    return np.asarray(img, dtype=np.uint8).copy()


def load_image(path: Union[str, Path]) -> np.ndarray:
    """Read an image file (any Pillow format) as an RGBA array."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")
    with Image.open(path) as img:
        rgba = img.convert("RGBA")
        array = np.asarray(rgba, dtype=np.uint8).copy()
    logger.info("Loaded %dx%d image from %s", array.shape[1], array.shape[0], path.name)
    return array


class SyntheticImageSource:
    """Image source producing :func:`synthesize_image` scenes."""

    def __init__(self, width: int = _REFERENCE_SIZE, height: int = _REFERENCE_SIZE,
                 seed: Optional[int] = None):
        self.width = width
        self.height = height
        self.seed = seed

    def __call__(self, bbox: BoundingBox) -> np.ndarray:
        return synthesize_image(self.width, self.height, seed=self.seed)


class FileImageSource:
    """Image source that returns the same georeferenced image for any bbox."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def __call__(self, bbox: BoundingBox) -> np.ndarray:
        return load_image(self.path)
