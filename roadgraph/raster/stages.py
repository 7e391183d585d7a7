"""Raster pipeline stages and mask operations.

Every image stage inherits from ``RasterStage`` and implements ``name``
and ``execute``. Images are ``(H, W, 4)`` uint8 RGBA arrays; masks are
``(H, W)`` bool arrays. Stages never modify their input array.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import numpy as np

logger = logging.getLogger("roadgraph.raster.stages")

GAUSSIAN_KERNEL = np.array([[1, 2, 1], [2, 4, 2], [1, 2, 1]], dtype=np.int64)
GAUSSIAN_KERNEL_SUM = 16
SOBEL_X = np.array([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]], dtype=np.int64)
SOBEL_Y = np.array([[-1, -2, -1], [0, 0, 0], [1, 2, 1]], dtype=np.int64)


def _correlate3x3(channel: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """3x3 correlation over interior pixels; result is ``(H-2, W-2)``."""
    h, w = channel.shape
    out = np.zeros((h - 2, w - 2), dtype=np.int64)
    for ky in range(3):
        for kx in range(3):
            weight = kernel[ky, kx]
            if weight:
                out += weight * channel[ky:ky + h - 2, kx:kx + w - 2]
    return out


class RasterStage(ABC):
    """Base class for image-to-image pipeline stages.

    Subclasses must implement:
    - ``name``    — unique string identifier
    - ``execute`` — transform a validated RGBA image

    ``apply`` checks the input shape, runs ``execute`` and checks that
    the output keeps the input shape.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name for this stage (e.g. ``"sobel"``)."""
        ...

    @abstractmethod
    def execute(self, image: np.ndarray) -> np.ndarray:
        ...

    def apply(self, image: np.ndarray) -> np.ndarray:
        if image.ndim != 3 or image.shape[2] != 4:
            raise ValueError(
                f"Stage {self.name} expects an (H, W, 4) RGBA image, got {image.shape}"
            )
        result = self.execute(np.asarray(image, dtype=np.uint8))
        if result.shape != image.shape:
            raise ValueError(f"Stage {self.name} changed the image shape")
        logger.debug("Stage %s applied to %dx%d image", self.name, image.shape[1], image.shape[0])
        return result


class GrayscaleStage(RasterStage):
    """Luma conversion ``0.299R + 0.587G + 0.114B`` into R, G and B; alpha kept."""

    @property
    def name(self) -> str:
        return "grayscale"

    def execute(self, image: np.ndarray) -> np.ndarray:
        rgb = image[..., :3].astype(np.float64)
        gray = 0.299 * rgb[..., 0] + 0.587 * rgb[..., 1] + 0.114 * rgb[..., 2]
        gray = np.clip(np.floor(gray + 0.5), 0, 255).astype(np.uint8)
        out = image.copy()
        out[..., 0] = gray
        out[..., 1] = gray
        out[..., 2] = gray
        return out


class GaussianBlurStage(RasterStage):
    """3x3 Gaussian blur of the R channel written into R, G and B.

    The one-pixel border is left untouched.
    """

    @property
    def name(self) -> str:
        return "gaussian_blur"

    def execute(self, image: np.ndarray) -> np.ndarray:
        out = image.copy()
        h, w = image.shape[:2]
        if h < 3 or w < 3:
            return out
        total = _correlate3x3(image[..., 0].astype(np.int64), GAUSSIAN_KERNEL)
        blurred = ((total + GAUSSIAN_KERNEL_SUM // 2) // GAUSSIAN_KERNEL_SUM).astype(np.uint8)
        for c in range(3):
            out[1:-1, 1:-1, c] = blurred
        return out


class SobelStage(RasterStage):
    """Sobel gradient magnitude, clamped to 255, on interior pixels.

    Border pixels (alpha included) are zero in the output.
    """

    @property
    def name(self) -> str:
        return "sobel"

    def execute(self, image: np.ndarray) -> np.ndarray:
        h, w = image.shape[:2]
        out = np.zeros_like(image)
        if h < 3 or w < 3:
            return out
        channel = image[..., 0].astype(np.int64)
        gx = _correlate3x3(channel, SOBEL_X)
        gy = _correlate3x3(channel, SOBEL_Y)
        magnitude = np.sqrt((gx * gx + gy * gy).astype(np.float64))
        edges = np.rint(np.minimum(255.0, magnitude)).astype(np.uint8)
        for c in range(3):
            out[1:-1, 1:-1, c] = edges
        out[1:-1, 1:-1, 3] = 255
        return out


# ── Mask operations ─────────────────────────────────────────────────────


def binarize(image: np.ndarray, sensitivity: float) -> np.ndarray:
    """Foreground where the R channel exceeds ``255 * (1 - sensitivity)``."""
    threshold = 255 * (1 - sensitivity)
    return image[..., 0] > threshold


def skeletonize(mask: np.ndarray) -> np.ndarray:
    """Neighbour-count thinning heuristic.

    An interior foreground pixel survives only when 2 to 6 of its 8
    neighbours are foreground in the input mask. Border pixels are copied.
    This is not a topological skeleton.
    """
    mask = np.asarray(mask, dtype=bool)
    result = mask.copy()
    h, w = mask.shape
    if h < 3 or w < 3:
        return result
    counts = np.zeros((h - 2, w - 2), dtype=np.int64)
    for dy in range(3):
        for dx in range(3):
            if dy == 1 and dx == 1:
                continue
            counts += mask[dy:dy + h - 2, dx:dx + w - 2]
    interior = mask[1:-1, 1:-1]
    result[1:-1, 1:-1] = interior & (counts >= 2) & (counts <= 6)
    return result


def connected_components(mask: np.ndarray, min_size: int = 6) -> list[list[tuple[int, int]]]:
    """8-connected components as ``(x, y)`` pixel lists.

    Seeds are taken in row-major order; each component lists pixels in
    depth-first visiting order. Components smaller than ``min_size`` are
    discarded.
    """
    mask = np.asarray(mask, dtype=bool)
    h, w = mask.shape
    foreground = mask.ravel().tolist()
    visited = bytearray(h * w)
    components: list[list[tuple[int, int]]] = []

    seeds = np.flatnonzero(mask).tolist()
    for seed in seeds:
        if visited[seed]:
            continue
        component = _flood_fill(foreground, visited, w, h, seed % w, seed // w)
        if len(component) >= min_size:
            components.append(component)

    logger.debug("Found %d components of >= %d pixels", len(components), min_size)
    return components


_NEIGHBOUR_OFFSETS = [(dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if dx or dy]


def _flood_fill(
    foreground: list,
    visited: bytearray,
    width: int,
    height: int,
    start_x: int,
    start_y: int,
) -> list[tuple[int, int]]:
    component = []
    stack = [(start_x, start_y)]
    while stack:
        x, y = stack.pop()
        if x < 0 or x >= width or y < 0 or y >= height:
            continue
        index = y * width + x
        if visited[index] or not foreground[index]:
            continue
        visited[index] = 1
        component.append((x, y))
        for dx, dy in _NEIGHBOUR_OFFSETS:
            stack.append((x + dx, y + dy))
    return component
