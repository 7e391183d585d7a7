"""Geometry kernel: bounding boxes, segment intersection, point-in-polygon.

Pure functions over ``(x, y)`` = ``(lon, lat)`` pairs in planar degrees.
No I/O and no projection handling.
"""

from __future__ import annotations

import math
from typing import Any, Optional, Sequence

import numpy as np

from roadgraph.core.exceptions import InputError
from roadgraph.core.models import BoundingBox, Coordinate, Region

PARALLEL_EPSILON = 1e-10
VERTEX_TOLERANCE = 1e-5
METERS_PER_DEGREE = 111_000.0


def bounding_box_of(region: Any) -> BoundingBox:
    """Compute the bounding box of every Polygon ring and Point in a region.

    Parameters
    ----------
    region : Region or GeoJSON object
        Features whose Polygon outer rings and Point coordinates are scanned.
        Other geometry types are ignored.

    Raises
    ------
    InputError
        If the region has no features or none of them yields a finite
        coordinate.
    """
    region = Region.from_geojson(region)
    if len(region) == 0:
        raise InputError("Invalid GeoJSON: the features array is empty or missing")

    min_lat = min_lon = math.inf
    max_lat = max_lon = -math.inf

    for feature in region.features:
        if not isinstance(feature, dict):
            continue
        geometry = feature.get("geometry")
        if not isinstance(geometry, dict):
            continue

        gtype = geometry.get("type")
        coords = geometry.get("coordinates")
        if gtype == "Polygon" and coords and coords[0]:
            points = coords[0]
        elif gtype == "Point" and coords:
            points = [coords]
        else:
            continue

        for point in points:
            try:
                lon, lat = float(point[0]), float(point[1])
            except (TypeError, ValueError, IndexError):
                continue
            if not (math.isfinite(lon) and math.isfinite(lat)):
                continue
            min_lon = min(min_lon, lon)
            max_lon = max(max_lon, lon)
            min_lat = min(min_lat, lat)
            max_lat = max(max_lat, lat)

    if min_lat == math.inf:
        raise InputError("No valid coordinates found in the region GeoJSON")

    return BoundingBox(north=max_lat, south=min_lat, east=max_lon, west=min_lon)


def segment_intersection(
    p1: Sequence[float],
    p2: Sequence[float],
    p3: Sequence[float],
    p4: Sequence[float],
    epsilon: float = PARALLEL_EPSILON,
) -> Optional[Coordinate]:
    """Return the crossing point of segments p1-p2 and p3-p4, or None.

    Parallel and collinear segments (``|denom| < epsilon``) never report an
    intersection, even when they overlap. Endpoint touches count.
    """
    x1, y1 = p1[0], p1[1]
    x2, y2 = p2[0], p2[1]
    x3, y3 = p3[0], p3[1]
    x4, y4 = p4[0], p4[1]

    denom = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
    if abs(denom) < epsilon:
        return None

    t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / denom
    u = -((x1 - x2) * (y1 - y3) - (y1 - y2) * (x1 - x3)) / denom

    if 0 <= t <= 1 and 0 <= u <= 1:
        return (x1 + t * (x2 - x1), y1 + t * (y2 - y1))
    return None


def polyline_intersections(
    line1: Sequence[Sequence[float]],
    line2: Sequence[Sequence[float]],
    epsilon: float = PARALLEL_EPSILON,
    first_only: bool = False,
    chunk_cells: int = 1_000_000,
) -> list[Coordinate]:
    """All crossings between the sub-segments of two polylines.

    Evaluates :func:`segment_intersection` for every pair of consecutive-
    vertex segments, vectorised with numpy, and returns the hits in
    row-major order (segments of ``line1`` outer, ``line2`` inner). With
    ``first_only`` only the first hit in that order is returned.
    """
    a = np.asarray(line1, dtype=float)
    b = np.asarray(line2, dtype=float)
    if a.ndim != 2 or b.ndim != 2 or len(a) < 2 or len(b) < 2:
        return []
    a = a[:, :2]
    b = b[:, :2]

    # Disjoint extents cannot cross.
    if (
        a[:, 0].max() < b[:, 0].min()
        or b[:, 0].max() < a[:, 0].min()
        or a[:, 1].max() < b[:, 1].min()
        or b[:, 1].max() < a[:, 1].min()
    ):
        return []

    x3 = b[:-1, 0][None, :]
    y3 = b[:-1, 1][None, :]
    x4 = b[1:, 0][None, :]
    y4 = b[1:, 1][None, :]

    n_segments = len(a) - 1
    rows_per_chunk = max(1, chunk_cells // max(1, len(b) - 1))
    hits: list[Coordinate] = []

    for start in range(0, n_segments, rows_per_chunk):
        stop = min(n_segments, start + rows_per_chunk)
        x1 = a[start:stop, 0][:, None]
        y1 = a[start:stop, 1][:, None]
        x2 = a[start + 1:stop + 1, 0][:, None]
        y2 = a[start + 1:stop + 1, 1][:, None]

        denom = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
        valid = np.abs(denom) >= epsilon
        with np.errstate(divide="ignore", invalid="ignore"):
            t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / denom
            u = -((x1 - x2) * (y1 - y3) - (y1 - y2) * (x1 - x3)) / denom
        mask = valid & (t >= 0) & (t <= 1) & (u >= 0) & (u <= 1)

        rows, cols = np.nonzero(mask)
        for r, c in zip(rows.tolist(), cols.tolist()):
            tt = float(t[r, c])
            px1, py1 = float(x1[r, 0]), float(y1[r, 0])
            px2, py2 = float(x2[r, 0]), float(y2[r, 0])
            hits.append((px1 + tt * (px2 - px1), py1 + tt * (py2 - py1)))
            if first_only:
                return hits

    return hits


def point_in_polygon(point: Sequence[float], ring: Sequence[Sequence[float]]) -> bool:
    """Even-odd ray casting test.

    The ring is treated as closed whether or not its last vertex repeats
    the first. Points exactly on an edge get whatever the edge comparison
    yields.
    """
    x, y = point[0], point[1]
    inside = False
    n = len(ring)
    j = n - 1
    for i in range(n):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def point_on_segment(
    point: Sequence[float],
    seg_start: Sequence[float],
    seg_end: Sequence[float],
    tolerance: float = VERTEX_TOLERANCE,
) -> bool:
    """Check whether ``point`` lies on the segment within ``tolerance``.

    Uses the raw (unnormalised) cross product and the projection onto the
    segment compared against the squared segment length.
    """
    px, py = point[0], point[1]
    x1, y1 = seg_start[0], seg_start[1]
    x2, y2 = seg_end[0], seg_end[1]

    cross = abs((py - y1) * (x2 - x1) - (px - x1) * (y2 - y1))
    if cross > tolerance:
        return False

    dot = (px - x1) * (x2 - x1) + (py - y1) * (y2 - y1)
    squared_length = (x2 - x1) ** 2 + (y2 - y1) ** 2
    return -tolerance <= dot <= squared_length + tolerance


def polyline_length_m(
    coords: Sequence[Sequence[float]],
    meters_per_degree: float = METERS_PER_DEGREE,
) -> float:
    """Planar length of a coordinate chain, degrees scaled to approximate metres."""
    length = 0.0
    for i in range(1, len(coords)):
        dx = coords[i][0] - coords[i - 1][0]
        dy = coords[i][1] - coords[i - 1][1]
        length += math.sqrt(dx * dx + dy * dy) * meters_per_degree
    return length


def round_key(point: Sequence[float], digits: int = 6) -> str:
    """Deduplication key: both coordinates fixed to ``digits`` decimals."""
    return f"{point[0]:.{digits}f},{point[1]:.{digits}f}"


def near(a: Sequence[float], b: Sequence[float], tolerance: float = VERTEX_TOLERANCE) -> bool:
    """True when both axes differ by less than ``tolerance``."""
    return abs(a[0] - b[0]) < tolerance and abs(a[1] - b[1]) < tolerance
