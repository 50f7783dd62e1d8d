"""Adaptive path simplification for map rendering.

The reduction runs Douglas-Peucker (via shapely) with a tolerance searched
for against the requested point budget, then decimates whatever is left over
the budget. The original first and last points are always kept.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray
from shapely.geometry import LineString

from ..config import (
    SIMPLIFY_ACCEPT_RATIO,
    SIMPLIFY_DEFAULT_MAX_POINTS,
    SIMPLIFY_EXTENT_DIVISOR,
    SIMPLIFY_SEARCH_HIGH_FACTOR,
    SIMPLIFY_SEARCH_ITERATIONS,
    SIMPLIFY_SEARCH_LOW_FACTOR,
)
from ..geometry import extract_lat_lng

logger = logging.getLogger(__name__)

CoordArray = NDArray[np.float64]
IndexArray = NDArray[np.int64]


def _as_coord_array(points: Iterable[Sequence[float]]) -> CoordArray:
    """Convert an iterable of 2D coordinates into a float64 array."""

    array = np.asarray(list(points), dtype=float)
    if array.size == 0:
        return np.empty((0, 2), dtype=float)
    if array.ndim != 2 or array.shape[1] != 2:
        raise ValueError("Expected a sequence of 2D coordinates")
    return array


def douglas_peucker_indices(coords: CoordArray, tolerance: float) -> IndexArray:
    """Return indices of ``coords`` kept by Douglas-Peucker at ``tolerance``.

    Coordinates are (x, y) pairs in any planar unit; the tolerance uses the
    same unit. The first and last indices are always included.
    """

    count = len(coords)
    if count <= 2:
        return np.arange(count, dtype=np.int64)
    line = LineString(coords)
    simplified = _as_coord_array(line.simplify(max(tolerance, 0.0), preserve_topology=False).coords)

    # Simplified vertices are a subsequence of the input; walk forward to
    # recover their positions. Endpoints are pinned even for closed loops.
    kept = [0]
    cursor = 1
    for vertex in simplified[1:-1]:
        while cursor < count - 1 and not np.array_equal(coords[cursor], vertex):
            cursor += 1
        if cursor >= count - 1:
            break
        kept.append(cursor)
        cursor += 1
    kept.append(count - 1)
    return np.asarray(kept, dtype=np.int64)


def decimate_indices(indices: IndexArray, max_points: int) -> IndexArray:
    """Uniformly down-sample an index array while preserving its endpoints."""

    max_points = max(2, max_points)
    count = indices.shape[0]
    if count <= max_points:
        return indices
    picks = np.unique(np.linspace(0, count - 1, num=max_points).round().astype(np.int64))
    return indices[picks]


def adaptive_tolerance(coords: CoordArray, target_points: int) -> float:
    """Choose a Douglas-Peucker tolerance for roughly ``target_points`` vertices.

    The search starts from the bounding-box extent divided by
    ``SIMPLIFY_EXTENT_DIVISOR`` and bisects between fixed multiples of it,
    stopping once the result lands between ``SIMPLIFY_ACCEPT_RATIO`` of the
    target and the target itself. Tightly clustered paths therefore get a
    proportionally smaller tolerance than sprawling ones.
    """

    if len(coords) <= target_points:
        return 0.0
    extent = float(np.max(np.ptp(coords, axis=0)))
    base = extent / SIMPLIFY_EXTENT_DIVISOR
    if base <= 0:
        return 0.0

    low = base * SIMPLIFY_SEARCH_LOW_FACTOR
    high = base * SIMPLIFY_SEARCH_HIGH_FACTOR
    best = base
    for _ in range(SIMPLIFY_SEARCH_ITERATIONS):
        mid = (low + high) / 2.0
        kept = len(douglas_peucker_indices(coords, mid))
        best = mid
        if kept > target_points:
            low = mid
        elif kept < target_points * SIMPLIFY_ACCEPT_RATIO:
            high = mid
        else:
            break
    return best


def simplify_indices(points: Sequence[Any], max_points: int) -> List[int]:
    """Return the sorted indices of ``points`` that survive simplification."""

    count = len(points)
    budget = max(2, max_points)
    if count <= budget:
        return list(range(count))

    valid: List[int] = []
    coords: List[Tuple[float, float]] = []
    for index, point in enumerate(points):
        latlng = extract_lat_lng(point)
        if latlng is None:
            continue
        valid.append(index)
        # shapely works in (x, y) = (lng, lat)
        coords.append((latlng[1], latlng[0]))

    if len(valid) >= 3:
        coord_array = _as_coord_array(coords)
        tolerance = adaptive_tolerance(coord_array, budget)
        kept_local = douglas_peucker_indices(coord_array, tolerance)
        kept = np.asarray(valid, dtype=np.int64)[kept_local]
    else:
        kept = np.asarray(valid, dtype=np.int64)

    merged = np.union1d(kept, np.asarray([0, count - 1], dtype=np.int64))
    result = decimate_indices(merged, budget)
    if len(merged) > budget:
        logger.debug(
            "Decimated simplified path from %s to %s points", len(merged), len(result)
        )
    return [int(i) for i in result]


def simplify_path(points: Optional[Sequence[Any]], max_points: int = SIMPLIFY_DEFAULT_MAX_POINTS) -> List[Any]:
    """Reduce a path to at most ``max_points`` points for rendering.

    Args:
        points: Telemetry points, ``(lat, lng)`` pairs or lat/lng mappings.
        max_points: Point budget; values below 2 are treated as 2.

    Returns:
        An order-preserving subset of ``points`` whose first and last entries
        are the original endpoints. Inputs already within budget come back
        unchanged; empty input gives an empty list.
    """

    if not points:
        return []
    if len(points) <= max(2, max_points):
        return list(points)
    return [points[i] for i in simplify_indices(points, max_points)]
