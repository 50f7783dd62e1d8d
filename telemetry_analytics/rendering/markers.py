"""Cap the number of point markers drawn for a path."""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

import numpy as np

from ..config import MARKERS_DEFAULT_MAX
from ..models import Marker, MarkerLabel


def sample_intermediate_indices(count: int, slots: int) -> List[int]:
    """Pick up to ``slots`` unique indices strictly between 0 and ``count - 1``.

    Indices are spread uniformly over the interior span and returned in
    ascending order.
    """

    interior = count - 2
    if slots <= 0 or interior <= 0:
        return []
    if slots >= interior:
        return list(range(1, count - 1))
    positions = np.linspace(0, count - 1, num=slots + 2)[1:-1]
    picks = np.unique(positions.round().astype(np.int64))
    return [int(i) for i in picks]


def cluster_markers(
    points: Optional[Sequence[Any]],
    max_markers: int = MARKERS_DEFAULT_MAX,
) -> List[Marker]:
    """Reduce a path to at most ``max_markers`` display markers.

    Paths within the cap become one unlabelled marker per point. Longer paths
    keep the first point labelled ``Start``, the last labelled ``End`` and up
    to ``max_markers - 2`` uniformly sampled points in between. A cap of 2
    always yields exactly ``Start`` and ``End`` for two or more points. A cap
    below 2 is treated as 2.
    """

    if not points:
        return []
    cap = max(2, max_markers)
    if len(points) == 1 or (len(points) <= cap and cap > 2):
        return [Marker(point=point) for point in points]

    middle = sample_intermediate_indices(len(points), cap - 2)

    markers = [Marker(point=points[0], label=MarkerLabel.START)]
    markers.extend(Marker(point=points[i]) for i in middle)
    markers.append(Marker(point=points[-1], label=MarkerLabel.END))
    return markers
