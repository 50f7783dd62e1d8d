"""Tests for marker capping and labelling."""

from __future__ import annotations

import pytest

from telemetry_analytics.models import MarkerLabel
from telemetry_analytics.rendering import cluster_markers, sample_intermediate_indices


@pytest.mark.parametrize("count", [2, 3, 10, 500])
def test_two_markers_are_start_and_end(count) -> None:
    points = list(range(count))
    markers = cluster_markers(points, 2)
    assert [m.label for m in markers] == [MarkerLabel.START, MarkerLabel.END]
    assert markers[0].point == 0
    assert markers[1].point == count - 1


@pytest.mark.parametrize("count, cap", [(21, 20), (1000, 20), (50, 7), (4, 3)])
def test_over_cap_labels_and_order(count, cap) -> None:
    points = list(range(count))
    markers = cluster_markers(points, cap)
    assert len(markers) <= cap
    assert markers[0].label is MarkerLabel.START
    assert markers[-1].label is MarkerLabel.END
    assert all(m.label is None for m in markers[1:-1])
    drawn = [m.point for m in markers]
    assert drawn == sorted(drawn)
    assert len(set(drawn)) == len(drawn)


@pytest.mark.parametrize("count, cap", [(3, 20), (5, 20), (20, 20), (3, 3)])
def test_within_cap_keeps_every_point_unlabelled(count, cap) -> None:
    points = list(range(count))
    markers = cluster_markers(points, cap)
    assert [m.point for m in markers] == points
    assert all(m.label is None for m in markers)


def test_long_path_fills_the_cap() -> None:
    markers = cluster_markers(list(range(1000)), 20)
    assert len(markers) == 20


def test_single_point_and_empty() -> None:
    markers = cluster_markers(["only"], 20)
    assert len(markers) == 1
    assert markers[0].label is None
    assert cluster_markers([], 20) == []
    assert cluster_markers(None) == []


def test_cap_below_two_is_treated_as_two() -> None:
    assert len(cluster_markers(list(range(10)), 0)) == 2


def test_sample_intermediate_indices_are_interior_and_unique() -> None:
    picks = sample_intermediate_indices(100, 8)
    assert len(picks) == 8
    assert all(0 < i < 99 for i in picks)
    assert picks == sorted(set(picks))
    assert sample_intermediate_indices(5, 10) == [1, 2, 3]
    assert sample_intermediate_indices(2, 3) == []
