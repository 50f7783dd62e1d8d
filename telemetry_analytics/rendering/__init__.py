"""Rendering-oriented reductions: simplified paths and capped marker sets."""

from .markers import cluster_markers, sample_intermediate_indices
from .simplification import (
    adaptive_tolerance,
    decimate_indices,
    douglas_peucker_indices,
    simplify_indices,
    simplify_path,
)

__all__ = [
    "cluster_markers",
    "sample_intermediate_indices",
    "adaptive_tolerance",
    "decimate_indices",
    "douglas_peucker_indices",
    "simplify_indices",
    "simplify_path",
]
