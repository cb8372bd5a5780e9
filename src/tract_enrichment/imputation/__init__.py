"""
Spatial imputation for tract measurements.

This module provides functionality for:
1. Finding the K nearest tracts for every tract (NeighborIndex)
2. Filling missing percentages with neighbour means clamped to the
   range implied by suppressed counts
3. Running the whole enrichment workflow (EnrichmentPipeline)
"""

from .spatial_ops import NeighborIndex, build_neighbor_index, compute_centroids
from .imputer import (
    BoundedSpatialImputer,
    ImputationResult,
    compute_bounds,
    resolve_value,
    validate_measurements,
)

__all__ = [
    "NeighborIndex",
    "build_neighbor_index",
    "compute_centroids",
    "BoundedSpatialImputer",
    "ImputationResult",
    "compute_bounds",
    "resolve_value",
    "validate_measurements",
]
