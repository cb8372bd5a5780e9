"""
Spatial operations for finding the nearest tracts to each tract.

Each tract is reduced to its centroid and matched with its K nearest tracts,
itself included. The resulting NeighborIndex drives the spatial imputation:
a tract without a measurement borrows the average of its neighbours.

1. Distance Calculations:
   - Plain Euclidean distance between centroids in the layer's CRS
   - An optional projection (e.g. Albers Equal Area) can be applied first

2. Nearest Neighbor Search:
   - A KD-tree gives each tract's K-th neighbour distance
   - Every tract within that distance is then ranked by (distance, input position),
     so equal distances always resolve to the tract seen first
"""

import logging
import warnings
from collections.abc import Mapping
from types import MappingProxyType
from typing import Dict, Iterator, Optional, Sequence, Tuple

import geopandas as gpd
import numpy as np
import pandas as pd
import pyproj
from scipy.spatial import cKDTree
from tqdm import tqdm

from ..errors import InvalidDataError, InvalidParameterError

logger = logging.getLogger(__name__)

# Relative slack on the K-th distance so exact ties are not lost to rounding in the tree
_RADIUS_SLACK = 1e-9


class NeighborIndex(Mapping):
    """Immutable mapping of unit id to its K nearest unit ids, nearest first."""

    def __init__(self,
                 k: int,
                 neighbors: Dict[str, Tuple[str, ...]],
                 distances: Dict[str, Tuple[float, ...]]):
        self._k = k
        self._neighbors = MappingProxyType(dict(neighbors))
        self._distances = MappingProxyType(dict(distances))

    @property
    def k(self) -> int:
        return self._k

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(self._neighbors)

    def neighbors_of(self, unit_id: str) -> Tuple[str, ...]:
        return self._neighbors[unit_id]

    def distances_of(self, unit_id: str) -> Tuple[float, ...]:
        return self._distances[unit_id]

    def __getitem__(self, unit_id: str) -> Tuple[str, ...]:
        return self._neighbors[unit_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._neighbors)

    def __len__(self) -> int:
        return len(self._neighbors)

    def __repr__(self) -> str:
        return f"NeighborIndex(units={len(self)}, k={self.k})"

    def to_frame(self) -> pd.DataFrame:
        """Long-format view: one row per (unit, neighbour) pair."""
        records = []
        for unit_id, neighbor_ids in self._neighbors.items():
            for rank, (neighbor_id, distance) in enumerate(zip(neighbor_ids, self._distances[unit_id])):
                records.append({
                    'unit_id': unit_id,
                    'rank': rank,
                    'neighbor_id': neighbor_id,
                    'distance': distance,
                })
        return pd.DataFrame.from_records(records, columns=['unit_id', 'rank', 'neighbor_id', 'distance'])


def compute_centroids(units: gpd.GeoDataFrame, projection: Optional[str] = None) -> np.ndarray:
    """
    Extract centroid coordinates as an (n, 2) array.

    Args:
        units: Unit polygons
        projection: Optional CRS to project to before taking centroids

    Returns:
        Array of centroid x/y coordinates in input order
    """
    geometry = units.geometry

    if projection is not None:
        if geometry.crs is None:
            raise InvalidParameterError("Cannot project units without a CRS")
        geometry = geometry.to_crs(pyproj.CRS.from_user_input(projection))

    unusable = geometry.isna() | geometry.is_empty
    if unusable.any():
        raise InvalidDataError(f"{int(unusable.sum())} units have missing or empty geometry")

    with warnings.catch_warnings():
        # Distances are taken in the input CRS unless a projection is configured
        warnings.filterwarnings("ignore", message="Geometry is in a geographic CRS", category=UserWarning)
        centroids = geometry.centroid

    return np.column_stack([centroids.x.to_numpy(), centroids.y.to_numpy()])


def _rank_candidates(coords: np.ndarray, position: int, candidates: Sequence[int], k: int) -> Tuple[np.ndarray, np.ndarray]:
    candidates = np.asarray(sorted(candidates), dtype=int)
    offsets = coords[candidates] - coords[position]
    distances = np.hypot(offsets[:, 0], offsets[:, 1])
    # Self first, then distance, then input position
    not_self = candidates != position
    order = np.lexsort((candidates, distances, not_self))[:k]
    return candidates[order], distances[order]


def build_neighbor_index(units: gpd.GeoDataFrame,
                         id_column: str,
                         k: int,
                         projection: Optional[str] = None) -> NeighborIndex:
    """
    Find the K nearest units (by centroid distance) for every unit.

    Args:
        units: Complete unit collection
        id_column: Identifier column
        k: Number of neighbours per unit, the unit itself included
        projection: Optional CRS for distance calculations

    Returns:
        NeighborIndex over every unit in `units`

    Raises:
        InvalidParameterError: If k < 1 or k exceeds the number of units
        InvalidDataError: If identifiers repeat or geometry is missing
    """
    n_units = len(units)
    if k < 1 or k > n_units:
        raise InvalidParameterError(f"Neighbour count k={k} must be between 1 and the number of units ({n_units})")

    if id_column not in units.columns:
        raise InvalidDataError(f"Units are missing identifier column '{id_column}'")
    ids = units[id_column].astype(str).tolist()
    if len(set(ids)) != n_units:
        raise InvalidDataError("Unit identifiers must be unique to build a neighbour index")

    coords = compute_centroids(units, projection)

    # Build KD-tree for efficient nearest neighbor search
    tree = cKDTree(coords)
    kth_distances, _ = tree.query(coords, k=k)
    kth_distances = np.asarray(kth_distances).reshape(n_units, -1)[:, -1]

    neighbors = {}
    distances = {}
    for position in tqdm(range(n_units), desc="Building neighbour index", leave=False):
        radius = kth_distances[position]
        candidates = tree.query_ball_point(coords[position], r=radius * (1 + _RADIUS_SLACK) + _RADIUS_SLACK)
        chosen, chosen_distances = _rank_candidates(coords, position, candidates, k)
        neighbors[ids[position]] = tuple(ids[j] for j in chosen)
        distances[ids[position]] = tuple(float(d) for d in chosen_distances)

    logger.info(f"Built neighbour index for {n_units} units with k={k}")
    return NeighborIndex(k, neighbors, distances)
