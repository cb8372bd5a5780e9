"""
Bounded spatial imputation of suppressed tract percentages.

A tract whose percentage was suppressed still has a known sample size N, and
suppression means the underlying count was small (1 to 5 by default). The
value therefore lies in [1/N*100, 5/N*100]. The imputer estimates the value
as the mean of the tract's neighbours and clamps the estimate to that range.

Resolution for a tract with a missing value, in this exact order:

    low defined and low > candidate    -> low
    high defined and high < candidate  -> high
    candidate defined                  -> candidate
    otherwise                          -> stays missing

The low check comes first, so it also wins when a malformed N gives low > high.
Neighbour means only read the values as they were before the pass; a value
filled in during the pass never feeds another tract.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import geopandas as gpd
import numpy as np
import pandas as pd
from tqdm import tqdm

from ..errors import InvalidDataError
from .spatial_ops import NeighborIndex

logger = logging.getLogger(__name__)

MEASURED = 'measured'
NEIGHBOR_MEAN = 'neighbor_mean'
LOW_BOUND = 'low_bound'
HIGH_BOUND = 'high_bound'
UNRESOLVED = 'unresolved'


def compute_bounds(sample_size: float,
                   min_count: int = 1,
                   max_count: int = 5,
                   scale: float = 100.0) -> Tuple[float, float]:
    """
    Percentage range implied by a suppressed count.

    Args:
        sample_size: Number of individuals tested (N)
        min_count: Smallest possible suppressed count
        max_count: Largest possible suppressed count
        scale: 100 for percentages

    Returns:
        (low, high), both NaN when N is missing or not positive
    """
    if sample_size is None or pd.isna(sample_size) or sample_size <= 0:
        return math.nan, math.nan
    return min_count / sample_size * scale, max_count / sample_size * scale


def resolve_value(candidate: float, low: float, high: float) -> Tuple[float, str]:
    """
    Apply the clamping policy to a neighbour estimate.

    Returns:
        (value, branch) where branch is one of low_bound, high_bound,
        neighbor_mean or unresolved
    """
    has_candidate = not pd.isna(candidate)

    if has_candidate and not pd.isna(low) and low > candidate:
        return low, LOW_BOUND
    if has_candidate and not pd.isna(high) and high < candidate:
        return high, HIGH_BOUND
    if has_candidate:
        return candidate, NEIGHBOR_MEAN
    return math.nan, UNRESOLVED


def validate_measurements(dataset: pd.DataFrame, *columns: str) -> None:
    """
    Check that present values in `columns` are numeric and non-negative.

    Raises:
        InvalidDataError: On a missing column, a non-numeric value or a negative value
    """
    for column in columns:
        if column not in dataset.columns:
            raise InvalidDataError(f"Dataset is missing column '{column}'")

        values = dataset[column]
        numeric = pd.to_numeric(values, errors='coerce')
        non_numeric = numeric.isna() & values.notna()
        if non_numeric.any():
            examples = values[non_numeric].unique()[:5].tolist()
            raise InvalidDataError(f"Column '{column}' has non-numeric values: {examples}")

        if np.isinf(numeric.to_numpy(dtype=float)).any():
            raise InvalidDataError(f"Column '{column}' has infinite values")

        negative = numeric < 0
        if negative.any():
            raise InvalidDataError(f"Column '{column}' has {int(negative.sum())} negative values")


@dataclass
class ImputationResult:
    """Outcome of one imputation pass."""
    data: gpd.GeoDataFrame
    target_column: str
    source_column: str
    imputed_ids: List[str] = field(default_factory=list)
    unresolved_ids: List[str] = field(default_factory=list)

    @property
    def n_imputed(self) -> int:
        return len(self.imputed_ids)

    @property
    def n_unresolved(self) -> int:
        return len(self.unresolved_ids)

    def summary(self) -> Dict[str, int]:
        """Count of units per resolution branch."""
        counts = self.data[self.source_column].value_counts()
        summary = {branch: int(counts.get(branch, 0))
                   for branch in (MEASURED, NEIGHBOR_MEAN, LOW_BOUND, HIGH_BOUND, UNRESOLVED)}
        summary['total'] = len(self.data)
        return summary


class BoundedSpatialImputer:
    """Fill missing percentages with bounded neighbour averages."""

    def __init__(self,
                 target_column: str,
                 sample_size_column: str,
                 id_column: str,
                 min_count: int = 1,
                 max_count: int = 5,
                 scale: float = 100.0):
        """
        Initialize the imputer.

        Args:
            target_column: Percentage column to fill
            sample_size_column: Column holding the number of individuals tested
            id_column: Identifier column matching the neighbour index keys
            min_count: Smallest possible suppressed count
            max_count: Largest possible suppressed count
            scale: Multiplier turning a fraction into the target's unit
        """
        self.target_column = target_column
        self.sample_size_column = sample_size_column
        self.id_column = id_column
        self.min_count = min_count
        self.max_count = max_count
        self.scale = scale
        self.source_column = f"{target_column}_source"

    def impute(self, dataset: gpd.GeoDataFrame, neighbor_index: NeighborIndex) -> ImputationResult:
        """
        Fill every missing target value that can be resolved.

        Args:
            dataset: Merged dataset; not modified
            neighbor_index: Neighbours for each unit id

        Returns:
            ImputationResult holding a copy of the dataset with filled values,
            a `<target>_source` column and the ids that stayed missing
        """
        if self.id_column not in dataset.columns:
            raise InvalidDataError(f"Dataset is missing identifier column '{self.id_column}'")
        validate_measurements(dataset, self.target_column, self.sample_size_column)

        result = dataset.copy()
        ids = result[self.id_column].astype(str).tolist()
        original = pd.to_numeric(result[self.target_column]).to_numpy(dtype=float)
        sample_sizes = pd.to_numeric(result[self.sample_size_column]).to_numpy(dtype=float)

        # Snapshot of measured values; every neighbour lookup reads from here
        snapshot = {unit_id: value for unit_id, value in zip(ids, original) if not np.isnan(value)}

        filled = original.copy()
        sources = np.where(np.isnan(original), UNRESOLVED, MEASURED).astype(object)
        if self.source_column in result.columns:
            # Keep labels from an earlier pass for values that are already present
            previous = result[self.source_column].to_numpy(dtype=object)
            keep = ~np.isnan(original) & pd.notna(previous)
            sources[keep] = previous[keep]
        imputed_ids = []
        unresolved_ids = []

        missing_positions = np.flatnonzero(np.isnan(original))
        logger.info(f"Imputing {len(missing_positions)} of {len(ids)} units missing '{self.target_column}'")

        for position in tqdm(missing_positions, desc="Imputing", leave=False):
            unit_id = ids[position]
            candidate = self._neighbor_mean(unit_id, neighbor_index, snapshot)
            low, high = compute_bounds(sample_sizes[position], self.min_count, self.max_count, self.scale)
            value, branch = resolve_value(candidate, low, high)

            sources[position] = branch
            if branch == UNRESOLVED:
                unresolved_ids.append(unit_id)
            else:
                filled[position] = value
                imputed_ids.append(unit_id)

        result[self.target_column] = filled
        result[self.source_column] = sources

        if unresolved_ids:
            logger.warning(
                f"{len(unresolved_ids)} units still missing '{self.target_column}' after imputation: "
                f"{unresolved_ids[:20]}{' ...' if len(unresolved_ids) > 20 else ''}"
            )
        logger.info(f"Imputed {len(imputed_ids)} units")

        return ImputationResult(
            data=result,
            target_column=self.target_column,
            source_column=self.source_column,
            imputed_ids=imputed_ids,
            unresolved_ids=unresolved_ids,
        )

    def _neighbor_mean(self, unit_id: str, neighbor_index: NeighborIndex, snapshot: Dict[str, float]) -> float:
        if unit_id not in neighbor_index:
            logger.debug(f"Unit {unit_id} is not in the neighbour index")
            return math.nan

        values = [snapshot[n] for n in neighbor_index.neighbors_of(unit_id) if n in snapshot]
        if not values:
            return math.nan
        return float(np.mean(values))
