"""
Joins the measured layer, the reference boundary layer and tabular attributes
into one record per tract.

Column precedence is explicit. For a column present in both layers:

- columns named in `reference_fields` (geometry always, usually the display
  name too) take the reference value;
- every other shared column is a measurement field and takes the measured value.

Either way the losing side only supplies a value the winning side lacks, which
is how a tract that exists in one layer only keeps its attributes.
"""

import logging
from typing import Iterable, List, Sequence

import geopandas as gpd
import numpy as np
import pandas as pd

from ..errors import InvalidDataError

logger = logging.getLogger(__name__)

COVERAGE_COLUMN = 'coverage_status'

_INDICATOR_LABELS = {
    'both': 'both',
    'left_only': 'reference_only',
    'right_only': 'measured_only',
}


def find_coverage_gaps(measured: pd.DataFrame,
                       reference: pd.DataFrame,
                       id_column: str) -> List[str]:
    """
    List reference units that the measured layer does not cover.

    Args:
        measured: Partial measurement layer
        reference: Complete boundary layer
        id_column: Identifier column shared by both layers

    Returns:
        Identifiers missing from the measured layer, in reference order
    """
    measured_ids = set(measured[id_column])
    gaps = [unit_id for unit_id in reference[id_column] if unit_id not in measured_ids]

    logger.info(f"Measured layer covers {len(reference) - len(gaps)} of {len(reference)} reference units")
    if gaps:
        logger.info(f"{len(gaps)} reference units have no measured record")
    return gaps


def _coalesce(primary: pd.Series, secondary: pd.Series) -> pd.Series:
    """Take `primary`, falling back to `secondary` where primary is missing."""
    return primary.combine_first(secondary)


def _coalesce_geometry(primary: pd.Series, secondary: pd.Series, crs) -> gpd.GeoSeries:
    missing = primary.isna().to_numpy()
    values = np.where(missing,
                      secondary.to_numpy(dtype=object),
                      primary.to_numpy(dtype=object))
    return gpd.GeoSeries(values, index=primary.index, crs=crs)


def merge_collections(measured: gpd.GeoDataFrame,
                      reference: gpd.GeoDataFrame,
                      id_column: str,
                      reference_fields: Iterable[str] = ()) -> gpd.GeoDataFrame:
    """
    Full outer join of the measured and reference layers on the unit identifier.

    Args:
        measured: Partial measurement layer (may lack units)
        reference: Complete boundary layer
        id_column: Identifier column shared by both layers
        reference_fields: Shared columns where the reference layer wins;
            the geometry column is always included

    Returns:
        GeoDataFrame in the reference CRS with one row per unit: reference units
        in reference order, then measured-only units in measured order, and a
        `coverage_status` column (both / reference_only / measured_only)
    """
    for label, frame in (('measured', measured), ('reference', reference)):
        if id_column not in frame.columns:
            raise InvalidDataError(f"{label} layer is missing identifier column '{id_column}'")
        if frame[id_column].duplicated().any():
            raise InvalidDataError(f"{label} layer has duplicate identifiers")

    geometry_name = reference.geometry.name
    measured = measured.copy()
    if measured.geometry.name != geometry_name:
        measured = measured.rename_geometry(geometry_name)
    if measured.crs is not None and reference.crs is not None and measured.crs != reference.crs:
        logger.info(f"Reprojecting measured layer from {measured.crs} to {reference.crs}")
        measured = measured.to_crs(reference.crs)

    reference_wins = set(reference_fields) | {geometry_name}
    shared = [c for c in reference.columns if c in measured.columns and c != id_column]

    joined = pd.merge(
        pd.DataFrame(reference),
        pd.DataFrame(measured),
        on=id_column,
        how='outer',
        suffixes=('__reference', '__measured'),
        indicator=True,
    )

    # Outer merges sort keys; restore reference-then-measured order
    order = list(reference[id_column])
    reference_ids = set(order)
    order += [unit_id for unit_id in measured[id_column] if unit_id not in reference_ids]
    joined = joined.set_index(id_column).loc[order].reset_index()

    for column in shared:
        from_reference = joined.pop(f"{column}__reference")
        from_measured = joined.pop(f"{column}__measured")
        if column == geometry_name:
            joined[column] = _coalesce_geometry(from_reference, from_measured, reference.crs)
        elif column in reference_wins:
            joined[column] = _coalesce(from_reference, from_measured)
        else:
            joined[column] = _coalesce(from_measured, from_reference)

    joined[COVERAGE_COLUMN] = joined.pop('_merge').astype(str).map(_INDICATOR_LABELS)

    columns = [id_column]
    columns += [c for c in reference.columns if c not in (id_column, geometry_name)]
    columns += [c for c in measured.columns if c not in reference.columns]
    columns += [COVERAGE_COLUMN, geometry_name]

    merged = gpd.GeoDataFrame(joined[columns], geometry=geometry_name, crs=reference.crs)

    counts = merged[COVERAGE_COLUMN].value_counts()
    logger.info(
        f"Merged {len(merged)} units: {counts.get('both', 0)} in both layers, "
        f"{counts.get('reference_only', 0)} reference only, {counts.get('measured_only', 0)} measured only"
    )
    return merged


def join_tabular(dataset: gpd.GeoDataFrame,
                 table: pd.DataFrame,
                 id_column: str,
                 columns: Sequence[str] = ()) -> gpd.GeoDataFrame:
    """
    Left join tabular attributes onto the merged dataset.

    The dataset wins every column name collision; colliding table columns are
    dropped. Units are neither added nor removed.

    Args:
        dataset: Merged spatial dataset
        table: Per-unit attributes with a unique identifier column
        id_column: Identifier column shared by both
        columns: Optional subset of table columns to bring in

    Returns:
        GeoDataFrame with the table attributes appended
    """
    if id_column not in table.columns:
        raise InvalidDataError(f"Table is missing identifier column '{id_column}'")
    if table[id_column].duplicated().any():
        raise InvalidDataError("Table has duplicate identifiers")

    if columns:
        missing = [c for c in columns if c not in table.columns]
        if missing:
            raise InvalidDataError(f"Table is missing requested columns: {missing}")
        table = table[[id_column, *columns]]

    collisions = [c for c in table.columns if c != id_column and c in dataset.columns]
    if collisions:
        logger.warning(f"Dropping table columns already present in the dataset: {collisions}")
        table = table.drop(columns=collisions)

    unmatched = int((~dataset[id_column].isin(table[id_column])).sum())
    if unmatched:
        logger.warning(f"{unmatched} units have no matching row in the table")

    joined = dataset.merge(table, on=id_column, how='left')
    logger.info(f"Joined {len(table.columns) - 1} table attributes onto {len(joined)} units")
    return joined
