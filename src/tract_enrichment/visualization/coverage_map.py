"""
Static map showing where tract values were measured, imputed or left missing.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import geopandas as gpd
import matplotlib.pyplot as plt
from matplotlib.figure import Figure
from matplotlib.patches import Patch, Rectangle

from ..errors import InvalidDataError
from ..imputation.imputer import HIGH_BOUND, LOW_BOUND, MEASURED, NEIGHBOR_MEAN, UNRESOLVED

logger = logging.getLogger(__name__)

SOURCE_STYLES = {
    MEASURED: ('#2B8CBE', 'Measured'),
    NEIGHBOR_MEAN: ('#FDAE6B', 'Neighbour mean'),
    LOW_BOUND: ('#E6550D', 'Raised to lower bound'),
    HIGH_BOUND: ('#A63603', 'Capped at upper bound'),
    UNRESOLVED: ('#BDBDBD', 'Still missing'),
}


def add_info_box(ax, dataset: gpd.GeoDataFrame, source_column: str):
    """Add an information box with imputation counts to the map."""
    counts = dataset[source_column].value_counts()
    n_imputed = int(sum(counts.get(branch, 0) for branch in (NEIGHBOR_MEAN, LOW_BOUND, HIGH_BOUND)))

    box = Rectangle((0.02, 0.02), 0.26, 0.2,
                    transform=ax.transAxes,
                    facecolor='white',
                    edgecolor='#666666',
                    alpha=0.85,
                    zorder=2,
                    linewidth=1,
                    clip_on=False)
    ax.add_patch(box)

    ax.text(0.03, 0.19, 'IMPUTATION',
            transform=ax.transAxes,
            fontsize=12,
            fontweight='bold',
            family='sans-serif',
            color='#2B8CBE',
            zorder=3)

    lines = [
        (f'{len(dataset):,}', 'Total units'),
        (f'{n_imputed:,}', 'Imputed'),
        (f'{int(counts.get(UNRESOLVED, 0)):,}', 'Still missing'),
    ]
    y_pos = 0.15
    for number, label in lines:
        ax.text(0.03, y_pos, number,
                transform=ax.transAxes,
                fontsize=12,
                fontweight='bold',
                family='sans-serif',
                color='#08519C',
                zorder=3)
        ax.text(0.12, y_pos, label,
                transform=ax.transAxes,
                fontsize=10,
                family='sans-serif',
                color='#666666',
                zorder=3)
        y_pos -= 0.04


def plot_imputation_coverage(dataset: gpd.GeoDataFrame,
                             source_column: str,
                             output_path: Optional[Union[str, Path]] = None,
                             title: str = 'Imputation coverage') -> Figure:
    """Create a map of units colored by how their value was obtained.

    Args:
        dataset: Imputed dataset
        source_column: Column holding the resolution branch per unit
        output_path: Optional image file to save the map to
        title: Map title

    Returns:
        The matplotlib Figure
    """
    if source_column not in dataset.columns:
        raise InvalidDataError(f"Column '{source_column}' not found in dataset")

    fig, ax = plt.subplots(figsize=(12, 10))

    handles = []
    for branch, (color, label) in SOURCE_STYLES.items():
        subset = dataset[dataset[source_column] == branch]
        if subset.empty:
            continue
        subset.plot(ax=ax, color=color, edgecolor='white', linewidth=0.3)
        handles.append(Patch(facecolor=color, edgecolor='#666666', label=f'{label} ({len(subset)})'))

    ax.set_aspect('equal')
    ax.axis('off')
    ax.set_title(title, pad=20, fontsize=14)
    if handles:
        ax.legend(handles=handles, loc='upper right', frameon=True)

    add_info_box(ax, dataset, source_column)

    if output_path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=300, bbox_inches='tight', pad_inches=0.2)
        logger.info(f"Coverage map saved to {output_path}")

    return fig
