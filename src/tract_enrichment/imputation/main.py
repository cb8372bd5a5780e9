"""
Main module for enriching census tracts with imputed measurements.
Orchestrates the process of:

1. Loading the measured layer, the reference boundary layer and tabular attributes
2. Reporting reference tracts the measured layer does not cover
3. Merging everything into one record per tract (`preprocessing.merger`)
4. Building the neighbour index over the reference tracts (`spatial_ops.py`)
5. Filling missing values with bounded neighbour means (`imputer.py`)
6. Rendering the interactive choropleth and the coverage map

Every stage returns a new dataset; the pipeline owns the intermediates.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import geopandas as gpd
import matplotlib.pyplot as plt
import pandas as pd

from ..config import MAPS_DIR, load_settings
from ..preprocessing.merger import find_coverage_gaps, join_tabular, merge_collections
from ..sources.data_loader import DataLoader
from ..visualization.choropleth import create_choropleth
from ..visualization.coverage_map import plot_imputation_coverage
from ..visualization.labels import build_labels
from .imputer import BoundedSpatialImputer, ImputationResult
from .spatial_ops import NeighborIndex, build_neighbor_index

logger = logging.getLogger(__name__)

LABEL_COLUMN = 'label'


@dataclass
class PipelineResult:
    """Everything a pipeline run produced."""
    dataset: gpd.GeoDataFrame
    neighbor_index: NeighborIndex
    imputation: ImputationResult
    coverage_gaps: List[str] = field(default_factory=list)
    output_files: Dict[str, Path] = field(default_factory=dict)


class EnrichmentPipeline:
    """
    Runs the enrichment workflow end to end.

    Stages can also be called one at a time (`merge`, `impute`, `render`)
    with datasets loaded elsewhere.
    """

    def __init__(self,
                 settings: Optional[Dict[str, Any]] = None,
                 output_dir: Path = MAPS_DIR,
                 data_loader: Optional[DataLoader] = None):
        """
        Initialize the pipeline.

        Args:
            settings: Settings dictionary (loaded from the default file if None)
            output_dir: Directory for rendered maps
            data_loader: Loader to use instead of one built from settings
        """
        self.settings = settings or load_settings()
        self.output_dir = Path(output_dir)
        self.data_loader = data_loader or DataLoader(self.settings)

        dataset = self.settings['dataset']
        imputation = self.settings['imputation']
        self.id_column = dataset['id_column']
        self.display_name_column = dataset.get('display_name_column')
        self.target_column = dataset['target_column']
        self.sample_size_column = dataset['sample_size_column']
        self.n_neighbors = int(imputation['n_neighbors'])
        self.projection = imputation.get('projection')

        self.imputer = BoundedSpatialImputer(
            target_column=self.target_column,
            sample_size_column=self.sample_size_column,
            id_column=self.id_column,
            min_count=imputation['suppressed_min_count'],
            max_count=imputation['suppressed_max_count'],
        )

        logger.info(f"Initialized EnrichmentPipeline for '{self.target_column}' with k={self.n_neighbors}")

    def merge(self,
              measured: gpd.GeoDataFrame,
              reference: gpd.GeoDataFrame,
              tabular: Optional[pd.DataFrame] = None) -> Tuple[gpd.GeoDataFrame, List[str]]:
        """
        Merge the sources into one record per tract.

        Returns:
            Tuple of (merged dataset, reference ids missing from the measured layer)
        """
        gaps = find_coverage_gaps(measured, reference, self.id_column)

        reference_fields = [self.display_name_column] if self.display_name_column else []
        merged = merge_collections(measured, reference, self.id_column, reference_fields=reference_fields)

        if tabular is not None:
            merged = join_tabular(merged, tabular, self.id_column)

        return merged, gaps

    def impute(self,
               merged: gpd.GeoDataFrame,
               reference: gpd.GeoDataFrame) -> Tuple[NeighborIndex, ImputationResult]:
        """
        Build the neighbour index over the reference tracts and impute.

        Returns:
            Tuple of (neighbour index, imputation result)
        """
        neighbor_index = build_neighbor_index(reference, self.id_column, self.n_neighbors,
                                              projection=self.projection)
        result = self.imputer.impute(merged, neighbor_index)

        summary = result.summary()
        logger.info("\nImputation Summary:")
        for branch, count in summary.items():
            logger.info(f"  {branch}: {count}")

        return neighbor_index, result

    def add_labels(self, dataset: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
        """Attach tooltip labels when a label template is configured."""
        map_settings = self.settings['map']
        template = map_settings.get('label_template')
        if not template:
            return dataset

        labelled = dataset.copy()
        labelled[LABEL_COLUMN] = build_labels(labelled, template, map_settings.get('label_fields') or {})
        return labelled

    def render(self, dataset: gpd.GeoDataFrame, source_column: Optional[str] = None) -> Dict[str, Path]:
        """
        Save the interactive choropleth and, if available, the coverage map.

        Returns:
            Dictionary mapping artifact names to file paths
        """
        map_settings = self.settings['map']
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_files = {}

        choropleth_path = self.output_dir / f"{self.target_column}_choropleth_{timestamp}.html"
        create_choropleth(
            dataset,
            value_column=self.target_column,
            id_column=self.id_column,
            label_column=LABEL_COLUMN if LABEL_COLUMN in dataset.columns else None,
            palette=map_settings['palette'],
            bins=int(map_settings['bins']),
            nan_fill_color=map_settings['nan_fill_color'],
            fill_opacity=map_settings['fill_opacity'],
            line_opacity=map_settings['line_opacity'],
            legend_name=map_settings.get('legend_name'),
            tiles=map_settings['tiles'],
            zoom_start=int(map_settings['zoom_start']),
            output_path=choropleth_path,
        )
        output_files['choropleth'] = choropleth_path

        if source_column and source_column in dataset.columns:
            coverage_path = self.output_dir / f"{self.target_column}_coverage_{timestamp}.png"
            fig = plot_imputation_coverage(dataset, source_column, output_path=coverage_path)
            plt.close(fig)
            output_files['coverage_map'] = coverage_path

        return output_files

    def run(self) -> PipelineResult:
        """
        Run every stage in order.

        Source fetch failures and invalid data propagate; tracts that stay
        missing after imputation are reported, not raised.
        """
        measured, reference, tabular = self.data_loader.load_all()

        merged, gaps = self.merge(measured, reference, tabular)
        neighbor_index, imputation = self.impute(merged, reference)

        dataset = self.add_labels(imputation.data)
        output_files = self.render(dataset, source_column=imputation.source_column)

        if imputation.n_unresolved:
            logger.warning(f"{imputation.n_unresolved} tracts have no value for '{self.target_column}'")

        return PipelineResult(
            dataset=dataset,
            neighbor_index=neighbor_index,
            imputation=imputation,
            coverage_gaps=gaps,
            output_files=output_files,
        )
