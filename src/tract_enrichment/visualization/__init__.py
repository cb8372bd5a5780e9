"""Visualization module for enriched tract data.

This module provides tools for:
- Tooltip label text
- Interactive choropleth maps
- Imputation coverage maps
"""

from .labels import build_labels
from .choropleth import create_choropleth
from .coverage_map import plot_imputation_coverage

__all__ = [
    'build_labels',
    'create_choropleth',
    'plot_imputation_coverage',
]
