"""
Preprocessing for the enrichment workflow.

Detects tracts missing from the measured layer and joins the measured,
reference and tabular sources into one record per tract.
"""

from .merger import COVERAGE_COLUMN, find_coverage_gaps, join_tabular, merge_collections

__all__ = [
    'COVERAGE_COLUMN',
    'find_coverage_gaps',
    'join_tabular',
    'merge_collections',
]
