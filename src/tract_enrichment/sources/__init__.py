"""
Source loading for the enrichment workflow.

Provides the HTTP client for remote GeoJSON layers and loaders for
polygon layers and tabular attribute files.
"""

from .client import GeoSourceClient, SourceFetchError
from .data_loader import DataLoader, load_tabular, load_unit_collection

__all__ = [
    'GeoSourceClient',
    'SourceFetchError',
    'DataLoader',
    'load_tabular',
    'load_unit_collection',
]
