"""
Data loading utilities for tract polygon layers and tabular attributes.
Handles loading and basic validation of input data.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import geopandas as gpd
import pandas as pd

from ..config import WGS84_EPSG, resolve_path
from ..errors import InvalidDataError, InvalidParameterError
from .client import GeoSourceClient

logger = logging.getLogger(__name__)


def _is_url(source: str) -> bool:
    return source.startswith(('http://', 'https://'))


def normalize_ids(frame: pd.DataFrame, id_column: str, label: str) -> pd.DataFrame:
    """
    Coerce the identifier column to stripped strings and check it is usable.

    Args:
        frame: Frame holding the identifier column
        id_column: Name of the identifier column
        label: Name of the layer, for messages

    Returns:
        The same frame with a string identifier column
    """
    if id_column not in frame.columns:
        raise InvalidDataError(f"{label} is missing identifier column '{id_column}'")

    if frame[id_column].isna().any():
        raise InvalidDataError(f"{label} has {int(frame[id_column].isna().sum())} rows without '{id_column}'")

    frame[id_column] = frame[id_column].astype(str).str.strip()

    duplicated = frame[id_column][frame[id_column].duplicated()].unique()
    if len(duplicated) > 0:
        raise InvalidDataError(f"{label} has duplicate identifiers: {list(duplicated[:10])}")

    return frame


def load_unit_collection(source: Union[str, Path],
                         id_column: str,
                         client: Optional[GeoSourceClient] = None,
                         crs: str = f"EPSG:{WGS84_EPSG}",
                         label: str = "layer") -> gpd.GeoDataFrame:
    """
    Load a polygon layer from a URL or a local file.

    Args:
        source: http(s) URL of a GeoJSON document or a path readable by geopandas
        id_column: Identifier column
        client: Client used for remote sources
        crs: CRS assigned to GeoJSON features fetched over HTTP
        label: Name of the layer, for messages

    Returns:
        GeoDataFrame with a unique string identifier column
    """
    source = str(source)
    if _is_url(source):
        client = client or GeoSourceClient()
        collection = client.fetch_geojson(source)
        gdf = gpd.GeoDataFrame.from_features(collection['features'], crs=crs)
    else:
        gdf = gpd.read_file(source)
        if gdf.crs is None:
            gdf = gdf.set_crs(crs)

    gdf = normalize_ids(gdf, id_column, label)
    logger.info(f"Loaded {len(gdf)} units for {label} from {source}")
    return gdf


def load_tabular(path: Union[str, Path], id_column: str, delimiter: str = ",") -> pd.DataFrame:
    """
    Load per-unit attributes from a delimited file.

    The identifier column is read as text so codes keep their leading zeros.
    """
    try:
        table = pd.read_csv(path, sep=delimiter, dtype={id_column: str})
    except FileNotFoundError:
        logger.error(f"Tabular file not found: {path}")
        raise

    table = normalize_ids(table, id_column, f"table {Path(path).name}")
    logger.info(f"Loaded {len(table)} rows with {len(table.columns) - 1} attributes from {path}")
    return table


class DataLoader:
    """Main data loading interface, driven by the `sources` and `dataset` settings."""

    def __init__(self, settings: Dict[str, Any], client: Optional[GeoSourceClient] = None):
        self.sources = settings['sources']
        self.id_column = settings['dataset']['id_column']
        self.client = client or GeoSourceClient(timeout=self.sources.get('request_timeout', 60))

    def _required(self, key: str) -> str:
        location = resolve_path(self.sources.get(key))
        if not location:
            raise InvalidParameterError(f"No location configured for sources.{key}")
        return location

    def load_measured(self) -> gpd.GeoDataFrame:
        """Load the partial measurement layer."""
        return load_unit_collection(self._required('measured'), self.id_column,
                                    client=self.client, crs=self.sources['crs'],
                                    label="measured layer")

    def load_reference(self) -> gpd.GeoDataFrame:
        """Load the complete boundary layer."""
        return load_unit_collection(self._required('reference'), self.id_column,
                                    client=self.client, crs=self.sources['crs'],
                                    label="reference layer")

    def load_tabular(self) -> Optional[pd.DataFrame]:
        """Load the tabular attributes, or None when no file is configured."""
        location = resolve_path(self.sources.get('tabular'))
        if not location:
            logger.info("No tabular source configured")
            return None
        return load_tabular(location, self.id_column, self.sources.get('tabular_delimiter', ','))

    def load_all(self) -> Tuple[gpd.GeoDataFrame, gpd.GeoDataFrame, Optional[pd.DataFrame]]:
        """
        Load every configured source.

        Returns:
            Tuple of (measured, reference, tabular)
        """
        measured = self.load_measured()
        reference = self.load_reference()
        tabular = self.load_tabular()
        return measured, reference, tabular
