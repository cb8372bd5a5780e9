"""
Interactive choropleth of a tract attribute.

Tracts are shaded by a binned ColorBrewer scale; tracts without a value get
the NaN fill color. Hovering a tract shows its label text.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import folium
import geopandas as gpd
import pandas as pd

from ..config import WGS84_EPSG
from ..errors import InvalidDataError

logger = logging.getLogger(__name__)


def create_choropleth(dataset: gpd.GeoDataFrame,
                      value_column: str,
                      id_column: str,
                      label_column: Optional[str] = None,
                      palette: str = 'YlOrRd',
                      bins: int = 6,
                      nan_fill_color: str = '#d9d9d9',
                      fill_opacity: float = 0.7,
                      line_opacity: float = 0.2,
                      legend_name: Optional[str] = None,
                      tiles: str = 'cartodbpositron',
                      zoom_start: int = 11,
                      output_path: Optional[Union[str, Path]] = None) -> folium.Map:
    """
    Render `value_column` as an interactive choropleth.

    Args:
        dataset: Units with geometry
        value_column: Numeric column used for shading
        id_column: Identifier column used to key features to values
        label_column: Optional column of tooltip text
        palette: ColorBrewer palette name
        bins: Number of color bins
        nan_fill_color: Fill for units without a value
        fill_opacity: Polygon fill opacity
        line_opacity: Polygon outline opacity
        legend_name: Legend caption (defaults to the column name)
        tiles: Base map tiles
        zoom_start: Initial zoom level
        output_path: Optional HTML file to save the map to

    Returns:
        folium Map
    """
    for column in filter(None, (value_column, id_column, label_column)):
        if column not in dataset.columns:
            raise InvalidDataError(f"Column '{column}' not found in dataset")

    keep = [id_column, value_column] + ([label_column] if label_column else [])
    gdf = dataset[keep + [dataset.geometry.name]].copy()
    if gdf.crs is not None and gdf.crs.to_epsg() != WGS84_EPSG:
        gdf = gdf.to_crs(epsg=WGS84_EPSG)
    gdf[id_column] = gdf[id_column].astype(str)
    gdf[value_column] = pd.to_numeric(gdf[value_column], errors='coerce')

    # Features without a value are shaded with nan_fill_color
    values = pd.DataFrame(gdf.loc[gdf[value_column].notna(), [id_column, value_column]])
    if values.empty:
        raise InvalidDataError(f"Column '{value_column}' has no values to map")

    min_x, min_y, max_x, max_y = gdf.total_bounds
    center = [(min_y + max_y) / 2, (min_x + max_x) / 2]

    m = folium.Map(location=center, zoom_start=zoom_start, tiles=tiles)

    choropleth = folium.Choropleth(
        geo_data=gdf.to_json(),
        name=legend_name or value_column,
        data=values,
        columns=[id_column, value_column],
        key_on=f"feature.properties.{id_column}",
        fill_color=palette,
        bins=bins,
        nan_fill_color=nan_fill_color,
        fill_opacity=fill_opacity,
        line_opacity=line_opacity,
        legend_name=legend_name or value_column,
        highlight=True,
    ).add_to(m)

    if label_column:
        folium.GeoJsonTooltip(fields=[label_column], labels=False, sticky=False).add_to(choropleth.geojson)

    folium.LayerControl().add_to(m)

    n_missing = len(gdf) - len(values)
    logger.info(f"Created choropleth of '{value_column}' for {len(gdf)} units ({n_missing} without a value)")

    if output_path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        m.save(str(output_path))
        logger.info(f"Map saved to {output_path}")

    return m
