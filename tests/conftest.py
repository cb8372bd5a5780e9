"""Shared fixtures for tract enrichment tests."""

import copy

import geopandas as gpd
import numpy as np
import pandas as pd
import pytest
from shapely.geometry import Point, box

from tract_enrichment.config import DEFAULT_SETTINGS

# Centroids of a small tract layout, in map units
TRACT_CENTERS = {
    '26163000100': (0.0, 0.0),
    '26163000200': (1.0, 0.0),
    '26163000300': (0.0, 1.0),
    '26163000400': (1.0, 1.0),
    '26163000500': (3.0, 0.0),
}


def _make_tracts(centers, crs=None, half_width=0.25, as_points=False):
    ids = list(centers)
    if as_points:
        geometry = [Point(x, y) for x, y in centers.values()]
    else:
        geometry = [box(x - half_width, y - half_width, x + half_width, y + half_width)
                    for x, y in centers.values()]
    return gpd.GeoDataFrame({'GEOID': ids}, geometry=geometry, crs=crs)


@pytest.fixture
def make_tracts():
    """Factory for GeoDataFrames of square tracts (or points) centered on a dict of id -> (x, y)."""
    return _make_tracts


@pytest.fixture
def tract_ids():
    """Ids of the five tracts A(0,0) B(1,0) C(0,1) D(1,1) E(3,0)."""
    return list(TRACT_CENTERS)


@pytest.fixture
def tract_centers():
    return dict(TRACT_CENTERS)


@pytest.fixture
def reference_tracts():
    """Complete boundary layer with display names and land area."""
    gdf = _make_tracts(TRACT_CENTERS, crs="EPSG:3857")
    gdf['NAMELSAD'] = [f"Census Tract {i}" for i in range(1, 6)]
    gdf['ALAND'] = [1000, 2000, 3000, 4000, 5000]
    return gdf[['GEOID', 'NAMELSAD', 'ALAND', 'geometry']]


@pytest.fixture
def measured_tracts():
    """Measured layer missing two reference tracts and holding one extra tract."""
    centers = {
        '26163000100': (0.0, 0.0),
        '26163000200': (1.0, 0.0),
        '26163000400': (1.0, 1.0),
        '26163099900': (5.0, 5.0),
    }
    gdf = _make_tracts(centers, crs="EPSG:3857", half_width=0.2)
    gdf['NAMELSAD'] = ['tract 1', 'tract 2', 'tract 4', 'tract 999']
    gdf['pct_elevated'] = [2.0, np.nan, 4.0, 1.5]
    gdf['children_tested'] = [150.0, 10.0, 100.0, 80.0]
    return gdf[['GEOID', 'NAMELSAD', 'pct_elevated', 'children_tested', 'geometry']]


@pytest.fixture
def economics_table():
    """Tabular attributes keyed by tract id."""
    return pd.DataFrame({
        'GEOID': ['26163000100', '26163000200', '26163000300', '26163000400'],
        'median_income': [32000.0, 41000.0, 28500.0, 55000.0],
        'NAMELSAD': ['x', 'x', 'x', 'x'],
    })


@pytest.fixture
def settings():
    """Default settings with an unpadded label template."""
    values = copy.deepcopy(DEFAULT_SETTINGS)
    values['imputation']['n_neighbors'] = 3
    values['map']['label_template'] = "{name}: {pct:.1f}%"
    values['map']['label_fields'] = {'name': 'NAMELSAD', 'pct': 'pct_elevated'}
    return values
