"""
Tests for the interactive choropleth.
"""

import folium
import numpy as np
import pytest

from tract_enrichment.errors import InvalidDataError
from tract_enrichment.visualization.choropleth import create_choropleth


@pytest.fixture
def detroit_tracts(make_tracts):
    """Five small tracts near Detroit in WGS84 with a value and label each."""
    centers = {
        '26163510100': (-83.10, 42.35),
        '26163510200': (-83.08, 42.35),
        '26163510300': (-83.06, 42.35),
        '26163510400': (-83.10, 42.37),
        '26163510500': (-83.08, 42.37),
    }
    gdf = make_tracts(centers, crs="EPSG:4326", half_width=0.009)
    gdf['pct_elevated'] = [1.2, 3.4, np.nan, 7.8, 5.0]
    gdf['label'] = [f"Tract {i}" for i in range(5)]
    return gdf


class TestCreateChoropleth:
    """Test suite for create_choropleth."""

    def test_returns_map(self, detroit_tracts):
        m = create_choropleth(detroit_tracts, 'pct_elevated', 'GEOID', label_column='label', bins=4)

        assert isinstance(m, folium.Map)
        assert m.location == pytest.approx([42.36, -83.08], abs=0.01)

    def test_saves_html(self, detroit_tracts, tmp_path):
        """Test the map is written with features, labels and the NaN fill color."""
        output = tmp_path / "maps" / "choropleth.html"
        create_choropleth(detroit_tracts, 'pct_elevated', 'GEOID', label_column='label',
                          nan_fill_color='#abcdef', bins=4, output_path=output)

        html = output.read_text()
        assert '26163510300' in html
        assert 'Tract 4' in html
        assert '#abcdef' in html

    def test_projected_input(self, detroit_tracts):
        """Test projected layers are brought to WGS84 for the web map."""
        m = create_choropleth(detroit_tracts.to_crs("EPSG:5070"), 'pct_elevated', 'GEOID', bins=3)
        assert m.location == pytest.approx([42.36, -83.08], abs=0.01)

    def test_no_values(self, detroit_tracts):
        detroit_tracts['pct_elevated'] = np.nan
        with pytest.raises(InvalidDataError):
            create_choropleth(detroit_tracts, 'pct_elevated', 'GEOID')

    def test_unknown_column(self, detroit_tracts):
        with pytest.raises(InvalidDataError):
            create_choropleth(detroit_tracts, 'pct_missing', 'GEOID')
