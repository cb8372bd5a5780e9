"""
Tests for the end-to-end enrichment pipeline.
"""

import matplotlib
matplotlib.use("Agg")

from unittest.mock import MagicMock

import numpy as np
import pytest

from tract_enrichment.errors import InvalidParameterError
from tract_enrichment.imputation.main import EnrichmentPipeline
from tract_enrichment.sources.client import SourceFetchError


@pytest.fixture
def loader(measured_tracts, reference_tracts, economics_table):
    """Data loader stub returning the shared fixtures."""
    mock = MagicMock()
    mock.load_all.return_value = (measured_tracts, reference_tracts, economics_table)
    return mock


@pytest.fixture
def pipeline(settings, loader, tmp_path):
    settings['map']['bins'] = 3
    return EnrichmentPipeline(settings=settings, output_dir=tmp_path, data_loader=loader)


class TestEnrichmentPipeline:
    """Test suite for EnrichmentPipeline."""

    def test_run(self, pipeline):
        """Test a full run fills the gaps and writes both maps."""
        result = pipeline.run()
        data = result.dataset.set_index('GEOID')

        assert result.coverage_gaps == ['26163000300', '26163000500']
        assert len(data) == 6
        assert data.loc['26163000100', 'pct_elevated'] == 2.0
        assert data.loc['26163000100', 'median_income'] == 32000.0
        assert data.loc['26163000100', 'NAMELSAD'] == 'Census Tract 1'
        assert result.neighbor_index.k == 3
        assert result.output_files['choropleth'].exists()
        assert result.output_files['coverage_map'].exists()

    def test_imputed_values(self, pipeline):
        """Test the gap tracts are filled from their measured neighbours."""
        result = pipeline.run()
        data = result.dataset.set_index('GEOID')

        # Neighbours of 000200 are (000200, 000100, 000400): mean of 2.0 and 4.0 is 3.0,
        # N=10 gives bounds [10, 50]
        assert data.loc['26163000200', 'pct_elevated'] == pytest.approx(10.0)
        assert data.loc['26163000200', 'pct_elevated_source'] == 'low_bound'
        # Reference-only tracts have no N, so the neighbour mean is used
        assert data.loc['26163000300', 'pct_elevated'] == pytest.approx(3.0)
        assert data.loc['26163000500', 'pct_elevated'] == pytest.approx(4.0)
        # Measured-only tract keeps its measurement
        assert data.loc['26163099900', 'pct_elevated_source'] == 'measured'
        assert result.imputation.n_unresolved == 0

    def test_labels_attached(self, pipeline):
        result = pipeline.run()
        data = result.dataset.set_index('GEOID')

        assert data.loc['26163000100', 'label'] == 'Census Tract 1: 2.0%'

    def test_k_too_large(self, settings, loader, tmp_path):
        """Test an oversized neighbour count stops the run."""
        settings['imputation']['n_neighbors'] = 50
        pipeline = EnrichmentPipeline(settings=settings, output_dir=tmp_path, data_loader=loader)

        with pytest.raises(InvalidParameterError):
            pipeline.run()

    def test_fetch_failure_propagates(self, settings, tmp_path):
        loader = MagicMock()
        loader.load_all.side_effect = SourceFetchError("unreachable")
        pipeline = EnrichmentPipeline(settings=settings, output_dir=tmp_path, data_loader=loader)

        with pytest.raises(SourceFetchError):
            pipeline.run()

    def test_unresolved_units_reported(self, pipeline, measured_tracts, reference_tracts):
        """Test tracts without neighbour data stay missing and are listed."""
        measured = measured_tracts.copy()
        measured['pct_elevated'] = np.nan
        measured.loc[3, 'pct_elevated'] = 1.5

        merged, _ = pipeline.merge(measured, reference_tracts)
        _, result = pipeline.impute(merged, reference_tracts)

        # Only the measured-only tract has a value and it is outside the reference index
        assert result.unresolved_ids == [
            '26163000100', '26163000200', '26163000300', '26163000400', '26163000500'
        ]
