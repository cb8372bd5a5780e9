"""
Tests for the GeoJSON source client.
"""

import pytest
import requests
import responses

from tract_enrichment.sources.client import GeoSourceClient, SourceFetchError

LAYER_URL = "https://data.example.org/tracts/measured.geojson"

SAMPLE_COLLECTION = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "properties": {"GEOID": "26163000100", "pct_elevated": 2.4, "children_tested": 85},
            "geometry": {
                "type": "Polygon",
                "coordinates": [[[-83.1, 42.3], [-83.0, 42.3], [-83.0, 42.4], [-83.1, 42.4], [-83.1, 42.3]]]
            }
        }
    ]
}


@pytest.fixture
def client():
    """Create a GeoSourceClient instance for testing."""
    return GeoSourceClient(timeout=5)


class TestGeoSourceClient:
    """Test suite for GeoSourceClient class."""

    def test_init_default_values(self):
        """Test client initialization with default values."""
        client = GeoSourceClient()
        assert client.timeout == 60

    @responses.activate
    def test_fetch_geojson_success(self, client):
        """Test successful fetch of a feature collection."""
        responses.add(responses.GET, LAYER_URL, json=SAMPLE_COLLECTION, status=200)

        result = client.fetch_geojson(LAYER_URL)
        assert result["type"] == "FeatureCollection"
        assert len(result["features"]) == 1
        assert result["features"][0]["properties"]["GEOID"] == "26163000100"

    @responses.activate
    def test_fetch_geojson_http_error(self, client):
        """Test HTTP errors are raised as SourceFetchError with the response attached."""
        responses.add(responses.GET, LAYER_URL, status=404)

        with pytest.raises(SourceFetchError) as excinfo:
            client.fetch_geojson(LAYER_URL)
        assert excinfo.value.response is not None
        assert excinfo.value.response.status_code == 404

    @responses.activate
    def test_fetch_geojson_connection_error(self, client):
        """Test connection failures are raised as SourceFetchError."""
        responses.add(responses.GET, LAYER_URL, body=requests.exceptions.ConnectionError("unreachable"))

        with pytest.raises(SourceFetchError):
            client.fetch_geojson(LAYER_URL)

    @responses.activate
    def test_invalid_json_response(self, client):
        """Test handling of invalid JSON responses."""
        responses.add(responses.GET, LAYER_URL, body="Invalid JSON", status=200)

        with pytest.raises(SourceFetchError):
            client.fetch_geojson(LAYER_URL)

    @responses.activate
    def test_not_a_feature_collection(self, client):
        """Test JSON that is not a FeatureCollection is rejected."""
        responses.add(responses.GET, LAYER_URL, json={"type": "Feature"}, status=200)

        with pytest.raises(SourceFetchError):
            client.fetch_geojson(LAYER_URL)

    @responses.activate
    def test_missing_features(self, client):
        responses.add(responses.GET, LAYER_URL, json={"type": "FeatureCollection"}, status=200)

        with pytest.raises(SourceFetchError):
            client.fetch_geojson(LAYER_URL)
