"""
Project paths and workflow settings.

Settings live in `config/settings.yaml`; anything the file leaves out
falls back to `DEFAULT_SETTINGS`.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

# Project structure configuration
PROJECT_ROOT = Path(__file__).parent.parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"

# Main directories
DATA_DIR = PROJECT_ROOT / "data"
OUTPUT_DIR = PROJECT_ROOT / "output"

# Data subdirectories
INPUT_DIR = DATA_DIR / "input"

# Output subdirectories
LOG_DIR = OUTPUT_DIR / "logs"
MAPS_DIR = OUTPUT_DIR / "maps"

SETTINGS_FILE = CONFIG_DIR / "settings.yaml"

# Spatial reference systems
WGS84_EPSG = 4326

DEFAULT_SETTINGS: Dict[str, Any] = {
    'sources': {
        'measured': None,
        'reference': None,
        'tabular': None,
        'tabular_delimiter': ',',
        'crs': f"EPSG:{WGS84_EPSG}",
        'request_timeout': 60,
    },
    'dataset': {
        'id_column': 'GEOID',
        'display_name_column': 'NAMELSAD',
        'target_column': 'pct_elevated',
        'sample_size_column': 'children_tested',
    },
    'imputation': {
        'n_neighbors': 6,
        'suppressed_min_count': 1,
        'suppressed_max_count': 5,
        'projection': None,
    },
    'map': {
        'palette': 'YlOrRd',
        'bins': 6,
        'nan_fill_color': '#d9d9d9',
        'fill_opacity': 0.7,
        'line_opacity': 0.2,
        'legend_name': None,
        'tiles': 'cartodbpositron',
        'zoom_start': 11,
        'label_template': None,
        'label_fields': {},
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(settings_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load workflow settings from a YAML file.

    Args:
        settings_path: Path to the settings file (defaults to SETTINGS_FILE)

    Returns:
        Settings dictionary with every section of DEFAULT_SETTINGS present
    """
    settings_path = Path(settings_path) if settings_path else SETTINGS_FILE
    try:
        with open(settings_path, 'r') as f:
            loaded = yaml.safe_load(f) or {}
        logger.info(f"Loaded settings from {settings_path}")
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Using default settings, could not read {settings_path}: {str(e)}")
        loaded = {}

    return _deep_merge(DEFAULT_SETTINGS, loaded)


def resolve_path(location: Optional[str]) -> Optional[str]:
    """Resolve a relative local path against the project root; URLs pass through."""
    if not location or location.startswith(('http://', 'https://')):
        return location
    path = Path(location)
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return str(path)


def ensure_directories(output_dir: Optional[Path] = None):
    """Create all necessary directories if they don't exist."""
    directories = [
        DATA_DIR,
        INPUT_DIR,
        output_dir or OUTPUT_DIR,
        LOG_DIR,
        MAPS_DIR,
    ]
    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)
