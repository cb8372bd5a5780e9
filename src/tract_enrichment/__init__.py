"""Census tract enrichment: gap filling, merging and bounded spatial imputation."""

from . import config
from .errors import EnrichmentError, InvalidDataError, InvalidParameterError

__version__ = "0.1.0"
__all__ = [
    'config',
    'EnrichmentError',
    'InvalidDataError',
    'InvalidParameterError',
]
