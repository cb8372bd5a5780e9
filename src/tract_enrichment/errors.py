"""Exceptions raised by the enrichment workflow."""


class EnrichmentError(Exception):
    """Base class for enrichment workflow errors."""


class InvalidParameterError(EnrichmentError, ValueError):
    """Raised when a caller-supplied parameter cannot be honoured (e.g. K larger than the collection)."""


class InvalidDataError(EnrichmentError, ValueError):
    """Raised when input data breaks a contract: duplicate ids, missing columns,
    negative or non-numeric measurements, unusable geometry."""
