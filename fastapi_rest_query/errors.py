# fastapi_rest_query/errors.py


class RestQueryError(Exception):
    """Base class for configuration errors raised by fastapi_rest_query."""


class MetadataError(RestQueryError, ValueError):
    """Raised when model metadata does not match the mapped class it describes."""
