"""Public package surface for reddit-query."""
from .core import (
    BASE_URL,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    HeaderFormatError,
    ParseError,
    QueryError,
    QueryOptions,
    ResponseAccumulator,
    TransferError,
    build_session,
    build_url,
    execute,
    format_headers,
    path_query,
    rquery,
)

__version__ = "0.1.0"

__all__ = [
    "BASE_URL",
    "DEFAULT_TIMEOUT",
    "DEFAULT_USER_AGENT",
    "HeaderFormatError",
    "ParseError",
    "QueryError",
    "QueryOptions",
    "ResponseAccumulator",
    "TransferError",
    "build_session",
    "build_url",
    "execute",
    "format_headers",
    "path_query",
    "rquery",
    "__version__",
]
