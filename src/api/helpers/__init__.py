"""API helper utilities."""
from api.helpers.errors import SERVICE_ERRORS, to_http_exception

__all__ = [
    "SERVICE_ERRORS",
    "to_http_exception",
]
