"""
Core Module — Fondations transverses Kisan Sathi.

- settings   : Configuration centralisée (Pydantic Settings)
- logger     : Logging unifié (stdlib + Sentry optionnel)
- exceptions : Taxonomie d'erreurs
"""

from .settings import settings
from .logger import setup_logging, get_logger
from .exceptions import (
    KisanSathiError,
    ConfigurationError,
    UpstreamError,
    RateLimitedError,
    EndpointError,
    MalformedResponseError,
)

__all__ = [
    "settings",
    "setup_logging", "get_logger",
    "KisanSathiError", "ConfigurationError", "UpstreamError",
    "RateLimitedError", "EndpointError", "MalformedResponseError",
]
