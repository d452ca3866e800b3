"""
Logger centralisé pour Kisan Sathi.

Usage:
    from kisansathi.core.logger import get_logger
    logger = get_logger("Radio")   # → "KisanSathi.Radio"
"""

import logging
import sys
from typing import Optional

from kisansathi.core.settings import settings

# Tous les loggers du projet vivent sous cette racine
ROOT_LOGGER = "KisanSathi"

_configured = False


def _init_sentry_if_needed(level: int = logging.INFO) -> Optional[object]:
    """Initialise Sentry SDK si `SENTRY_DSN` est présent dans les settings.

    Returns the sentry module or None if not initialized / not available.
    """
    dsn = getattr(settings, "SENTRY_DSN", "")
    if not dsn:
        return None

    try:
        import sentry_sdk
        from sentry_sdk.integrations.logging import LoggingIntegration

        sentry_logging = LoggingIntegration(
            level=level,
            event_level=logging.ERROR,
        )

        sentry_sdk.init(
            dsn=dsn,
            integrations=[sentry_logging],
            environment=getattr(settings, "SENTRY_ENVIRONMENT", "production"),
            release=f"{settings.APP_NAME}@{settings.APP_VERSION}",
        )
        get_logger(ROOT_LOGGER).info("Sentry initialized")
        return sentry_sdk
    except Exception:
        get_logger(ROOT_LOGGER).warning("Sentry SDK not available or failed to init")
        return None


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = "app.log") -> None:
    """Configure le logging une seule fois, appelé au startup.

    Si `SENTRY_DSN` est configuré, initialise Sentry pour capturer les erreurs.
    """
    global _configured
    if _configured:
        return

    fmt = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(level=level, format=fmt, datefmt=datefmt, handlers=handlers)

    # Reduce noise from libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    _init_sentry_if_needed(level=level)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Logger sous la racine "KisanSathi" ("LLM" → "KisanSathi.LLM")."""
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


__all__ = ["ROOT_LOGGER", "setup_logging", "get_logger"]
