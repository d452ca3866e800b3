"""
Exceptions Kisan Sathi.

Taxonomie :
  - ConfigurationError     : credential serveur manquant (500 immédiat, pas de retry)
  - UpstreamError          : la passerelle IA a répondu hors 2xx
  - RateLimitedError       : 429, remonté séparément pour que l'appelant puisse temporiser
  - EndpointError          : une fonction distante a échoué côté client
  - MalformedResponseError : payload illisible ou incomplet
"""

from typing import Optional


class KisanSathiError(Exception):
    """Erreur de base du projet."""


class ConfigurationError(KisanSathiError):
    """Configuration serveur absente (ex: clé de la passerelle IA)."""


class UpstreamError(KisanSathiError):
    """La passerelle IA a renvoyé un statut non-2xx."""

    def __init__(self, status_code: int, message: str = "AI error"):
        super().__init__(f"{message} (HTTP {status_code})")
        self.status_code = status_code


class RateLimitedError(KisanSathiError):
    """Limite de débit atteinte (HTTP 429)."""

    status_code = 429


class EndpointError(KisanSathiError):
    """Échec d'appel d'une fonction distante (réseau ou statut non-2xx)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(KisanSathiError):
    """Réponse JSON invalide ou champ attendu manquant."""


__all__ = [
    "KisanSathiError",
    "ConfigurationError",
    "UpstreamError",
    "RateLimitedError",
    "EndpointError",
    "MalformedResponseError",
]
