"""
Settings — Configuration centralisée Kisan Sathi (Pydantic Settings).

Toute la configuration passe par ici. Pas de os.getenv() éparpillé.
Usage:
    from kisansathi.core.settings import settings
    print(settings.AI_GATEWAY_URL)
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuration centralisée, lue depuis les variables d'env / .env."""

    # --- Paths ---
    CACHE_DB_PATH: str = "data/kisansathi_cache.db"

    # --- API ---
    APP_NAME: str = "Kisan Sathi"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: list[str] = ["*"]

    # --- AI gateway (OpenAI-compatible) ---
    AI_GATEWAY_URL: str = "https://ai.gateway.lovable.dev/v1"
    AI_GATEWAY_API_KEY: str = ""
    LLM_MODEL: str = "google/gemini-2.5-flash-lite"
    PLAN_MAX_TOKENS: int = 400
    PLAN_TEMPERATURE: float = 0.6
    TIP_MAX_TOKENS: int = 800
    TIP_TEMPERATURE: float = 0.8

    # --- Functions (client side) ---
    FUNCTIONS_BASE_URL: str = "http://localhost:8000/functions/v1"
    FUNCTIONS_API_KEY: str = ""
    REQUEST_TIMEOUT: int = 30

    # --- Radio / plan ---
    PLAN_RETENTION_DAYS: int = 7          # 0 = pas de purge
    PLAN_REFRESH_MINUTES: int = 5
    SPEECH_LANGUAGE: str = "ne-NP"
    SPEECH_RATE: float = 0.95

    # --- Sentry (observabilité erreurs) ---
    SENTRY_DSN: str = ""
    SENTRY_ENVIRONMENT: str = "development"

    @property
    def gateway_configured(self) -> bool:
        """True si une clé de la passerelle IA est disponible."""
        return bool(self.AI_GATEWAY_API_KEY)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton — importable partout
settings = Settings()
