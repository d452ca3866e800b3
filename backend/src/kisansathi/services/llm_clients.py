"""
LLM Clients — accès à la passerelle IA (API compatible OpenAI).

Changer de passerelle se fait UNIQUEMENT ici + dans settings.py / .env.

Usage:
    from kisansathi.services.llm_clients import get_sdk_client, complete
"""

from typing import Dict, List, Optional

import openai
from openai import OpenAI

from kisansathi.core.exceptions import (
    ConfigurationError,
    KisanSathiError,
    RateLimitedError,
    UpstreamError,
)
from kisansathi.core.logger import get_logger
from kisansathi.core.settings import settings

logger = get_logger("LLM")


def get_sdk_client(api_key: Optional[str] = None) -> OpenAI:
    """
    Retourne un client SDK brut pointé sur la passerelle.
    Lève ConfigurationError si aucune clé n'est configurée.
    """
    key = api_key or settings.AI_GATEWAY_API_KEY
    if not key:
        raise ConfigurationError("AI_GATEWAY_API_KEY is not configured")

    # Pas de retry automatique : l'utilisateur relance lui-même.
    return OpenAI(
        api_key=key,
        base_url=settings.AI_GATEWAY_URL,
        timeout=settings.REQUEST_TIMEOUT,
        max_retries=0,
    )


def complete(
    client: OpenAI,
    system_prompt: str,
    user_prompt: str,
    max_tokens: int,
    temperature: float,
    model_name: Optional[str] = None,
) -> str:
    """
    Un appel chat/completions. Retourne le contenu (strip), "" si absent.

    Raises:
        RateLimitedError: la passerelle a répondu 429
        UpstreamError: tout autre statut non-2xx
        KisanSathiError: erreur réseau
    """
    messages: List[Dict[str, str]] = [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]
    try:
        response = client.chat.completions.create(
            model=model_name or settings.LLM_MODEL,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )
    except openai.RateLimitError as e:
        logger.warning("AI gateway rate limited: %s", e)
        raise RateLimitedError("Too many requests") from e
    except openai.APIStatusError as e:
        logger.error("AI gateway error %s: %s", e.status_code, e)
        raise UpstreamError(e.status_code) from e
    except openai.APIError as e:
        logger.error("AI gateway unreachable: %s", e)
        raise KisanSathiError(f"AI gateway unreachable: {e}") from e

    choices = getattr(response, "choices", None) or []
    if not choices:
        return ""
    content = getattr(choices[0].message, "content", None) or ""
    return content.strip()


__all__ = ["get_sdk_client", "complete"]
