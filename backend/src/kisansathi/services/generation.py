"""
Génération — logique métier des deux fonctions (plan du lendemain, radio).

Les routes FastAPI restent minces : elles valident, appellent ces fonctions
et traduisent les exceptions en statuts HTTP.
"""

import json
import logging
import random
import re
from datetime import datetime
from typing import List, Optional, Tuple

from openai import OpenAI

from kisansathi.api.schemas import (
    DEFAULT_PAUSE_MS,
    MAX_PAUSE_MS,
    MIN_PAUSE_MS,
    PlanRequest,
    RadioSegment,
    TipRequest,
)
from kisansathi.core.exceptions import UpstreamError
from kisansathi.core.settings import settings
from kisansathi.services import prompts
from kisansathi.services.llm_clients import complete, get_sdk_client

logger = logging.getLogger("KisanSathi.Generation")

# Statut renvoyé par la passerelle quand les crédits sont épuisés
PAYMENT_REQUIRED = 402
FALLBACK_SEGMENT_COUNT = 6

_FENCE_START = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"```\s*$")


def generate_plan_text(req: PlanRequest, client: Optional[OpenAI] = None) -> str:
    """Plan du lendemain en népali. Peut retourner "" si la passerelle ne dit rien."""
    client = client or get_sdk_client()
    user_prompt = prompts.build_plan_user_prompt(req.crop, req.stage, req.location, req.recent_tips)
    return complete(
        client,
        prompts.PLAN_SYSTEM_PROMPT,
        user_prompt,
        max_tokens=settings.PLAN_MAX_TOKENS,
        temperature=settings.PLAN_TEMPERATURE,
    )


def _clamp_pause(value) -> int:
    try:
        pause = int(value) if value else DEFAULT_PAUSE_MS
    except (TypeError, ValueError):
        pause = DEFAULT_PAUSE_MS
    return max(MIN_PAUSE_MS, min(MAX_PAUSE_MS, pause))


def parse_segments(raw_content: str) -> List[RadioSegment]:
    """
    Parse la sortie JSON du modèle (éventuellement entourée de ```json).
    Si le parsing échoue, le contenu brut devient un segment unique.
    """
    cleaned = _FENCE_END.sub("", _FENCE_START.sub("", raw_content.strip())).strip()
    try:
        items = json.loads(cleaned)
        if not isinstance(items, list) or not items:
            raise ValueError("not a non-empty array")
        segments = [
            RadioSegment(text=item["text"].strip(), pause_ms=_clamp_pause(item.get("pauseMs")))
            for item in items
            if isinstance(item, dict) and isinstance(item.get("text"), str) and item["text"].strip()
        ]
    except (json.JSONDecodeError, ValueError):
        segments = [RadioSegment(text=raw_content, pause_ms=DEFAULT_PAUSE_MS)]
    return segments


def fallback_segments(count: int = FALLBACK_SEGMENT_COUNT, rng: Optional[random.Random] = None) -> List[RadioSegment]:
    """Segments de secours, mélangés."""
    rng = rng or random.Random()
    picked = rng.sample(prompts.FALLBACK_SEGMENTS, k=min(count, len(prompts.FALLBACK_SEGMENTS)))
    return [RadioSegment(text=text, pause_ms=DEFAULT_PAUSE_MS) for text in picked]


def generate_radio_segments(
    req: TipRequest,
    client: Optional[OpenAI] = None,
    now: Optional[datetime] = None,
) -> Tuple[List[RadioSegment], bool]:
    """
    Retourne (segments, from_ai).
    402 → segments de secours (from_ai=False) ; les autres erreurs remontent.
    """
    client = client or get_sdk_client()
    user_prompt = prompts.build_radio_user_prompt(req.crop, req.stage, req.location, now=now)

    try:
        raw = complete(
            client,
            prompts.RADIO_SYSTEM_PROMPT,
            user_prompt,
            max_tokens=settings.TIP_MAX_TOKENS,
            temperature=settings.TIP_TEMPERATURE,
        )
    except UpstreamError as e:
        if e.status_code == PAYMENT_REQUIRED:
            logger.warning("💳 AI credits exhausted, serving fallback segments")
            return fallback_segments(), False
        raise

    if not raw:
        return [], True
    return parse_segments(raw), True


def join_segments(segments: List[RadioSegment]) -> str:
    return " ".join(s.text for s in segments if s.text)
