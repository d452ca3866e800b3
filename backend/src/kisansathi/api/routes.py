"""
Routes API — les deux fonctions proxy vers la passerelle IA.

  - POST /functions/v1/tomorrow-plan : plan du lendemain
  - POST /functions/v1/radio-tip     : segments radio

Le client IA est injecté via FastAPI Depends() (surchargeable en test).
Les erreurs sont renvoyées sous la forme {"error": "..."}.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from openai import OpenAI

from kisansathi.core.exceptions import ConfigurationError, RateLimitedError, UpstreamError
from kisansathi.core.settings import settings
from kisansathi.services.generation import (
    generate_plan_text,
    generate_radio_segments,
    join_segments,
)
from kisansathi.services.llm_clients import get_sdk_client
from .schemas import PlanRequest, PlanResponse, TipRequest, TipResponse

logger = logging.getLogger("KisanSathi.API")

router = APIRouter()


# ── Dependency : client IA ──

def get_llm_client() -> Optional[OpenAI]:
    """FastAPI dependency — None si la clé de la passerelle manque."""
    try:
        return get_sdk_client()
    except ConfigurationError as e:
        logger.error("❌ %s", e)
        return None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# ── Routes ──────────────────────────────────────────────────

@router.post("/functions/v1/tomorrow-plan", response_model=PlanResponse)
def tomorrow_plan(req: PlanRequest, client: Optional[OpenAI] = Depends(get_llm_client)):
    """Plan du lendemain (matin, après-midi, soir) à partir des derniers tips."""
    if client is None:
        return _error(500, "Server error")

    logger.info("Plan request: crop=%s stage=%s tips=%d", req.crop, req.stage, len(req.recent_tips))
    try:
        plan_text = generate_plan_text(req, client=client)
    except RateLimitedError:
        return _error(429, "AI error")
    except UpstreamError as e:
        return _error(e.status_code, "AI error")
    except Exception as e:
        logger.error("[tomorrow-plan] Error: %s", e, exc_info=True)
        return _error(500, "Server error")

    return PlanResponse(plan_text=plan_text)


@router.post("/functions/v1/radio-tip", response_model=TipResponse)
def radio_tip(req: TipRequest, client: Optional[OpenAI] = Depends(get_llm_client)):
    """Segments radio ; 402 côté passerelle → segments de secours."""
    if client is None:
        return _error(500, "Server error")

    logger.info("Radio request: crop=%s stage=%s", req.crop, req.stage)
    try:
        segments, from_ai = generate_radio_segments(req, client=client)
    except RateLimitedError:
        return _error(429, "Too many requests")
    except UpstreamError:
        return _error(500, "AI error")
    except Exception as e:
        logger.error("[radio-tip] Error: %s", e, exc_info=True)
        return _error(500, "Server error")

    return TipResponse(text_tip=join_segments(segments), segments=segments, from_ai=from_ai)


# ── Health / Root ───────────────────────────────────────────

@router.get("/health")
def health_check():
    return {
        "status": "healthy" if settings.gateway_configured else "degraded",
        "gateway": "configured" if settings.gateway_configured else "missing credential",
        "version": settings.APP_VERSION,
    }


@router.get("/")
def root():
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
    }
