"""
Schémas Pydantic - Modèles Request/Response des fonctions Kisan Sathi.
Les noms JSON restent en camelCase (contrat avec le client web).
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_PAUSE_MS = 1500
MAX_PAUSE_MS = 3000
DEFAULT_PAUSE_MS = 2000


# ============================================
# REQUEST MODELS
# ============================================

class PlanRequest(BaseModel):
    """Demande de plan du lendemain."""
    model_config = ConfigDict(populate_by_name=True)

    crop: Optional[str] = None
    stage: Optional[str] = None
    location: Optional[str] = None
    recent_tips: List[str] = Field(default_factory=list, alias="recentTips")

    @field_validator("recent_tips", mode="before")
    @classmethod
    def _tips_as_list(cls, value):
        # Le client peut envoyer null ou autre chose qu'une liste
        if not isinstance(value, list):
            return []
        return [str(v) for v in value if v]


class TipRequest(BaseModel):
    """Demande de segments radio."""
    crop: Optional[str] = None
    stage: Optional[str] = None
    location: Optional[str] = None


# ============================================
# RESPONSE MODELS
# ============================================

class RadioSegment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    pause_ms: int = Field(DEFAULT_PAUSE_MS, alias="pauseMs")


class PlanResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plan_text: str = Field("", alias="planText")


class TipResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text_tip: str = Field("", alias="textTip")
    segments: List[RadioSegment] = Field(default_factory=list)
    from_ai: bool = Field(True, alias="fromAI")


class ErrorResponse(BaseModel):
    error: str
