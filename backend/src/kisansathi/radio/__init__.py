"""
Radio — côté appareil : plan du lendemain, radio continue, synthèse vocale.
"""

from .speech import (
    Voice,
    SpeechHandle,
    SpeechEngine,
    NullSpeechEngine,
    Pyttsx3SpeechEngine,
    select_voice,
    clean_text_for_speech,
)
from .tomorrow_plan import FarmContext, PlanState, TomorrowPlanOrchestrator
from .radio_mode import RadioSession

__all__ = [
    "Voice", "SpeechHandle", "SpeechEngine", "NullSpeechEngine", "Pyttsx3SpeechEngine",
    "select_voice", "clean_text_for_speech",
    "FarmContext", "PlanState", "TomorrowPlanOrchestrator",
    "RadioSession",
]
