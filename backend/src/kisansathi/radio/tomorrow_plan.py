"""
Plan du lendemain — orchestrateur côté client.

Machine à états :
  IDLE → GENERATING → READY
               └────→ ERROR (équivalent IDLE : pas de plan, génération relançable)

Règles :
  - au plus une génération par jour : un plan déjà stocké est adopté sans appel réseau
  - une seule génération à la fois : garde explicite sur l'état GENERATING
  - aucun retry automatique, aucune exception remontée
  - toutes les PLAN_REFRESH_MINUTES, l'affichage (nuit) et le plan sont réévalués
"""

import asyncio
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from kisansathi.api.schemas import PlanRequest
from kisansathi.client.functions_client import FunctionsClient
from kisansathi.core.exceptions import KisanSathiError
from kisansathi.core.settings import settings
from kisansathi.radio.speech import NullSpeechEngine, SpeechEngine, clean_text_for_speech, select_voice
from kisansathi.storage.plan_store import DailyPlanStore
from kisansathi.storage.tip_cache import TipCache

logger = logging.getLogger("KisanSathi.TomorrowPlan")

RECENT_TIPS_LIMIT = 10


@dataclass(frozen=True)
class FarmContext:
    """Culture suivie par l'agriculteur."""
    crop: str
    stage: str
    location: Optional[str] = None


class PlanState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    READY = "ready"
    ERROR = "error"


class TomorrowPlanOrchestrator:
    """
    Décide s'il faut générer le plan, appelle la fonction distante,
    persiste le résultat et pilote la lecture vocale.
    """

    def __init__(
        self,
        context: FarmContext,
        plan_store: DailyPlanStore,
        tip_cache: TipCache,
        client: FunctionsClient,
        speech: Optional[SpeechEngine] = None,
        language: Optional[str] = None,
        rate: Optional[float] = None,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        self.context = context
        self.plan_store = plan_store
        self.tip_cache = tip_cache
        self.client = client
        self.speech = speech or NullSpeechEngine()
        self.language = language or settings.SPEECH_LANGUAGE
        self.rate = rate if rate is not None else settings.SPEECH_RATE

        self._lock = threading.RLock()
        self.plan_text: Optional[str] = plan_store.get_today()
        self.state = PlanState.READY if self.plan_text else PlanState.IDLE
        self.show_card = plan_store.is_night_time()
        self.last_error: Optional[str] = None

        self.is_speaking = False
        self._handle = None
        self._utterance = 0

        self._scheduler = scheduler
        self._owns_scheduler = False
        self._refresh_job = None
        self._closed = False

    # ──────────────────────────────────────────────────────────────
    # GÉNÉRATION
    # ──────────────────────────────────────────────────────────────

    @property
    def is_generating(self) -> bool:
        return self.state is PlanState.GENERATING

    def generate(self) -> Optional[str]:
        """Retourne le plan du jour (stocké ou généré), None en cas d'échec."""
        with self._lock:
            existing = self.plan_store.get_today()
            if existing:
                self._adopt(existing)
                return existing

            if self.state is PlanState.GENERATING:
                logger.info("Generation already in flight, ignoring request.")
                return None

            self.state = PlanState.GENERATING
            self.last_error = None

        req = PlanRequest(
            crop=self.context.crop,
            stage=self.context.stage,
            location=self.context.location,
            recent_tips=self.tip_cache.recent_texts(RECENT_TIPS_LIMIT),
        )

        try:
            plan_text = self.client.fetch_plan(req)
        except KisanSathiError as e:
            return self._fail(str(e))
        except Exception as e:
            logger.error("[TomorrowPlan] Unexpected error: %s", e, exc_info=True)
            return self._fail(str(e))

        if not plan_text:
            return self._fail("empty planText")

        self.plan_store.save_today(plan_text)
        with self._lock:
            if self._closed:
                # plan persisté pour la prochaine ouverture, pas affiché
                self.state = PlanState.IDLE
                return plan_text
            self.state = PlanState.READY
            self.plan_text = plan_text
        logger.info("🌙 Tomorrow plan generated for %s (%s)", self.context.crop, self.context.stage)
        return plan_text

    async def generate_async(self) -> Optional[str]:
        """generate() hors de la boucle d'événements."""
        return await asyncio.to_thread(self.generate)

    def _adopt(self, text: str) -> None:
        self.plan_text = text
        self.state = PlanState.READY

    def _fail(self, reason: str) -> None:
        logger.error("[TomorrowPlan] Error: %s", reason)
        with self._lock:
            self.state = PlanState.ERROR
            self.last_error = reason
        return None

    # ──────────────────────────────────────────────────────────────
    # LECTURE VOCALE
    # ──────────────────────────────────────────────────────────────

    def speak_plan(self) -> bool:
        """
        Bascule la lecture du plan. Retourne True si une lecture démarre.
        Un second appel pendant la lecture l'arrête (pas de chevauchement).
        """
        with self._lock:
            if not self.plan_text or not self.speech.available:
                return False

            if self.is_speaking:
                self._stop_speaking()
                return False

            self._utterance += 1
            token = self._utterance
            self.is_speaking = True
            voice = select_voice(self.speech.voices(), self.language)
            handle = self.speech.speak(
                clean_text_for_speech(self.plan_text),
                lang=self.language,
                voice=voice,
                rate=self.rate,
                on_end=lambda: self._on_speech_done(token),
                on_error=lambda exc: self._on_speech_done(token, exc),
            )
            if self.is_speaking and self._utterance == token:
                self._handle = handle
            return True

    def _on_speech_done(self, token: int, exc: Optional[Exception] = None) -> None:
        if exc is not None:
            logger.warning("Plan playback error: %s", exc)
        with self._lock:
            if token != self._utterance:
                return
            self.is_speaking = False
            self._handle = None

    def _stop_speaking(self) -> None:
        self.speech.cancel(self._handle)
        self._utterance += 1
        self.is_speaking = False
        self._handle = None

    # ──────────────────────────────────────────────────────────────
    # RAFRAÎCHISSEMENT PÉRIODIQUE
    # ──────────────────────────────────────────────────────────────

    def refresh(self) -> None:
        """Réévalue la fenêtre de nuit et relit le plan du jour."""
        with self._lock:
            self.show_card = self.plan_store.is_night_time()
            if self.state is PlanState.GENERATING:
                return
            stored = self.plan_store.get_today()
            if stored:
                self._adopt(stored)
            elif self.state is PlanState.READY:
                # changement de jour : le plan d'hier ne s'affiche plus
                self.plan_text = None
                self.state = PlanState.IDLE

    def start_refresh(self, interval_minutes: Optional[int] = None) -> None:
        if self._refresh_job is not None:
            return

        minutes = interval_minutes or settings.PLAN_REFRESH_MINUTES
        if self._scheduler is None:
            self._scheduler = BackgroundScheduler()
            self._owns_scheduler = True
        if not self._scheduler.running:
            self._scheduler.start()

        self._refresh_job = self._scheduler.add_job(
            self.refresh,
            IntervalTrigger(minutes=minutes),
            id=f"tomorrow_plan_refresh_{id(self)}",
            replace_existing=True,
        )
        logger.info("⏳ Plan refresh scheduled every %d min", minutes)

    def close(self) -> None:
        """Arrête le rafraîchissement et toute lecture en cours."""
        with self._lock:
            self._closed = True
            if self.is_speaking:
                self._stop_speaking()

        if self._refresh_job is not None:
            try:
                self._refresh_job.remove()
            except JobLookupError as e:
                logger.warning("Refresh job already gone: %s", e)
            self._refresh_job = None

        if self._owns_scheduler and self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)

    def __enter__(self) -> "TomorrowPlanOrchestrator":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
