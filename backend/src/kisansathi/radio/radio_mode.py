"""
Radio Krishi — lecture continue de conseils.

Boucle : lot de segments (fonction radio-tip, ou cache local hors ligne)
→ lecture segment par segment avec pause → lot suivant → … jusqu'à stop()
ou épuisement des sources.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from kisansathi.api.schemas import RadioSegment, TipRequest
from kisansathi.client.functions_client import FunctionsClient
from kisansathi.core.exceptions import KisanSathiError
from kisansathi.core.settings import settings
from kisansathi.radio.speech import NullSpeechEngine, SpeechEngine, clean_text_for_speech, select_voice
from kisansathi.radio.tomorrow_plan import FarmContext
from kisansathi.storage.tip_cache import Tip, TipCache

logger = logging.getLogger("KisanSathi.Radio")

# Silence entre deux tips rejoués depuis le cache (ms)
RADIO_GAP_MS = 12000
OFFLINE_BATCH_SIZE = 6
SPEECH_POLL_SECONDS = 0.1


@dataclass
class QueuedSegment:
    text: str
    pause_ms: int


class RadioSession:
    """Session radio : récupère, met en cache et lit les segments."""

    def __init__(
        self,
        client: FunctionsClient,
        tip_cache: TipCache,
        speech: Optional[SpeechEngine] = None,
        language: Optional[str] = None,
        rate: Optional[float] = None,
        is_online: Callable[[], bool] = lambda: True,
        wait: Optional[Callable[[float], object]] = None,
    ):
        self.client = client
        self.tip_cache = tip_cache
        self.speech = speech or NullSpeechEngine()
        self.language = language or settings.SPEECH_LANGUAGE
        self.rate = rate if rate is not None else settings.SPEECH_RATE
        self.is_online = is_online

        self._stop_event = threading.Event()
        self._custom_wait = wait
        self._thread: Optional[threading.Thread] = None
        self._context: Optional[FarmContext] = None
        self._offline_offset = 0

        self.is_playing = False
        self.is_fetching = False
        self.is_speaking = False
        self.is_demo = False
        self.current_tip = ""
        self.tip_count = 0
        self.cached_count = tip_cache.count()

    # ── Contrôle ─────────────────────────────────────────────

    def start(self, context: FarmContext, background: bool = True) -> None:
        """
        Démarre la radio (thread dédié, ou bloquant si background=False).
        Une session déjà en cours est arrêtée et son thread attendu avant
        de relancer : une seule boucle de lecture à la fois.
        """
        self.stop()
        previous = self._thread
        if previous is not None and previous is not threading.current_thread():
            previous.join()

        # chaque lecture possède son propre événement d'arrêt
        stop_event = threading.Event()
        self._stop_event = stop_event
        self._context = context
        self._offline_offset = 0
        self.is_playing = True
        self.tip_count = 0
        self.current_tip = ""
        logger.info("📻 Radio started: crop=%s stage=%s", context.crop, context.stage)

        if background:
            self._thread = threading.Thread(
                target=self._run, args=(stop_event,), name="krishi-radio", daemon=True
            )
            self._thread.start()
        else:
            self._thread = None
            self._run(stop_event)

    def stop(self) -> None:
        """Arrêt idempotent : vide la file et coupe la voix."""
        was_playing = self.is_playing
        self.is_playing = False
        self._stop_event.set()
        if self.is_speaking:
            self.speech.cancel()
        self.is_speaking = False
        if was_playing:
            logger.info("📻 Radio stopped after %d tip(s)", self.tip_count)

    close = stop

    # ── Boucle principale ────────────────────────────────────

    def _run(self, stop_event: threading.Event) -> None:
        try:
            queue = self._next_batch(stop_event)
            while queue and not stop_event.is_set():
                for segment in queue:
                    if stop_event.is_set():
                        return
                    self.current_tip = segment.text
                    self.tip_count += 1
                    self._speak(segment.text, stop_event)
                    if stop_event.is_set():
                        return
                    self._pause(segment.pause_ms / 1000.0, stop_event)
                if not stop_event.is_set():
                    queue = self._next_batch(stop_event)
        finally:
            # sources épuisées : seule la lecture courante arrête la session
            if not stop_event.is_set() and stop_event is self._stop_event:
                self.stop()

    def _pause(self, seconds: float, stop_event: threading.Event) -> None:
        if self._custom_wait is not None:
            self._custom_wait(seconds)
        else:
            stop_event.wait(seconds)

    def _next_batch(self, stop_event: threading.Event) -> List[QueuedSegment]:
        if self.is_online():
            fetched = self._fetch_segments(stop_event)
            if fetched:
                return fetched
        if stop_event.is_set():
            return []
        return self._offline_batch()

    def _fetch_segments(self, stop_event: threading.Event) -> List[QueuedSegment]:
        ctx = self._context
        self.is_fetching = True
        try:
            resp = self.client.fetch_tip(TipRequest(crop=ctx.crop, stage=ctx.stage, location=ctx.location))
        except KisanSathiError as e:
            logger.error("[Radio] Fetch error: %s", e)
            return []
        finally:
            self.is_fetching = False

        if stop_event.is_set():
            return []

        self.is_demo = not resp.from_ai
        segments = [s for s in resp.segments if s.text]
        if not segments and resp.text_tip:
            segments = [RadioSegment(text=resp.text_tip)]
        for segment in segments:
            self.tip_cache.save(Tip(crop=ctx.crop, stage=ctx.stage, location=ctx.location, text=segment.text))
        self.cached_count = self.tip_cache.count()
        return [QueuedSegment(text=s.text, pause_ms=s.pause_ms) for s in segments]

    def _offline_batch(self) -> List[QueuedSegment]:
        tips = self.tip_cache.offline_batch(self._offline_offset, OFFLINE_BATCH_SIZE)
        self._offline_offset += len(tips)
        if tips:
            logger.info("📴 Playing %d cached tip(s)", len(tips))
        return [QueuedSegment(text=t.text, pause_ms=RADIO_GAP_MS) for t in tips]

    def _speak(self, text: str, stop_event: threading.Event) -> None:
        if not self.speech.available or not text:
            return

        done = threading.Event()

        def _on_error(exc: Exception) -> None:
            logger.error("[Radio] TTS error: %s", exc)
            done.set()

        self.speech.cancel()
        self.is_speaking = True
        self.speech.speak(
            clean_text_for_speech(text),
            lang=self.language,
            voice=select_voice(self.speech.voices(), self.language),
            rate=self.rate,
            on_end=done.set,
            on_error=_on_error,
        )
        while not done.wait(SPEECH_POLL_SECONDS):
            if stop_event.is_set():
                break
        if not stop_event.is_set():
            self.is_speaking = False
