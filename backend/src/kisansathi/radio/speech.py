"""
Synthèse vocale — capacité de plateforme derrière une interface.

  - SpeechEngine        : interface (voices / speak / cancel)
  - NullSpeechEngine    : aucune sortie audio disponible
  - Pyttsx3SpeechEngine : lecture locale via pyttsx3 (thread dédié)

Le choix de voix suit la politique : langue cible (népali), puis langue
proche (hindi), sinon voix par défaut de la plateforme.
"""

import logging
import re
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

logger = logging.getLogger("KisanSathi.Speech")

RELATED_LANGUAGES = {"ne": "hi"}
LANGUAGE_NAMES = {"ne": "nepali", "hi": "hindi"}
DEFAULT_WORDS_PER_MINUTE = 200


@dataclass(frozen=True)
class Voice:
    id: str
    name: str
    lang: str = ""


class SpeechHandle:
    """Une lecture en cours (ou terminée)."""

    def __init__(self, text: str):
        self.id = str(uuid.uuid4())
        self.text = text
        self.cancelled = False
        self._done = threading.Event()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def finish(self) -> None:
        self._done.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._done.wait(timeout)


class SpeechEngine(ABC):
    """Interface de synthèse vocale."""

    @property
    def available(self) -> bool:
        return True

    @abstractmethod
    def voices(self) -> List[Voice]:
        ...

    @abstractmethod
    def speak(
        self,
        text: str,
        lang: str,
        voice: Optional[Voice] = None,
        rate: float = 1.0,
        on_end: Optional[Callable[[], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> SpeechHandle:
        ...

    @abstractmethod
    def cancel(self, handle: Optional[SpeechHandle] = None) -> None:
        """Annule `handle`, ou toute lecture en cours si None."""


class NullSpeechEngine(SpeechEngine):
    """Pas de sortie audio : speak() se termine immédiatement."""

    @property
    def available(self) -> bool:
        return False

    def voices(self) -> List[Voice]:
        return []

    def speak(self, text, lang, voice=None, rate=1.0, on_end=None, on_error=None) -> SpeechHandle:
        handle = SpeechHandle(text)
        handle.finish()
        if on_end:
            on_end()
        return handle

    def cancel(self, handle=None) -> None:
        pass


class Pyttsx3SpeechEngine(SpeechEngine):
    """
    Lecture locale via pyttsx3. Chaque lecture tourne dans son propre thread,
    runAndWait() étant bloquant.
    """

    def __init__(self, words_per_minute: int = DEFAULT_WORDS_PER_MINUTE):
        self.words_per_minute = words_per_minute
        self._engine = None
        self._current: Optional[SpeechHandle] = None
        self._lock = threading.Lock()
        self._available: Optional[bool] = None

    def _get_engine(self):
        if self._engine is None:
            import pyttsx3
            self._engine = pyttsx3.init()
        return self._engine

    @property
    def available(self) -> bool:
        if self._available is None:
            try:
                self._get_engine()
                self._available = True
            except Exception as exc:
                logger.warning("TTS not available (speech disabled): %s", exc)
                self._available = False
        return self._available

    def voices(self) -> List[Voice]:
        if not self.available:
            return []
        result = []
        for v in self._get_engine().getProperty("voices") or []:
            languages = getattr(v, "languages", None) or []
            lang = languages[0] if languages else ""
            if isinstance(lang, bytes):
                # espeak préfixe le code langue d'un octet de priorité
                lang = lang.decode("utf-8", errors="ignore").lstrip("\x05").strip()
            result.append(Voice(id=v.id, name=v.name or "", lang=str(lang)))
        return result

    def speak(self, text, lang, voice=None, rate=1.0, on_end=None, on_error=None) -> SpeechHandle:
        handle = SpeechHandle(text)
        if not self.available:
            handle.finish()
            if on_end:
                on_end()
            return handle

        with self._lock:
            self._current = handle

        thread = threading.Thread(
            target=self._run,
            args=(handle, voice, rate, on_end, on_error),
            name=f"tts-{handle.id[:8]}",
            daemon=True,
        )
        thread.start()
        return handle

    def _run(self, handle, voice, rate, on_end, on_error):
        engine = self._get_engine()
        try:
            if voice is not None:
                engine.setProperty("voice", voice.id)
            engine.setProperty("rate", int(self.words_per_minute * rate))
            engine.say(handle.text)
            engine.runAndWait()
        except Exception as exc:
            logger.warning("TTS playback error: %s", exc)
            handle.finish()
            if on_error and not handle.cancelled:
                on_error(exc)
            return

        handle.finish()
        with self._lock:
            if self._current is handle:
                self._current = None
        if on_end and not handle.cancelled:
            on_end()

    def cancel(self, handle=None) -> None:
        with self._lock:
            target = handle or self._current
            if target is None or target.done:
                return
            target.cancelled = True
            if self._current is target:
                self._current = None
        try:
            self._get_engine().stop()
        except Exception as exc:
            logger.warning("TTS stop failed: %s", exc)
        target.finish()


def select_voice(voices: Sequence[Voice], lang: str = "ne-NP") -> Optional[Voice]:
    """Voix de la langue cible, sinon d'une langue proche, sinon None (défaut plateforme)."""
    target = lang.split("-")[0].lower()
    candidates = [target]
    if target in RELATED_LANGUAGES:
        candidates.append(RELATED_LANGUAGES[target])

    for code in candidates:
        name = LANGUAGE_NAMES.get(code, code)
        for voice in voices:
            if voice.lang.lower().replace("_", "-").startswith(code) or name in voice.name.lower():
                return voice
    return None


# ── Nettoyage du texte avant lecture ─────────────────────────

_SPOKEN_EMOJIS = [
    ("✅", "Good news: "),
    ("⚠️", "Warning: "),
    ("⚠", "Warning: "),
    ("💡", "Tip: "),
    ("📴", "Offline mode: "),
]

_CLEANUP_RULES = [
    (re.compile(r"```[\s\S]*?```"), ""),
    (re.compile(r"`[^`]+`"), ""),
    (re.compile(r"\*\*([^*]+)\*\*"), r"\1"),
    (re.compile(r"\*([^*]+)\*"), r"\1"),
    (re.compile(r"__([^_]+)__"), r"\1"),
    (re.compile(r"_([^_]+)_"), r"\1"),
    (re.compile(r"#{1,6}\s"), ""),
    (re.compile(r"^\s*[-•]\s*", re.MULTILINE), ""),
    (re.compile(r"^\d+\.\s", re.MULTILINE), ""),
    (re.compile(r"\?{2,}"), "?"),
    (re.compile(r"!{2,}"), "!"),
    (re.compile(r"\.{3,}"), "."),
    (re.compile(r"^\s*[?!.]+\s*$", re.MULTILINE), ""),
    (re.compile(r"\s+[?!]+\s+"), " "),
]

_EMOJI_PATTERN = re.compile(
    "["
    "\U0001F600-\U0001F64F"
    "\U0001F300-\U0001F5FF"
    "\U0001F680-\U0001F6FF"
    "\U0001F1E0-\U0001F1FF"
    "\U0001F900-\U0001F9FF"
    "\u2600-\u26FF"
    "\u2700-\u27BF"
    "\u200B-\u200D\uFE0F\uFEFF"
    "]"
)


def clean_text_for_speech(text: str) -> str:
    """Retire markdown, code et emojis ; certains emojis deviennent des mots."""
    for pattern, replacement in _CLEANUP_RULES:
        text = pattern.sub(replacement, text)
    for emoji, spoken in _SPOKEN_EMOJIS:
        text = text.replace(emoji, spoken)
    text = _EMOJI_PATTERN.sub("", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"[ ]{2,}", " ", text)
    return text.strip()
