"""
Fixtures partagées — stores en mémoire, horloge pilotable, synthèse vocale factice.
"""

from datetime import datetime

import pytest

from kisansathi.radio.speech import SpeechEngine, SpeechHandle, Voice
from kisansathi.storage.kv_store import InMemoryStore
from kisansathi.storage.plan_store import DailyPlanStore
from kisansathi.storage.tip_cache import TipCache


class FakeClock:
    """Horloge locale réglable : clock() → datetime courant."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class RecordingSpeech(SpeechEngine):
    """
    Moteur vocal factice. Enregistre chaque lecture ; si auto_finish,
    on_end est appelé immédiatement, sinon la lecture reste « en cours ».
    """

    def __init__(self, voices=None, auto_finish=False, on_speak=None):
        self._voices = list(voices or [])
        self.auto_finish = auto_finish
        self.on_speak = on_speak
        self.spoken = []
        self.cancelled = []
        self.callbacks = []

    def voices(self):
        return list(self._voices)

    def speak(self, text, lang, voice=None, rate=1.0, on_end=None, on_error=None):
        handle = SpeechHandle(text)
        self.spoken.append({"text": text, "lang": lang, "voice": voice, "rate": rate})
        self.callbacks.append((on_end, on_error))
        if self.on_speak:
            self.on_speak(text)
        if self.auto_finish:
            handle.finish()
            if on_end:
                on_end()
        return handle

    def cancel(self, handle=None):
        self.cancelled.append(handle)
        if handle is not None:
            handle.cancelled = True
            handle.finish()


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 3, 14, 21, 30))


@pytest.fixture
def plan_store(memory_store, clock):
    return DailyPlanStore(memory_store, clock=clock)


@pytest.fixture
def tip_cache(memory_store):
    return TipCache(memory_store)


@pytest.fixture
def speech():
    return RecordingSpeech(voices=[
        Voice(id="en", name="English (America)", lang="en-US"),
        Voice(id="hi", name="Hindi", lang="hi-IN"),
    ])
