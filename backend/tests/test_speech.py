"""
Tests unitaires — synthèse vocale (choix de voix, nettoyage, moteur pyttsx3).
"""

import threading
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from kisansathi.radio.speech import (
    NullSpeechEngine,
    Pyttsx3SpeechEngine,
    Voice,
    clean_text_for_speech,
    select_voice,
)

NEPALI = Voice(id="ne", name="Nepali", lang="ne-NP")
HINDI = Voice(id="hi", name="Hindi", lang="hi_IN")
ENGLISH = Voice(id="en", name="English", lang="en-US")


class TestSelectVoice:

    def test_prefers_target_language(self):
        assert select_voice([ENGLISH, HINDI, NEPALI], "ne-NP") is NEPALI

    def test_falls_back_to_related_language(self):
        assert select_voice([ENGLISH, HINDI], "ne-NP") is HINDI

    def test_matches_on_voice_name(self):
        espeak = Voice(id="roa/ne", name="nepali", lang="")
        assert select_voice([ENGLISH, espeak]) is espeak

    def test_platform_default_when_nothing_matches(self):
        assert select_voice([ENGLISH], "ne-NP") is None
        assert select_voice([], "ne-NP") is None

    def test_other_language_has_no_related_fallback(self):
        assert select_voice([HINDI], "en-US") is None


class TestCleanTextForSpeech:

    def test_strips_markdown(self):
        text = "## योजना\n- **बिहान** पानी\n1. _साँझ_ मल"
        assert clean_text_for_speech(text) == "योजना\nबिहान पानी\nसाँझ मल"

    def test_removes_code(self):
        assert clean_text_for_speech("पहिले ```json\n[1]\n``` पछि `x`") == "पहिले पछि"

    def test_spoken_emojis(self):
        assert clean_text_for_speech("✅ सबै ठीक") == "Good news: सबै ठीक"
        assert clean_text_for_speech("⚠️ सावधान") == "Warning: सावधान"

    def test_other_emojis_removed(self):
        assert clean_text_for_speech("धान 🌾🌧️ रोपाइँ") == "धान रोपाइँ"

    def test_collapses_punctuation(self):
        assert clean_text_for_speech("के हो??? ठीक छ!!! अनि...") == "के हो? ठीक छ! अनि."


class TestNullSpeechEngine:

    def test_finishes_immediately(self):
        engine = NullSpeechEngine()
        on_end = MagicMock()
        handle = engine.speak("x", "ne-NP", on_end=on_end)
        assert engine.available is False
        assert handle.done
        on_end.assert_called_once()


class TestPyttsx3SpeechEngine:

    @pytest.fixture
    def fake_pyttsx3(self):
        driver = MagicMock()
        driver.getProperty.return_value = [
            SimpleNamespace(id="hi", name="Hindi", languages=[b"\x05hi"]),
            SimpleNamespace(id="en", name="English", languages=["en-US"]),
        ]
        module = MagicMock()
        module.init.return_value = driver
        with patch.dict("sys.modules", {"pyttsx3": module}):
            yield module, driver

    def test_voices_decode_espeak_languages(self, fake_pyttsx3):
        engine = Pyttsx3SpeechEngine()
        voices = engine.voices()
        assert voices[0] == Voice(id="hi", name="Hindi", lang="hi")
        assert voices[1].lang == "en-US"

    def test_speak_runs_in_worker_thread(self, fake_pyttsx3):
        _, driver = fake_pyttsx3
        engine = Pyttsx3SpeechEngine(words_per_minute=200)
        on_end = MagicMock()

        handle = engine.speak("नमस्ते", "ne-NP", voice=HINDI, rate=0.95, on_end=on_end)

        assert handle.wait(2)
        driver.setProperty.assert_any_call("voice", "hi")
        driver.setProperty.assert_any_call("rate", 190)
        driver.say.assert_called_once_with("नमस्ते")
        driver.runAndWait.assert_called_once()

    def test_playback_error_reported(self, fake_pyttsx3):
        _, driver = fake_pyttsx3
        driver.runAndWait.side_effect = RuntimeError("no audio device")
        engine = Pyttsx3SpeechEngine()
        errors = []
        reported = threading.Event()

        def _on_error(exc):
            errors.append(exc)
            reported.set()

        engine.speak("x", "ne-NP", on_error=_on_error)

        assert reported.wait(2)
        assert isinstance(errors[0], RuntimeError)

    def test_init_failure_disables_speech(self, fake_pyttsx3):
        module, _ = fake_pyttsx3
        module.init.side_effect = RuntimeError("no driver")
        engine = Pyttsx3SpeechEngine()
        on_end = MagicMock()

        assert engine.available is False
        assert engine.voices() == []
        assert engine.speak("x", "ne-NP", on_end=on_end).done
        on_end.assert_called_once()
