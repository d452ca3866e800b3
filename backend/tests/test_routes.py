"""
Tests d'intégration — fonctions HTTP tomorrow-plan & radio-tip.
"""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest
from fastapi.testclient import TestClient

from kisansathi.api.routes import get_llm_client
from kisansathi.main import app

PLAN_URL = "/functions/v1/tomorrow-plan"
TIP_URL = "/functions/v1/radio-tip"


def _chat_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _gateway_error(cls, status):
    request = httpx.Request("POST", "https://ai.gateway.lovable.dev/v1/chat/completions")
    return cls(f"HTTP {status}", response=httpx.Response(status, request=request), body=None)


@pytest.fixture
def llm():
    return MagicMock()


@pytest.fixture
def api(llm):
    app.dependency_overrides[get_llm_client] = lambda: llm
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestTomorrowPlan:

    def test_returns_plan_text(self, api, llm):
        llm.chat.completions.create.return_value = _chat_response("भोलि बिहान झार उखेल्नुहोस्।")

        resp = api.post(PLAN_URL, json={
            "crop": "धान", "stage": "रोपाइँ", "location": "चितवन",
            "recentTips": ["पानी जाँच्नुहोस्"],
        })

        assert resp.status_code == 200
        assert resp.json() == {"planText": "भोलि बिहान झार उखेल्नुहोस्।"}
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_recent_tips_not_a_list(self, api, llm):
        llm.chat.completions.create.return_value = _chat_response("X")
        resp = api.post(PLAN_URL, json={"crop": "धान", "stage": "रोपाइँ", "recentTips": None})
        assert resp.status_code == 200

    def test_missing_credential(self, api):
        app.dependency_overrides[get_llm_client] = lambda: None
        resp = api.post(PLAN_URL, json={"crop": "धान", "stage": "रोपाइँ", "recentTips": []})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Server error"}

    @pytest.mark.parametrize("cls, status", [
        (openai.RateLimitError, 429),
        (openai.APIStatusError, 402),
        (openai.APIStatusError, 503),
    ])
    def test_gateway_status_is_forwarded(self, api, llm, cls, status):
        llm.chat.completions.create.side_effect = _gateway_error(cls, status)
        resp = api.post(PLAN_URL, json={"crop": "धान", "stage": "रोपाइँ", "recentTips": []})
        assert resp.status_code == status
        assert resp.json() == {"error": "AI error"}

    def test_unexpected_error(self, api, llm):
        llm.chat.completions.create.side_effect = RuntimeError("boom")
        resp = api.post(PLAN_URL, json={"crop": "धान", "stage": "रोपाइँ", "recentTips": []})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Server error"}

    def test_unreadable_body(self, api):
        resp = api.post(PLAN_URL, content=b"{pas du json", headers={"Content-Type": "application/json"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Server error"}


class TestRadioTip:

    def test_returns_segments(self, api, llm):
        llm.chat.completions.create.return_value = _chat_response(
            "```json\n" + json.dumps([
                {"text": "अब अर्को कुरा…", "pauseMs": 1800},
                {"text": "त्यसै गरी…", "pauseMs": 100},
            ]) + "\n```"
        )

        resp = api.post(TIP_URL, json={"crop": "मकै", "stage": "फूल"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["fromAI"] is True
        assert body["textTip"] == "अब अर्को कुरा… त्यसै गरी…"
        assert body["segments"] == [
            {"text": "अब अर्को कुरा…", "pauseMs": 1800},
            {"text": "त्यसै गरी…", "pauseMs": 1500},
        ]

    def test_empty_body_uses_defaults(self, api, llm):
        llm.chat.completions.create.return_value = _chat_response("[]")
        resp = api.post(TIP_URL, json={})
        assert resp.status_code == 200
        user_prompt = llm.chat.completions.create.call_args.kwargs["messages"][1]["content"]
        assert "बाली: सामान्य" in user_prompt

    def test_credits_exhausted_fallback(self, api, llm):
        llm.chat.completions.create.side_effect = _gateway_error(openai.APIStatusError, 402)
        resp = api.post(TIP_URL, json={})
        assert resp.status_code == 200
        body = resp.json()
        assert body["fromAI"] is False
        assert len(body["segments"]) == 6
        assert body["textTip"]

    def test_rate_limited(self, api, llm):
        llm.chat.completions.create.side_effect = _gateway_error(openai.RateLimitError, 429)
        resp = api.post(TIP_URL, json={})
        assert resp.status_code == 429
        assert resp.json() == {"error": "Too many requests"}

    def test_other_gateway_error(self, api, llm):
        llm.chat.completions.create.side_effect = _gateway_error(openai.APIStatusError, 503)
        resp = api.post(TIP_URL, json={})
        assert resp.status_code == 500
        assert resp.json() == {"error": "AI error"}

    def test_missing_credential(self, api):
        app.dependency_overrides[get_llm_client] = lambda: None
        resp = api.post(TIP_URL, json={})
        assert resp.status_code == 500
        assert "error" in resp.json()


class TestPreflightAndHealth:

    @pytest.mark.parametrize("url", [PLAN_URL, TIP_URL])
    def test_options_has_cors_headers_and_no_body(self, api, url):
        resp = api.options(url, headers={
            "Origin": "https://kisan.example",
            "Access-Control-Request-Method": "POST",
        })
        assert resp.status_code == 200
        assert resp.content == b""
        assert resp.headers["access-control-allow-origin"] == "*"
        assert "apikey" in resp.headers["access-control-allow-headers"]

    def test_health_reports_gateway(self, api, monkeypatch):
        from kisansathi.core.settings import settings

        monkeypatch.setattr(settings, "AI_GATEWAY_API_KEY", "")
        body = api.get("/health").json()
        assert body["status"] == "degraded"
        assert body["version"] == settings.APP_VERSION

    def test_root(self, api):
        assert api.get("/").json()["status"] == "running"
