import asyncio
import json

import httpx
import pytest

from config.settings import settings
from services.llm import llm_gemini
from services.llm.errors import GeminiConfigError, GeminiError, MalformedResponseError


def _ok(text="hello", **candidate_extra):
    return {
        "candidates": [{
            "content": {"parts": [{"text": text}]},
            "finishReason": "STOP",
            **candidate_extra,
        }],
        "usageMetadata": {"totalTokenCount": 12},
    }


@pytest.fixture
def transport(monkeypatch):
    """_client 를 MockTransport 기반 클라이언트로 교체하고 요청을 기록"""
    state = {"requests": [], "response": httpx.Response(200, json=_ok())}

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        resp = state["response"]
        if isinstance(resp, Exception):
            raise resp
        return resp

    monkeypatch.setattr(
        llm_gemini, "_client",
        lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    return state


def _body(request: httpx.Request) -> dict:
    return json.loads(request.content)


def test_generate_json_sends_schema_and_system_instruction(transport):
    transport["response"] = httpx.Response(200, json=_ok('{"a": 1}'))
    reply = asyncio.run(llm_gemini.generate_json("SYS", "USER", schema={"type": "OBJECT"}, temperature=0.5))

    req = transport["requests"][0]
    body = _body(req)
    assert req.url.params["key"] == "test-key"
    assert req.url.path.endswith(f"/models/{settings.GEMINI_MODEL}:generateContent")
    assert body["systemInstruction"]["parts"][0]["text"] == "SYS"
    assert body["contents"][0]["parts"][0]["text"] == "USER"
    assert body["generationConfig"]["responseMimeType"] == "application/json"
    assert body["generationConfig"]["responseSchema"] == {"type": "OBJECT"}
    assert body["generationConfig"]["temperature"] == 0.5
    assert body["generationConfig"]["maxOutputTokens"] == settings.LLM_MAX_TOKENS
    assert reply.text == '{"a": 1}'
    assert reply.finish_reason == "STOP"


def test_generate_text_with_search_and_image(transport):
    asyncio.run(llm_gemini.generate_text(
        "SYS", "solve",
        use_search=True,
        images=[{"mime_type": "image/png", "data": "AAAA"}],
        model="gemini-test",
    ))
    req = transport["requests"][0]
    body = _body(req)
    assert "/models/gemini-test:generateContent" in req.url.path
    assert body["tools"] == [{"google_search": {}}]
    parts = body["contents"][0]["parts"]
    assert parts[0] == {"inlineData": {"mimeType": "image/png", "data": "AAAA"}}
    assert parts[-1] == {"text": "solve"}
    assert "responseMimeType" not in body["generationConfig"]


def test_generate_text_without_search_has_no_tools(transport):
    asyncio.run(llm_gemini.generate_text("SYS", "hi"))
    assert "tools" not in _body(transport["requests"][0])


def test_missing_api_key_raises_config_error(transport, monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "")
    with pytest.raises(GeminiConfigError):
        asyncio.run(llm_gemini.generate_text("SYS", "hi"))
    assert transport["requests"] == []


def test_http_error_status_becomes_gemini_error(transport):
    transport["response"] = httpx.Response(500, text="boom")
    with pytest.raises(GeminiError) as exc:
        asyncio.run(llm_gemini.generate_text("SYS", "hi"))
    assert not isinstance(exc.value, MalformedResponseError)
    assert exc.value.status_code == 502


def test_timeout_becomes_gemini_error(transport):
    transport["response"] = httpx.ReadTimeout("slow")
    with pytest.raises(GeminiError, match="시간 초과"):
        asyncio.run(llm_gemini.generate_json("SYS", "hi"))


def test_non_json_body_is_malformed(transport):
    transport["response"] = httpx.Response(200, text="<html>")
    with pytest.raises(MalformedResponseError) as exc:
        asyncio.run(llm_gemini.generate_json("SYS", "hi"))
    assert exc.value.raw_text == "<html>"


def test_parse_reply_joins_parts_and_dedups_sources():
    data = _ok(groundingMetadata={"groundingChunks": [
        {"web": {"uri": "https://a.example", "title": "A"}},
        {"web": {"uri": "https://a.example", "title": "A again"}},
        {"web": {"uri": "https://b.example", "title": "B"}},
        {"web": {"uri": "https://c.example"}},
        {},
    ]})
    data["candidates"][0]["content"]["parts"].append({"text": " world"})

    reply = llm_gemini.parse_reply(data)
    assert reply.text == "hello world"
    assert [(s.title, s.url) for s in reply.sources] == [("A", "https://a.example"), ("B", "https://b.example")]
    assert reply.usage == {"totalTokenCount": 12}


def test_parse_reply_without_candidates_is_malformed():
    with pytest.raises(MalformedResponseError, match="SAFETY"):
        llm_gemini.parse_reply({"promptFeedback": {"blockReason": "SAFETY"}})


def test_parse_reply_with_blank_text_is_malformed():
    with pytest.raises(MalformedResponseError):
        llm_gemini.parse_reply(_ok("   "))
