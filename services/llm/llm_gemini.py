import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from config.settings import settings
from schemas.llm import GeminiReply, Source
from services.llm.errors import GeminiConfigError, GeminiError, MalformedResponseError

logger = logging.getLogger(__name__)


def _client():
    return httpx.AsyncClient(timeout=httpx.Timeout(settings.LLM_TIMEOUT, connect=10.0))


def _endpoint(model: str) -> str:
    base = settings.GEMINI_API_BASE_URL.rstrip("/")
    return f"{base}/models/{model}:generateContent"


# ==========================================================
# [공통 호출 함수 with Debug Log]
# ==========================================================
async def _call_gemini(body: dict, model: str) -> dict:
    """Gemini API 호출 공통 함수"""
    if not settings.GEMINI_API_KEY:
        raise GeminiConfigError("GEMINI_API_KEY 환경변수가 설정되지 않았습니다.")

    params = {"key": settings.GEMINI_API_KEY}
    async with _client() as client:
        try:
            r = await client.post(_endpoint(model), params=params, json=body)
            r.raise_for_status()
            data = r.json()
        except httpx.TimeoutException as e:
            logger.error(f"Gemini request timed out: {e}")
            raise GeminiError("Gemini 응답 시간 초과") from e
        except httpx.HTTPStatusError as e:
            logger.error(f"Gemini request failed: HTTP {e.response.status_code} {e.response.text[:500]}")
            raise GeminiError(f"Gemini API 오류 (HTTP {e.response.status_code})") from e
        except httpx.HTTPError as e:
            logger.error(f"Gemini request failed: {e}")
            raise GeminiError(f"Gemini 연결 실패: {e}") from e
        except ValueError as e:
            raise MalformedResponseError("Gemini 응답이 JSON이 아닙니다.", raw_text=r.text) from e

    # ✅ 응답 전체 로그 찍기 (디버그용)
    logger.debug("===== GEMINI RAW RESPONSE =====")
    logger.debug(json.dumps(data, ensure_ascii=False, indent=2))
    logger.debug("==============================")
    return data


def sources_from_chunks(chunks: List[dict]) -> List[Source]:
    """groundingChunks → Source 목록 (url 기준 중복 제거)"""
    sources: List[Source] = []
    seen = set()
    for chunk in chunks:
        web = chunk.get("web") or {}
        uri, title = web.get("uri"), web.get("title")
        if uri and title and uri not in seen:
            seen.add(uri)
            sources.append(Source(title=title, url=uri))
    return sources


def _extract_sources(candidate: dict) -> List[Source]:
    chunks = (candidate.get("groundingMetadata") or {}).get("groundingChunks") or []
    return sources_from_chunks(chunks)


def parse_reply(data: dict) -> GeminiReply:
    """generateContent 원본 응답 → GeminiReply"""
    candidates = data.get("candidates") or []
    if not candidates:
        reason = (data.get("promptFeedback") or {}).get("blockReason")
        raise MalformedResponseError(f"Gemini 응답에 후보가 없습니다. (blockReason={reason})")

    candidate = candidates[0]
    parts = (candidate.get("content") or {}).get("parts") or []
    text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
    if not text.strip():
        raise MalformedResponseError("Gemini 응답 본문이 비어 있습니다.")

    return GeminiReply(
        text=text,
        sources=_extract_sources(candidate),
        usage=data.get("usageMetadata"),
        finish_reason=candidate.get("finishReason"),
    )


def _generation_config(temperature: Optional[float], max_tokens: Optional[int]) -> Dict[str, Any]:
    t = settings.LLM_TEMPERATURE if temperature is None else float(temperature)
    mx = settings.LLM_MAX_TOKENS if max_tokens is None else int(max_tokens)
    return {"temperature": t, "maxOutputTokens": mx}


# ==========================================================
# [JSON 모드]
# ==========================================================
async def generate_json(system_prompt: str, user_prompt: str,
                        schema: Optional[Dict[str, Any]] = None,
                        temperature: float | None = None, max_tokens: int | None = None,
                        model: str | None = None) -> GeminiReply:
    """
    responseMimeType=application/json 으로 호출.
    - schema가 있으면 responseSchema로 구조 강제 (검색 도구와 함께 쓸 수 없음)
    """
    config = _generation_config(temperature, max_tokens)
    config["responseMimeType"] = "application/json"
    if schema is not None:
        config["responseSchema"] = schema

    body = {
        "systemInstruction": {"parts": [{"text": system_prompt}]},
        "generationConfig": config,
        "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
    }

    data = await _call_gemini(body, model or settings.GEMINI_MODEL)
    return parse_reply(data)


# ==========================================================
# [TEXT 모드]
# ==========================================================
async def generate_text(system_prompt: str, user_prompt: str,
                        use_search: bool = False,
                        images: Optional[List[Dict[str, str]]] = None,
                        temperature: float | None = None, max_tokens: int | None = None,
                        model: str | None = None) -> GeminiReply:
    """
    일반 텍스트 호출.
    - use_search: google_search 도구 활성화 (출처는 reply.sources)
    - images: [{"mime_type": "image/jpeg", "data": "<base64>"}]
    """
    parts: List[Dict[str, Any]] = [
        {"inlineData": {"mimeType": img["mime_type"], "data": img["data"]}}
        for img in (images or [])
    ]
    parts.append({"text": user_prompt})

    body: Dict[str, Any] = {
        "systemInstruction": {"parts": [{"text": system_prompt}]},
        "generationConfig": _generation_config(temperature, max_tokens),
        "contents": [{"role": "user", "parts": parts}],
    }
    if use_search:
        body["tools"] = [{"google_search": {}}]

    data = await _call_gemini(body, model or settings.GEMINI_MODEL)
    return parse_reply(data)
