import base64
import json

from config.settings import settings
from schemas.llm import GeminiReply, Source
from services.llm.errors import GeminiConfigError, GeminiError, MalformedResponseError

SHEET = {
    "system": "en",
    "grade_level": "Year 11 (GCSE)",
    "courses": [
        {"id": "1", "name": "Math", "grade": "8", "credits": 2},
        {"id": "2", "name": "Biology", "grade": "6"},
    ],
}

ANALYSIS = {
    "archetype": "The Builder",
    "careers": ["Engineer", "Architect", "Surveyor"],
    "colleges": [
        {"name": "Imperial College", "location": "London", "category": "Reach",
         "acceptanceRate": "A*A*A", "reason": "Strong maths"},
    ],
    "advice": {"summary": "Keep going", "strengths": ["Math"], "improvements": ["Biology"]},
}


def test_analysis(client, fake_gemini):
    fake_gemini.queue(json.dumps(ANALYSIS))
    r = client.post("/v1/ai/analysis", json={"sheet": SHEET})
    assert r.status_code == 200
    assert r.headers["cache-control"] == "no-store"
    data = r.json()["data"]
    assert data["archetype"] == "The Builder"
    assert data["colleges"][0]["acceptanceRate"] == "A*A*A"
    # Year 11 에서는 가중치가 1로 정리된 뒤 프롬프트에 들어감
    assert "Math: 8," in fake_gemini.calls[0]["user"]
    assert "(Advanced/LK)" not in fake_gemini.calls[0]["user"]


def test_analysis_malformed_reply_is_502(client, fake_gemini):
    fake_gemini.queue("sorry, I cannot help")
    r = client.post("/v1/ai/analysis", json={"sheet": SHEET})
    assert r.status_code == 502
    assert r.json()["error"]["code"] == "LLM_MALFORMED_RESPONSE"


def test_upstream_error_is_502(client, fake_gemini):
    fake_gemini.queue(GeminiError("Gemini API 오류 (HTTP 500)"))
    r = client.post("/v1/ai/solve", json={"problem": "2+2"})
    assert r.status_code == 502
    assert r.json()["error"] == {"code": "LLM_UPSTREAM_ERROR", "message": "Gemini API 오류 (HTTP 500)"}


def test_missing_key_is_503(client, fake_gemini):
    fake_gemini.queue(GeminiConfigError("GEMINI_API_KEY 환경변수가 설정되지 않았습니다."))
    r = client.post("/v1/ai/solve", json={"problem": "2+2"})
    assert r.status_code == 503
    assert r.json()["error"]["code"] == "LLM_NOT_CONFIGURED"


def test_admission_returns_sources(client, fake_gemini):
    payload = {
        "uniName": "University of Oxford", "likelihood": "Low", "requirements": "A*A*A",
        "gapAnalysis": "Biology 6 is below the bar.", "verdictText": "Aim higher.",
    }
    fake_gemini.queue(GeminiReply(
        text="```json\n" + json.dumps(payload) + "\n```",
        sources=[Source(title="Oxford Admissions", url="https://www.ox.ac.uk")],
    ))
    r = client.post("/v1/ai/admission", json={"uni_query": "  Oxford  ", "sheet": SHEET})
    data = r.json()["data"]
    assert data["likelihood"] == "Low"
    assert data["sources"] == [{"title": "Oxford Admissions", "url": "https://www.ox.ac.uk"}]
    assert 'admission chances for "Oxford"' in fake_gemini.calls[0]["user"]


def test_admission_query_too_short(client):
    r = client.post("/v1/ai/admission", json={"uni_query": "O", "sheet": SHEET})
    assert r.status_code == 422


def test_practice(client, fake_gemini):
    fake_gemini.queue(json.dumps({
        "subject": "Math", "topic": "Vectors", "question": "|(3,4)| = ?",
        "imageUrl": "", "hint": "Pythagoras", "options": ["5", "7", "12", "1"],
        "correctAnswer": "5", "explanation": "sqrt(9+16)", "difficulty": "Medium",
    }))
    r = client.post("/v1/ai/practice", json={
        "subject": "Math", "grade_level": "Year 11 (GCSE)", "topic": "   ", "language": "en",
    })
    data = r.json()["data"]
    assert data["correctAnswer"] == "5"
    assert data["imageUrl"] is None
    # 공백뿐인 주제는 무작위 주제로 처리
    assert "RANDOM, DISTINCT topic" in fake_gemini.calls[0]["user"]


def test_practice_rejects_unknown_difficulty(client):
    r = client.post("/v1/ai/practice", json={"subject": "Math", "grade_level": "Y11", "difficulty": "insane"})
    assert r.status_code == 422


def test_solve(client, fake_gemini):
    fake_gemini.queue("x = 2")
    r = client.post("/v1/ai/solve", json={"problem": "  2x = 4 ", "language": "de"})
    assert r.json() == {"ok": True, "data": {"text": "x = 2"}}
    assert "Problem: 2x = 4" in fake_gemini.calls[0]["user"]


def test_homework_accepts_data_url(client, fake_gemini):
    fake_gemini.queue("Lösung: ...")
    encoded = base64.b64encode(b"\x89PNG fake image bytes").decode()
    r = client.post("/v1/ai/homework", json={
        "image_base64": f"data:image/png;base64,{encoded}", "mime_type": "image/png",
    })
    assert r.status_code == 200
    assert r.json()["data"]["text"] == "Lösung: ..."
    assert fake_gemini.calls[0]["images"] == [{"mime_type": "image/png", "data": encoded}]


def test_homework_invalid_base64_is_422(client, fake_gemini):
    r = client.post("/v1/ai/homework", json={"image_base64": "this is not base64 at all!!"})
    assert r.status_code == 422
    assert fake_gemini.calls == []


def test_homework_too_large_is_413(client, fake_gemini, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_MB", 0)
    encoded = base64.b64encode(b"x" * 32).decode()
    r = client.post("/v1/ai/homework", json={"image_base64": encoded})
    assert r.status_code == 413
    assert fake_gemini.calls == []


def test_malformed_error_keeps_status_from_exception(client, fake_gemini):
    fake_gemini.queue(MalformedResponseError("Gemini 응답 본문이 비어 있습니다."))
    r = client.post("/v1/ai/solve", json={"problem": "?"})
    assert r.status_code == 502
    assert r.json()["error"]["code"] == "LLM_MALFORMED_RESPONSE"
