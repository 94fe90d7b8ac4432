import os

# settings 싱글톤이 import 시점에 생성되므로 모듈 import 전에 환경변수 지정
os.environ["GEMINI_API_KEY"] = "test-key"
os.environ["ADMIN_PIN"] = "4242"
os.environ["LOG_LEVEL"] = "DEBUG"

import pytest
from fastapi.testclient import TestClient

from schemas.grades import Course, GradeLevel, GradeSheet, GradeSystem
from schemas.llm import GeminiReply


@pytest.fixture
def client():
    from main import app
    with TestClient(app) as c:
        yield c


@pytest.fixture
def german_sheet() -> GradeSheet:
    return GradeSheet(
        system=GradeSystem.GERMAN,
        grade_level=GradeLevel.TEN,
        courses=[
            Course(id="1", name="Mathematik", grade="2", credits=1),
            Course(id="2", name="Deutsch", grade="1-", credits=1),
            Course(id="3", name="Englisch", grade="2-", credits=1),
        ],
    )


@pytest.fixture
def uk_sheet() -> GradeSheet:
    return GradeSheet(
        system=GradeSystem.UK,
        grade_level=GradeLevel.Y12,
        courses=[
            Course(id="a", name="Math", grade="8", credits=2),
            Course(id="b", name="Physics", grade="7-", credits=1),
            Course(id="c", name="History", grade="U", credits=1),
        ],
    )


@pytest.fixture
def fake_gemini(monkeypatch):
    """llm_gemini.generate_json / generate_text 를 고정 응답으로 대체하고 호출 인자를 기록"""
    from services.llm import llm_gemini

    calls = []
    replies = []

    async def _fake(system_prompt, user_prompt, **kwargs):
        calls.append({"system": system_prompt, "user": user_prompt, **kwargs})
        reply = replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply if isinstance(reply, GeminiReply) else GeminiReply(text=reply)

    monkeypatch.setattr(llm_gemini, "generate_json", _fake)
    monkeypatch.setattr(llm_gemini, "generate_text", _fake)

    class Handle:
        def queue(self, *items):
            replies.extend(items)
            return self

    handle = Handle()
    handle.calls = calls
    return handle
