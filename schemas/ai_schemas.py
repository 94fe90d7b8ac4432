"""
schemas/ai_schemas.py

- Gemini 응답 검증용 모델 (AnalysisResult, UniversityCheckResult, Exercise)
- /v1/ai, /v1/chat 요청 모델
- 응답 JSON 키는 프론트엔드와 동일하게 camelCase (populate_by_name으로 snake_case도 허용)
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from schemas.grades import GradeSheet, GradeSystem
from schemas.llm import Source

GERMAN_CATEGORIES = ("Optimistisch", "Realistisch", "Sicher")
UK_CATEGORIES = ("Reach", "Target", "Safety")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# =========================================================
# 1) 프로필 분석
# =========================================================

class CollegeRecommendation(CamelModel):
    name: str
    location: str
    category: Literal["Optimistisch", "Realistisch", "Sicher", "Reach", "Target", "Safety"]
    acceptance_rate: str = Field(..., description="NC(독일) 또는 입학 요구 성적(영국)")
    reason: str


class AcademicAdvice(CamelModel):
    summary: str
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)


class AnalysisResult(CamelModel):
    colleges: List[CollegeRecommendation] = Field(..., min_length=1)
    advice: AcademicAdvice
    archetype: str = Field(..., min_length=1)
    careers: List[str] = Field(..., min_length=1)


# Gemini responseSchema (OpenAPI 부분집합)
ANALYSIS_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "archetype": {"type": "STRING", "description": "A cool title for the student archetype based on grades."},
        "careers": {
            "type": "ARRAY",
            "description": "3 concrete career paths fitting the profile.",
            "items": {"type": "STRING"},
        },
        "colleges": {
            "type": "ARRAY",
            "description": "A list of 5-6 college recommendations.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING"},
                    "location": {"type": "STRING"},
                    "category": {"type": "STRING", "enum": [*GERMAN_CATEGORIES, *UK_CATEGORIES]},
                    "acceptanceRate": {
                        "type": "STRING",
                        "description": "Estimated NC (Germany) or Grade Requirements (UK)",
                    },
                    "reason": {"type": "STRING"},
                },
                "required": ["name", "location", "category", "acceptanceRate", "reason"],
            },
        },
        "advice": {
            "type": "OBJECT",
            "properties": {
                "summary": {"type": "STRING"},
                "strengths": {"type": "ARRAY", "items": {"type": "STRING"}},
                "improvements": {"type": "ARRAY", "items": {"type": "STRING"}},
            },
            "required": ["summary", "strengths", "improvements"],
        },
    },
    "required": ["colleges", "advice", "archetype", "careers"],
}


# =========================================================
# 2) 대학 입학 가능성
# =========================================================

class UniversityCheckResult(CamelModel):
    uni_name: str
    likelihood: Literal["High", "Medium", "Low"]
    requirements: str
    gap_analysis: str
    verdict_text: str
    sources: List[Source] = Field(default_factory=list)


# =========================================================
# 3) 연습 문제
# =========================================================

class Exercise(CamelModel):
    subject: str
    topic: str
    question: str
    image_url: Optional[str] = None
    hint: str = ""
    options: List[str] = Field(..., min_length=2)
    correct_answer: str
    explanation: str = ""
    difficulty: Literal["Leicht", "Mittel", "Schwer", "Easy", "Medium", "Hard"] = "Mittel"

    @field_validator("image_url")
    @classmethod
    def _blank_to_none(cls, v):
        # 모델이 "이미지 없음"을 빈 문자열로 돌려줌
        if v is None or not v.strip() or not v.startswith("https://"):
            return None
        return v

    @model_validator(mode="after")
    def _answer_in_options(self):
        if self.correct_answer not in self.options:
            raise ValueError("correctAnswer must be one of options")
        return self


# =========================================================
# 요청 모델
# =========================================================

class AnalysisReq(BaseModel):
    sheet: GradeSheet


class AdmissionReq(BaseModel):
    uni_query: str = Field(..., min_length=2, max_length=200, description="관심 대학/학교명")
    sheet: GradeSheet


class PracticeReq(BaseModel):
    subject: str = Field(..., min_length=1, max_length=100)
    grade_level: str = Field(..., min_length=1, max_length=100)
    topic: Optional[str] = Field(default=None, max_length=200, description="생략 시 무작위 주제")
    language: GradeSystem = GradeSystem.GERMAN
    difficulty: Optional[Literal["easy", "medium", "hard"]] = None


class SolveReq(BaseModel):
    problem: str = Field(..., min_length=1, max_length=10000)
    language: GradeSystem = GradeSystem.GERMAN


class HomeworkReq(BaseModel):
    image_base64: str = Field(..., min_length=16, description="data URL 접두어 없이 base64 본문만")
    mime_type: Literal["image/jpeg", "image/png", "image/webp", "image/heic"] = "image/jpeg"
    language: GradeSystem = GradeSystem.GERMAN

    @field_validator("image_base64")
    @classmethod
    def _strip_data_url(cls, v: str) -> str:
        # "data:image/jpeg;base64,...." 형태도 허용
        if v.startswith("data:") and "," in v:
            return v.split(",", 1)[1]
        return v


class TextOut(BaseModel):
    text: str


# =========================================================
# 채팅
# =========================================================

class ChatMessage(BaseModel):
    role: Literal["user", "model"]
    content: str = Field(..., min_length=1, max_length=10000)


class AdvisorChatReq(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000)
    history: List[ChatMessage] = Field(default_factory=list, max_length=100)
    sheet: Optional[GradeSheet] = Field(default=None, description="없으면 성적 미입력으로 간주")
    language: GradeSystem = GradeSystem.GERMAN


class InterviewChatReq(BaseModel):
    topic: str = Field(..., min_length=1, max_length=200)
    message: Optional[str] = Field(default=None, max_length=2000, description="비어 있으면 면접 시작")
    history: List[ChatMessage] = Field(default_factory=list, max_length=100)
    language: GradeSystem = GradeSystem.GERMAN


class ChatOut(BaseModel):
    reply: str
    sources: List[Source] = Field(default_factory=list, description="검색 그라운딩 출처 (상담 채팅)")
    admin: bool = False
