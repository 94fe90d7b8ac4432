"""
services/ai_service.py

Gemini 호출을 감싼 AI 기능 모음.
- 프롬프트 생성 → llm_gemini 호출 → JSON 정리 → pydantic 검증
- 검증 실패는 모두 MalformedResponseError 로 올림 (라우터에서 502 처리)
"""

import json
import logging
import random
import re
from typing import Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from config.settings import settings
from schemas.ai_schemas import (
    ANALYSIS_RESPONSE_SCHEMA,
    GERMAN_CATEGORIES,
    UK_CATEGORIES,
    AnalysisResult,
    Exercise,
    UniversityCheckResult,
)
from schemas.grades import GradeSheet, GradeSystem
from services.course_service import course_list_text
from services.grade_calculator import compute_average
from services.llm import llm_gemini
from services.llm.errors import MalformedResponseError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def target_language(system: GradeSystem) -> str:
    return "English" if system is GradeSystem.UK else "German"


# ==========================================================
# [JSON 정리/검증]
# ==========================================================
def clean_json(text: str) -> str:
    """첫 '{' 부터 마지막 '}' 까지 잘라냄 (마크다운 코드블록, 앞뒤 설명 제거)"""
    if not text:
        return "{}"
    match = _JSON_OBJECT.search(text)
    return match.group(0) if match else text


def parse_model(text: str, model_cls: Type[M]) -> M:
    try:
        payload = json.loads(clean_json(text))
    except json.JSONDecodeError as e:
        logger.warning(f"LLM did not return valid JSON for {model_cls.__name__}: {text[:300]}")
        raise MalformedResponseError("모델 응답이 올바른 JSON이 아닙니다.", raw_text=text) from e

    try:
        return model_cls.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"LLM JSON failed validation for {model_cls.__name__}: {e.error_count()} errors")
        raise MalformedResponseError(f"모델 응답 형식 오류: {model_cls.__name__}", raw_text=text) from e


# ==========================================================
# [1] 학업 프로필 분석
# ==========================================================
def _analysis_system_context(system: GradeSystem) -> str:
    if system is GradeSystem.UK:
        return (
            "SYSTEM: UK EDUCATION (GCSE/A-Levels).\n"
            "Grades: 9-1 Scale (9 is A**, 1 is Fail).\n"
            "Recommendation Logic: Suggest UNIVERSITIES IN THE UK (England, Scotland, Wales).\n"
            "Categories: Reach, Target, Safety.\n"
            "Language: English."
        )
    return (
        "SYSTEM: DEUTSCHES SCHULSYSTEM.\n"
        "Noten: 1-6 (1 ist Bestnote).\n"
        "Recommendation Logic: Empfehle Deutsche Hochschulen/Unis.\n"
        "Categories: Optimistisch, Realistisch, Sicher.\n"
        "Language: German."
    )


async def analyze_academic_profile(sheet: GradeSheet) -> AnalysisResult:
    """성적표 → 대학 추천, 아키타입, 진로, 학습 조언"""
    average = compute_average(sheet.courses, sheet.system)
    country = "the UK" if sheet.system is GradeSystem.UK else "Germany"

    prompt = f"""
Analyze this student profile:
Level: {sheet.grade_level.value}
Average Score: {average:.2f} (Note: Calculated numeric average).
Subjects: {course_list_text(sheet.courses, mark_advanced=True)}.

Task:
1. Create a "Student Archetype" title.
2. Suggest 3 Careers.
3. Suggest 5-6 Universities/Colleges strictly in {country}.
4. Provide academic advice.

JSON Response only.
"""
    reply = await llm_gemini.generate_json(
        _analysis_system_context(sheet.system), prompt, schema=ANALYSIS_RESPONSE_SCHEMA,
    )
    result = parse_model(reply.text, AnalysisResult)

    allowed = UK_CATEGORIES if sheet.system is GradeSystem.UK else GERMAN_CATEGORIES
    wrong = [c.category for c in result.colleges if c.category not in allowed]
    if wrong:
        raise MalformedResponseError(f"추천 카테고리가 성적 체계와 맞지 않습니다: {wrong}", raw_text=reply.text)
    return result


# ==========================================================
# [2] 대학 입학 가능성 (웹 검색)
# ==========================================================
async def check_university_admission(uni_query: str, sheet: GradeSheet) -> UniversityCheckResult:
    if sheet.system is GradeSystem.UK:
        context = "Context: UK University Admissions (UCAS, A-Levels/GCSEs). Grades 9-1."
    else:
        context = "Context: Deutsche Hochschulzulassung (NC, Abitur, Wartesemester). Grades 1-6."

    prompt = f"""
Task: Check admission chances for "{uni_query}".
User Profile: Level {sheet.grade_level.value}, Grades: [{course_list_text(sheet.courses)}].
{context}

Instructions:
1. Use Google Search to find current entry requirements for "{uni_query}".
2. Compare requirements with User Profile.
3. Provide a strict analysis.

Output JSON strictly (no markdown):
{{
  "uniName": "Full Name of Uni/School",
  "likelihood": "High" | "Medium" | "Low",
  "requirements": "Short summary of official requirements found online.",
  "gapAnalysis": "Specific comparison. E.g. 'You have Math 3, they require 1.'",
  "verdictText": "One sentence advice."
}}
"""
    # 검색 도구 사용 시 responseSchema를 쓸 수 없어 텍스트로 받아 파싱
    reply = await llm_gemini.generate_text(
        "You are a university admissions analyst.", prompt, use_search=True, temperature=0.5,
    )
    result = parse_model(reply.text, UniversityCheckResult)
    return result.model_copy(update={"sources": reply.sources})


# ==========================================================
# [3] 연습 문제 생성
# ==========================================================
_DIFFICULTY_WORDS = {
    GradeSystem.GERMAN: {"easy": "Leicht", "medium": "Mittel", "hard": "Schwer"},
    GradeSystem.UK: {"easy": "Easy", "medium": "Medium", "hard": "Hard"},
}


async def generate_practice_question(subject: str, grade_level: str, topic: Optional[str],
                                     language: GradeSystem,
                                     difficulty: Optional[str] = None) -> Exercise:
    # 매 요청마다 다른 문제가 나오도록 시드 삽입
    seed = random.randint(0, 999_999)
    words = _DIFFICULTY_WORDS[language]

    if topic:
        topic_prompt = f'Focus SPECIFICALLY on the topic: "{topic}".'
    else:
        topic_prompt = (
            "Choose a RANDOM, DISTINCT topic from the curriculum. Do NOT use the same topic as usual "
            "(e.g. if Math, don't just do Algebra, try Geometry or Stochastics)."
        )
    if language is GradeSystem.UK:
        curriculum = "Context: UK National Curriculum. Language: English."
    else:
        curriculum = "Context: Deutscher Lehrplan. Language: German."
    level_rule = (
        f"Difficulty: {words[difficulty]}." if difficulty
        else "Ensure the difficulty matches the grade level exactly."
    )

    prompt = f"""
Task: Create a UNIQUE practice question for {subject} at level {grade_level}.
Target Language: {target_language(language)} (Ensure content and response are in this language).
{curriculum}
{topic_prompt}

Instructions:
1. Use Google Search to find a real, high-quality exam question or a unique example from the web.
2. {level_rule}
3. Random Seed: {seed} (This is a unique request, do not return cached data).

Return strictly a valid JSON object with this structure (no markdown code blocks, just raw JSON):
{{
  "subject": "string",
  "topic": "string",
  "question": "string",
  "imageUrl": "string (Optional HTTPS URL to a public domain image, empty string if none)",
  "hint": "string",
  "options": ["string", "string", "string", "string"],
  "correctAnswer": "string (Must be one of the options)",
  "explanation": "string",
  "difficulty": "{words['easy']}" | "{words['medium']}" | "{words['hard']}"
}}
"""
    reply = await llm_gemini.generate_text(
        "You create exam-style multiple choice practice questions.", prompt,
        use_search=True, temperature=1.1,
    )
    return parse_model(reply.text, Exercise)


# ==========================================================
# [4] 단계별 풀이 / 숙제 사진 풀이
# ==========================================================
async def solve_problem(problem: str, language: GradeSystem) -> str:
    reply = await llm_gemini.generate_text(
        "You are a specialized academic problem solver. Provide step-by-step logic. "
        "Keep it concise but thorough.",
        f"Solve the following academic problem step-by-step. "
        f"Language: STRICTLY {target_language(language)}. Problem: {problem}",
        model=settings.GEMINI_MODEL_SOLVER,
    )
    return reply.text


async def solve_homework(image_base64: str, mime_type: str, language: GradeSystem) -> str:
    """숙제 사진 → 풀이 텍스트"""
    reply = await llm_gemini.generate_text(
        "You are a patient homework tutor for school students. Read the task in the photo, "
        "solve it step-by-step and explain each step simply. Plain text only, no Markdown.",
        f"Solve the homework shown in this photo. Language: STRICTLY {target_language(language)}. "
        "If the photo contains no readable task, say so in one sentence.",
        images=[{"mime_type": mime_type, "data": image_base64}],
    )
    return reply.text
