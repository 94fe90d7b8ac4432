"""
AI 라우터
- 학업 프로필 분석, 대학 입학 가능성, 연습 문제, 단계별 풀이, 숙제 사진 풀이
- Gemini 오류는 전역 에러 핸들러에서 ErrorResponse(502/503)로 변환
"""

import base64
import binascii

from fastapi import APIRouter, HTTPException, Response

from config.settings import settings
from schemas.ai_schemas import (
    AdmissionReq,
    AnalysisReq,
    AnalysisResult,
    Exercise,
    HomeworkReq,
    PracticeReq,
    SolveReq,
    TextOut,
    UniversityCheckResult,
)
from schemas.common import SuccessEnvelope
from services import ai_service
from services.course_service import normalize_credits

router = APIRouter(prefix="/ai", tags=["AI"])


def _no_store(response: Response):
    # 성적 데이터가 담긴 응답은 캐싱하지 않음
    response.headers["Cache-Control"] = "no-store"


# ✅ 성적표 분석 → 대학 추천 / 아키타입 / 진로 / 조언
@router.post("/analysis", response_model=SuccessEnvelope[AnalysisResult])
async def post_analysis(req: AnalysisReq, response: Response):
    _no_store(response)
    result = await ai_service.analyze_academic_profile(normalize_credits(req.sheet))
    return SuccessEnvelope(data=result)


# ✅ 특정 대학 입학 가능성 (웹 검색 기반)
@router.post("/admission", response_model=SuccessEnvelope[UniversityCheckResult])
async def post_admission(req: AdmissionReq, response: Response):
    _no_store(response)
    result = await ai_service.check_university_admission(req.uni_query.strip(), req.sheet)
    return SuccessEnvelope(data=result)


# ✅ 연습 문제 1개 생성
@router.post("/practice", response_model=SuccessEnvelope[Exercise])
async def post_practice(req: PracticeReq):
    topic = req.topic.strip() if req.topic else None
    result = await ai_service.generate_practice_question(
        req.subject, req.grade_level, topic or None, req.language, req.difficulty,
    )
    return SuccessEnvelope(data=result)


# ✅ 단계별 풀이
@router.post("/solve", response_model=SuccessEnvelope[TextOut])
async def post_solve(req: SolveReq):
    text = await ai_service.solve_problem(req.problem.strip(), req.language)
    return SuccessEnvelope(data=TextOut(text=text))


# ✅ 숙제 사진 풀이 (base64 이미지)
@router.post("/homework", response_model=SuccessEnvelope[TextOut])
async def post_homework(req: HomeworkReq):
    try:
        raw = base64.b64decode(req.image_base64, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=422, detail="image_base64 is not valid base64")

    if len(raw) > settings.MAX_UPLOAD_MB * 1024 * 1024:
        raise HTTPException(status_code=413, detail=f"Image larger than {settings.MAX_UPLOAD_MB}MB")

    text = await ai_service.solve_homework(req.image_base64, req.mime_type, req.language)
    return SuccessEnvelope(data=TextOut(text=text))
