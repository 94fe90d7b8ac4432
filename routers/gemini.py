# routers/gemini.py

import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from config.settings import settings
from dependencies.security import admin_mode
from schemas.ai_schemas import AdvisorChatReq, ChatOut, InterviewChatReq
from schemas.common import SuccessEnvelope
from schemas.grades import GradeSheet
from services import gemini_service as chat_module
from services.course_service import context_summary, normalize_credits
from services.llm.errors import GeminiConfigError

router = APIRouter(prefix="/chat", tags=["Gemini AI 채팅"])

logger = logging.getLogger(__name__)

STREAM_INTERRUPTED = "\n[stream interrupted]"


def _context(sheet: GradeSheet | None) -> str | None:
    return context_summary(normalize_credits(sheet)) if sheet else None


# =========================
# 학습 상담 (Gem)
# =========================

@router.post("/advisor", response_model=SuccessEnvelope[ChatOut])
async def advisor_chat(req: AdvisorChatReq, admin: bool = Depends(admin_mode)):
    """학습 상담 채팅 (성적표 요약을 컨텍스트로 사용)"""
    reply = await chat_module.gemini_service.advisor_reply(
        req.message, req.history, _context(req.sheet), admin, req.language,
    )
    return SuccessEnvelope(data=ChatOut(reply=reply.text, sources=reply.sources, admin=admin))


@router.post("/advisor/stream")
async def advisor_chat_stream(req: AdvisorChatReq, admin: bool = Depends(admin_mode)):
    """학습 상담 채팅 스트리밍 (text/plain 청크)"""
    # 스트림 시작 후에는 상태 코드를 바꿀 수 없으므로 설정 오류는 먼저 확인
    if not settings.GEMINI_API_KEY:
        raise GeminiConfigError("GEMINI_API_KEY 환경변수가 설정되지 않았습니다.")

    chunks = chat_module.gemini_service.advisor_stream(
        req.message, req.history, _context(req.sheet), admin, req.language,
    )

    async def body() -> AsyncGenerator[str, None]:
        try:
            async for chunk in chunks:
                yield chunk
        except Exception:
            logger.exception("advisor stream failed")
            yield STREAM_INTERRUPTED

    return StreamingResponse(
        body(),
        media_type="text/plain; charset=utf-8",
        headers={"Cache-Control": "no-store"},
    )


# =========================
# 구술 면접 연습
# =========================

@router.post("/interview", response_model=SuccessEnvelope[ChatOut])
async def interview_chat(req: InterviewChatReq):
    """주제별 면접 연습. message가 없으면 첫 질문 생성"""
    reply = await chat_module.gemini_service.interview_reply(
        req.topic, req.message, req.history, req.language,
    )
    return SuccessEnvelope(data=ChatOut(reply=reply))
