# services/gemini_service.py

import asyncio
import logging
from typing import AsyncGenerator, Callable, List, Optional, Sequence

from langchain_core.messages import (
    AIMessage,      # AI의 응답 메세지
    BaseMessage,
    HumanMessage,   # 사람이 보낸 메세지
    SystemMessage,  # 시스템의 지시 메세지
)
from langchain_core.runnables import Runnable
from langchain_google_genai import ChatGoogleGenerativeAI

from config.settings import settings
from schemas.ai_schemas import ChatMessage
from schemas.grades import GradeSystem
from schemas.llm import GeminiReply, Source
from services.llm.errors import GeminiConfigError, GeminiError, MalformedResponseError
from services.llm.llm_gemini import sources_from_chunks

logger = logging.getLogger(__name__)

INTERVIEW_OPENER = "Start the interview now."
NO_GRADES_CONTEXT = "User has not entered grades yet."

# Gemini 내장 Google 검색 도구
GOOGLE_SEARCH_TOOL = {"google_search": {}}


# 생성자 함수: 호출마다 LLM 인스턴스 반환 (use_search면 검색 도구를 바인딩)
def get_llm(disable_streaming: bool = False, temperature: float = 0.7,
            use_search: bool = False) -> Runnable:
    if not settings.GEMINI_API_KEY:
        raise GeminiConfigError("GEMINI_API_KEY 환경변수가 설정되지 않았습니다.")
    llm = ChatGoogleGenerativeAI(
        model=settings.GEMINI_MODEL_CHAT,
        google_api_key=settings.GEMINI_API_KEY,
        temperature=temperature,
        disable_streaming=disable_streaming,
    )
    return llm.bind_tools([GOOGLE_SEARCH_TOOL]) if use_search else llm


def _chunk_text(chunk) -> str:
    # chunk 형식은 라이브러리 버전에 따라 다름 (content 가 list 일 수 있음)
    content = getattr(chunk, "content", None) or getattr(chunk, "text", None)
    if isinstance(content, list):
        return "".join(p.get("text", "") if isinstance(p, dict) else str(p) for p in content)
    return content or ""


def grounding_sources(message) -> List[Source]:
    """response_metadata 의 grounding_metadata → Source 목록"""
    metadata = getattr(message, "response_metadata", None) or {}
    grounding = metadata.get("grounding_metadata") or metadata.get("groundingMetadata") or {}
    chunks = grounding.get("grounding_chunks") or grounding.get("groundingChunks") or []
    return sources_from_chunks(chunks)


class GeminiChatService:
    """LangChain을 사용한 Gemini 채팅 서비스 (학습 상담 Gem, 면접관)"""

    def __init__(self, llm_factory: Callable[..., Runnable] = get_llm):
        self._llm_factory = llm_factory
        self._chat_semaphore = asyncio.Semaphore(settings.CHAT_CONCURRENCY)  # 동시 요청 제한
        self._max_retries = settings.CHAT_MAX_RETRIES
        self._retry_delay = 1.0

    async def _retry_api_call(self, api_func, *args, **kwargs):
        """재시도 로직이 포함된 API 호출 (설정 오류는 재시도하지 않음)"""
        last_error = None

        for attempt in range(self._max_retries):
            try:
                return await api_func(*args, **kwargs)
            except GeminiConfigError:
                raise
            except Exception as e:
                last_error = e
                if attempt < self._max_retries - 1:
                    wait_time = self._retry_delay * (2 ** attempt)
                    logger.warning(f"API 호출 실패 (시도 {attempt + 1}/{self._max_retries}), {wait_time}초 후 재시도: {e}")
                    await asyncio.sleep(wait_time)
                else:
                    logger.error(f"API 호출 최종 실패: {e}")

        raise GeminiError(f"Gemini 채팅 호출 실패: {last_error}") from last_error

    # =========================
    # 시스템 프롬프트
    # =========================
    @staticmethod
    def advisor_instruction(context: Optional[str], admin: bool, language: GradeSystem) -> str:
        context = context or NO_GRADES_CONTEXT
        if admin:
            return (
                "SYSTEM: DEVELOPER MODE.\n"
                "ACCESS LEVEL: UNRESTRICTED / DEVELOPER.\n"
                "INSTRUCTIONS: Write code, detailed essays, or complex logic. Be intelligent and precise.\n"
                f"System Context: {context}"
            )

        is_uk = language is GradeSystem.UK
        return f"""You are 'Gem', a study advisor.
Language: {'English' if is_uk else 'German'}.
Education System: {'UK System (GCSE/A-Level)' if is_uk else 'German System'}.
Student Context: {context}.

RULES:
1. Only discuss school/uni/grades.
2. Keep it short (max 2-3 sentences).
3. Use Google Search for facts (NC, Entry Requirements).
4. NO Markdown formatting. Plain text only.
5. If user is English, suggest UK Unis. If German, suggest German Unis."""

    @staticmethod
    def interviewer_instruction(topic: str, language: GradeSystem) -> str:
        target = "English" if language is GradeSystem.UK else "German"
        return (
            f"You are an expert academic interviewer. Target Language: STRICTLY {target}. Topic: {topic}. "
            "Protocol: Ask one short, challenging question. Wait for answer. "
            "Evaluate (Positive/Negative feedback). Ask next question. Keep it concise."
        )

    @staticmethod
    def build_messages(system_prompt: str, history: Sequence[ChatMessage], message: str,
                       opener: Optional[str] = None) -> List[BaseMessage]:
        """
        시스템 지시 + 최근 대화 기록(CHAT_HISTORY_LIMIT) + 현재 메시지
        - opener: 잘린 기록이 model 턴으로 시작하면 앞에 넣을 첫 user 턴
        """
        messages: List[BaseMessage] = [SystemMessage(content=system_prompt)]
        limit = settings.CHAT_HISTORY_LIMIT
        recent = list(history)[-limit:] if limit > 0 else []
        if opener and recent and recent[0].role == "model":
            messages.append(HumanMessage(content=opener))
        for msg in recent:
            if msg.role == "user":
                messages.append(HumanMessage(content=msg.content))
            else:
                messages.append(AIMessage(content=msg.content))
        messages.append(HumanMessage(content=message))
        return messages

    # =========================
    # 생성
    # =========================
    async def generate(self, messages: List[BaseMessage], use_search: bool = False) -> GeminiReply:
        """비스트리밍 생성 (검색 사용 시 출처 포함)"""
        async def _generate():
            llm = self._llm_factory(disable_streaming=True, use_search=use_search)
            return await llm.ainvoke(messages)

        async with self._chat_semaphore:
            resp = await self._retry_api_call(_generate)

        text = _chunk_text(resp)
        if not text.strip():
            raise MalformedResponseError("Gemini 채팅 응답이 비어 있습니다.")
        return GeminiReply(text=text, sources=grounding_sources(resp))

    async def stream_generate(self, messages: List[BaseMessage],
                              use_search: bool = False) -> AsyncGenerator[str, None]:
        """
        메시지 리스트를 받아 LLM의 astream()으로 부분 결과 문자열을 순차적으로 yield 합니다.
        스트리밍 도중 실패는 재시도하지 않습니다 (이미 전송된 청크가 있을 수 있음).
        """
        async with self._chat_semaphore:
            llm = self._llm_factory(disable_streaming=False, use_search=use_search)
            async for chunk in llm.astream(messages):
                content = _chunk_text(chunk)
                if content:
                    yield content

    async def advisor_reply(self, message: str, history: Sequence[ChatMessage],
                            context: Optional[str], admin: bool, language: GradeSystem) -> GeminiReply:
        system_prompt = self.advisor_instruction(context, admin, language)
        return await self.generate(self.build_messages(system_prompt, history, message), use_search=True)

    def advisor_stream(self, message: str, history: Sequence[ChatMessage],
                       context: Optional[str], admin: bool,
                       language: GradeSystem) -> AsyncGenerator[str, None]:
        system_prompt = self.advisor_instruction(context, admin, language)
        return self.stream_generate(self.build_messages(system_prompt, history, message), use_search=True)

    async def interview_reply(self, topic: str, message: Optional[str],
                              history: Sequence[ChatMessage], language: GradeSystem) -> str:
        """message가 비어 있으면 첫 질문부터 시작. 이후 턴에서도 시작 지시를 첫 user 턴으로 유지"""
        system_prompt = self.interviewer_instruction(topic, language)
        turn = message.strip() if message and message.strip() else INTERVIEW_OPENER
        messages = self.build_messages(system_prompt, history, turn, opener=INTERVIEW_OPENER)
        reply = await self.generate(messages)
        return reply.text


# 전역 서비스 인스턴스
gemini_service = GeminiChatService()
