"""
schemas/common.py

- 프로젝트 전반에서 재사용할 공용 스키마 모음
- Pydantic v2 기준
- 포함 내용:
  1) 에러 응답 표준: ErrorDetail, ErrorResponse
  2) 성공 응답 래퍼: SuccessEnvelope[T]
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field, ConfigDict


# =========================================================
# 1) 에러 응답 표준
# =========================================================

class ErrorDetail(BaseModel):
    """에러 코드/메시지를 담는 최소 단위"""
    code: str = Field(..., description="에러 식별 코드 (예: INTERNAL_ERROR, LLM_UPSTREAM_ERROR)")
    message: str = Field(..., description="사람이 읽을 수 있는 에러 메시지")


class ErrorResponse(BaseModel):
    """
    전역 에러 핸들러에서 내려주는 표준 에러 응답
    - middlewares/error_handler.py에서 이 스키마로 리턴
    """
    error: ErrorDetail
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="응답 생성 시각 (UTC)"
    )
    trace_id: Optional[str] = Field(
        default=None, description="요청 추적용 ID(X-Request-Id 복사)"
    )

    model_config = ConfigDict(extra="ignore")


# =========================================================
# 2) 성공 응답 래퍼
# =========================================================

T = TypeVar("T")


class SuccessEnvelope(BaseModel, Generic[T]):
    """
    성공 응답 표준 래퍼
    - ok: 항상 True
    - data: 실제 데이터(payload)
    """
    ok: bool = True
    data: T

    model_config = ConfigDict(extra="ignore")
