"""
config/settings.py

- .env에 정의한 환경변수를 읽어 애플리케이션 전역 설정으로 제공합니다.
- pydantic v2 / pydantic-settings v2 사용.
- GEMINI_API_KEY가 비어 있으면 성적 계산 API만 동작하고 AI 엔드포인트는 503을 반환합니다.
"""

from typing import List, Literal
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # =========================
    # 앱/런타임
    # =========================
    ENV: Literal["dev", "stage", "prod"] = "dev"
    APP_TITLE: str = "GradePath API"
    APP_DESCRIPTION: str = "성적 평균 계산, 독일/영국 성적 체계 변환, Gemini 기반 진로 분석 백엔드 API"
    APP_VERSION: str = "1.0.0"

    # =========================
    # CORS
    # =========================
    # 콤마(,)로 구분된 문자열 → List[str] 로 파싱
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _split_origins(cls, v):
        if isinstance(v, str):
            # "a,b , c" → ["a","b","c"]
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    # =========================
    # LLM (Gemini only)
    # =========================
    GEMINI_API_KEY: str = ""
    GEMINI_API_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_MODEL: str = "gemini-2.5-flash"          # 분석/입학/문제 생성
    GEMINI_MODEL_CHAT: str = "gemini-2.5-flash"     # 상담/면접 채팅
    GEMINI_MODEL_SOLVER: str = "gemini-2.5-pro"     # 단계별 풀이
    LLM_TIMEOUT: int = 25
    LLM_TEMPERATURE: float = 0.2
    LLM_MAX_TOKENS: int = 2048

    # =========================
    # Chat
    # =========================
    CHAT_HISTORY_LIMIT: int = 20
    CHAT_CONCURRENCY: int = 3
    CHAT_MAX_RETRIES: int = 3

    # 관리자 모드 채팅 PIN (비어 있으면 관리자 모드 비활성화)
    ADMIN_PIN: str = ""

    # =========================
    # Logging / Misc
    # =========================
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    MAX_UPLOAD_MB: int = 20

    # =========================
    # BaseSettings Config
    # =========================
    model_config = SettingsConfigDict(
        env_file=".env",               # .env에서 값 로드
        env_file_encoding="utf-8",
        case_sensitive=False,          # 환경변수 대소문자 비구분
        extra="ignore",                # 정의되지 않은 키는 무시
    )


# ✅ settings 객체를 통해 어디서든 접근 가능
settings = Settings()
