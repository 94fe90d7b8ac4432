from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List


class Source(BaseModel):
    """검색 그라운딩 출처"""
    title: str
    url: str


class GeminiReply(BaseModel):
    """Gemini generateContent 응답에서 추출한 결과"""
    text: str
    sources: List[Source] = Field(default_factory=list)
    usage: Optional[Dict[str, Any]] = None
    finish_reason: Optional[str] = None
