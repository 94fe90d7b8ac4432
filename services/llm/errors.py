class GeminiError(Exception):
    """Gemini API 호출 실패 (네트워크, 시간 초과, HTTP 오류)"""
    code = "LLM_UPSTREAM_ERROR"
    status_code = 502


class GeminiConfigError(GeminiError):
    """API 키 등 설정 누락"""
    code = "LLM_NOT_CONFIGURED"
    status_code = 503


class MalformedResponseError(GeminiError):
    """응답은 받았으나 비어 있거나 JSON/스키마 검증에 실패"""
    code = "LLM_MALFORMED_RESPONSE"
    status_code = 502

    def __init__(self, message: str, raw_text: str | None = None):
        super().__init__(message)
        self.raw_text = raw_text
