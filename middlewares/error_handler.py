import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from schemas.common import ErrorDetail, ErrorResponse
from services.course_service import CourseNotFoundError
from services.llm.errors import GeminiError

logger = logging.getLogger(__name__)


def _error_json(status_code: int, code: str, message: str, request: Request) -> JSONResponse:
    body = ErrorResponse(
        error=ErrorDetail(code=code, message=message),
        # TimingMiddleware 가 받은/생성한 요청 ID
        trace_id=getattr(request.state, "request_id", None) or request.headers.get("X-Request-Id"),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def add_error_handlers(app: FastAPI):
    @app.exception_handler(GeminiError)
    async def gemini_exception_handler(request: Request, exc: GeminiError):
        # GeminiConfigError(503), MalformedResponseError(502) 포함
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc}")
        return _error_json(exc.status_code, exc.code, str(exc), request)

    @app.exception_handler(CourseNotFoundError)
    async def course_not_found_handler(request: Request, exc: CourseNotFoundError):
        return _error_json(404, "COURSE_NOT_FOUND", str(exc), request)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error_json(500, "INTERNAL_ERROR", str(exc), request)
