from typing import Optional, Annotated
from fastapi import Header, HTTPException
from config.settings import settings
import hmac

AuthHeader = Annotated[Optional[str], Header(alias="Authorization")]


def admin_mode(authorization: AuthHeader = None) -> bool:
    """
    관리자 모드 판별 (선택)
    - 헤더 없음 → 일반 학생 모드(False)
    - "Bearer <ADMIN_PIN>" 일치 → 관리자 모드(True)
    - 그 외 → 401
    """
    if not authorization:
        return False

    # 설정에 PIN이 없으면 관리자 모드 자체를 허용하지 않음
    if not settings.ADMIN_PIN:
        raise HTTPException(status_code=401, detail="Admin mode is disabled")

    # "Bearer <token>" 파싱
    try:
        scheme, token = authorization.split(" ", 1)
    except ValueError:
        raise HTTPException(
            status_code=401,
            detail="Invalid Authorization header format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if scheme.lower() != "bearer":
        raise HTTPException(
            status_code=401,
            detail="Invalid auth scheme",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # 타이밍 안전 비교
    if not hmac.compare_digest(token.strip().encode(), settings.ADMIN_PIN.encode()):
        raise HTTPException(
            status_code=401,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return True
