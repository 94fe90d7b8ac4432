from fastapi import APIRouter

from schemas.common import SuccessEnvelope
from schemas.grades import GradeSheet, GradeSystem
from services.course_service import default_sheet

router = APIRouter(prefix="/config", tags=["설정"])


# ==========================================================
# [1단계] 기본 성적표
# ==========================================================

# ✅ [READ] 첫 화면 기본 성적표 (체계별)
@router.get("/defaults", response_model=SuccessEnvelope[dict[GradeSystem, GradeSheet]])
def get_defaults():
    """독일/영국 체계별 기본 성적표 반환"""
    return SuccessEnvelope(data={system: default_sheet(system) for system in GradeSystem})
