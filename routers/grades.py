"""
성적 라우터
- 성적 체계 조회, 라벨 점수 변환, 가중 평균, 최근접 라벨, 체계 간 변환
- 성적표 스냅샷 편집 (과목 추가/수정/삭제, LK 토글)
- 모든 연산은 순수 함수이며 서버에 상태를 저장하지 않습니다.
"""

from fastapi import APIRouter

from schemas.common import SuccessEnvelope
from schemas.grades import (
    AverageOut,
    AverageReq,
    CourseEditReq,
    CourseUpdateReq,
    GradeSheet,
    GradeSystem,
    NearestReq,
    RemapReq,
    ResolveReq,
    ScaleEntry,
    ScaleOut,
    SheetSummaryOut,
    SwitchLocaleReq,
)
from services import course_service
from services.grade_calculator import label_for_summary, summarize_courses
from services.grade_remapper import remap_label
from services.grade_scales import (
    DEFAULT_GRADES,
    is_advanced_level,
    is_descending,
    levels_for,
    nearest_label,
    resolve_score,
    scale_for,
)

router = APIRouter(prefix="/grades", tags=["grades"])


# ==========================================================
# [1단계] 성적 체계 / 변환
# ==========================================================

# ✅ [READ] 성적 체계 테이블 (정의 순서 유지)
@router.get("/scales/{system}", response_model=SuccessEnvelope[ScaleOut])
def get_scale(system: GradeSystem):
    entries = [ScaleEntry(label=label, score=score) for label, score in scale_for(system).items()]
    data = ScaleOut(
        system=system,
        descending=is_descending(system),
        entries=entries,
        levels=levels_for(system),
        default_grade=DEFAULT_GRADES[system],
    )
    return SuccessEnvelope(data=data)


# ✅ 라벨 → 점수 (없는 라벨은 0)
@router.post("/resolve")
def post_resolve(req: ResolveReq):
    return {"ok": True, "data": {"score": resolve_score(req.label, req.system)}}


# ✅ 가중 평균 + 표시용 라벨
@router.post("/average", response_model=SuccessEnvelope[AverageOut])
def post_average(req: AverageReq):
    summary = summarize_courses(req.courses, req.system)
    data = AverageOut(
        average=summary.average,
        label=label_for_summary(summary, req.system),
        total_credits=summary.total_credits,
        counted_courses=summary.counted_courses,
    )
    return SuccessEnvelope(data=data)


# ✅ 임의 값 → 최근접 라벨
@router.post("/nearest")
def post_nearest(req: NearestReq):
    return {"ok": True, "data": {"label": nearest_label(req.value, req.system)}}


# ✅ 체계 간 라벨 변환 (구간 단위, 손실 있음)
@router.post("/remap")
def post_remap(req: RemapReq):
    return {"ok": True, "data": {"label": remap_label(req.label, req.direction)}}


# ✅ 언어 전환: 성적표 전체 변환
@router.post("/switch-locale", response_model=SuccessEnvelope[GradeSheet])
def post_switch_locale(req: SwitchLocaleReq):
    return SuccessEnvelope(data=course_service.switch_locale(req.sheet, req.target))


# ==========================================================
# [2단계] 성적표 스냅샷
# ==========================================================

def _sheet_summary(sheet: GradeSheet) -> SheetSummaryOut:
    sheet = course_service.normalize_credits(sheet)
    summary = summarize_courses(sheet.courses, sheet.system)
    return SheetSummaryOut(
        sheet=sheet,
        average=summary.average,
        label=label_for_summary(summary, sheet.system),
        advanced_level=is_advanced_level(sheet.grade_level),
        context_summary=course_service.context_summary(sheet, summary.average),
    )


# ✅ 성적표 정리(가중치 정규화) + 평균 + 채팅용 요약
@router.post("/sheet", response_model=SuccessEnvelope[SheetSummaryOut])
def post_sheet(sheet: GradeSheet):
    return SuccessEnvelope(data=_sheet_summary(sheet))


# ✅ [CREATE] 과목 추가
@router.post("/sheet/courses", response_model=SuccessEnvelope[SheetSummaryOut])
def add_course(req: CourseEditReq):
    course = course_service.new_course(
        req.sheet.system, name=req.course.name, grade=req.course.grade, credits=req.course.credits,
    )
    return SuccessEnvelope(data=_sheet_summary(course_service.add_course(req.sheet, course)))


# ✅ [UPDATE] 과목 수정
@router.patch("/sheet/courses/{course_id}", response_model=SuccessEnvelope[SheetSummaryOut])
def update_course(course_id: str, req: CourseUpdateReq):
    sheet = course_service.update_course(req.sheet, course_id, **req.changes.model_dump())
    return SuccessEnvelope(data=_sheet_summary(sheet))


# ✅ [DELETE] 과목 삭제 (성적표는 본문으로 전달)
@router.delete("/sheet/courses/{course_id}", response_model=SuccessEnvelope[SheetSummaryOut])
def delete_course(course_id: str, sheet: GradeSheet):
    return SuccessEnvelope(data=_sheet_summary(course_service.remove_course(sheet, course_id)))


# ✅ LK / Higher Level 토글
@router.post("/sheet/courses/{course_id}/toggle-advanced", response_model=SuccessEnvelope[SheetSummaryOut])
def toggle_advanced(course_id: str, sheet: GradeSheet):
    return SuccessEnvelope(data=_sheet_summary(course_service.toggle_advanced(sheet, course_id)))
