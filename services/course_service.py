"""
services/course_service.py

성적표(GradeSheet) 스냅샷에 대한 편집/변환 함수 모음.
모든 함수는 입력을 변경하지 않고 새 스냅샷을 반환합니다.
"""

import uuid
from typing import List, Optional

from schemas.grades import Course, GradeLevel, GradeSheet, GradeSystem, RemapDirection
from services.grade_calculator import compute_average
from services.grade_remapper import remap_grade_level, remap_label, translate_subject
from services.grade_scales import DEFAULT_GRADES, is_advanced_level

ADVANCED_CREDITS = 2.0
REGULAR_CREDITS = 1.0


class CourseNotFoundError(LookupError):
    """성적표에 없는 과목 ID"""

    def __init__(self, course_id: str):
        super().__init__(f"Course not found: {course_id}")
        self.course_id = course_id


def default_sheet(system: GradeSystem = GradeSystem.GERMAN) -> GradeSheet:
    """첫 화면 기본 성적표 (독일 기준 3과목, 언어 전환 시 영국 체계로 변환)"""
    sheet = GradeSheet(
        system=GradeSystem.GERMAN,
        grade_level=GradeLevel.TEN,
        courses=[
            Course(id="1", name="Mathematik", grade="2", credits=1),
            Course(id="2", name="Deutsch", grade="1-", credits=1),
            Course(id="3", name="Englisch", grade="2-", credits=1),
        ],
    )
    return switch_locale(sheet, system)


def new_course(system: GradeSystem, name: str = "", grade: Optional[str] = None,
               credits: float = REGULAR_CREDITS) -> Course:
    return Course(
        id=uuid.uuid4().hex,
        name=name,
        grade=grade or DEFAULT_GRADES[system],
        credits=credits,
    )


def _find_index(courses: List[Course], course_id: str) -> int:
    for idx, course in enumerate(courses):
        if course.id == course_id:
            return idx
    raise CourseNotFoundError(course_id)


def add_course(sheet: GradeSheet, course: Course) -> GradeSheet:
    return sheet.model_copy(update={"courses": [*sheet.courses, course]})


def remove_course(sheet: GradeSheet, course_id: str) -> GradeSheet:
    _find_index(sheet.courses, course_id)
    return sheet.model_copy(update={"courses": [c for c in sheet.courses if c.id != course_id]})


def update_course(sheet: GradeSheet, course_id: str, **changes) -> GradeSheet:
    courses = list(sheet.courses)
    idx = _find_index(courses, course_id)
    changes = {k: v for k, v in changes.items() if v is not None}
    # 갱신된 값도 Course 검증을 다시 거치도록 재생성
    courses[idx] = Course(**{**courses[idx].model_dump(), **changes})
    return sheet.model_copy(update={"courses": courses})


def toggle_advanced(sheet: GradeSheet, course_id: str) -> GradeSheet:
    """LK / Higher Level 토글 (가중치 1 ↔ 2)"""
    courses = list(sheet.courses)
    idx = _find_index(courses, course_id)
    current = courses[idx]
    credits = ADVANCED_CREDITS if current.credits == REGULAR_CREDITS else REGULAR_CREDITS
    courses[idx] = current.model_copy(update={"credits": credits})
    return sheet.model_copy(update={"courses": courses})


def normalize_credits(sheet: GradeSheet) -> GradeSheet:
    """가중치 과목이 없는 학년에서는 모든 가중치를 1로 되돌림"""
    if is_advanced_level(sheet.grade_level):
        return sheet
    if not any(c.credits > REGULAR_CREDITS for c in sheet.courses):
        return sheet
    courses = [c.model_copy(update={"credits": REGULAR_CREDITS}) for c in sheet.courses]
    return sheet.model_copy(update={"courses": courses})


def switch_locale(sheet: GradeSheet, target: GradeSystem) -> GradeSheet:
    """언어 전환: 과목명, 성적 라벨, 학년 단계를 대상 체계로 변환"""
    if sheet.system is target:
        return sheet

    direction = RemapDirection.towards(target)
    courses = [
        c.model_copy(update={
            "name": translate_subject(c.name, direction),
            "grade": remap_label(c.grade, direction),
        })
        for c in sheet.courses
    ]
    return GradeSheet(
        system=target,
        grade_level=remap_grade_level(sheet.grade_level, direction),
        courses=courses,
    )


def course_list_text(courses: List[Course], mark_advanced: bool = False) -> str:
    parts = []
    for c in courses:
        if mark_advanced:
            suffix = " (Advanced/LK)" if c.credits > REGULAR_CREDITS else ""
            parts.append(f"{c.name}: {c.grade}{suffix}")
        else:
            parts.append(f"{c.name} ({c.grade})")
    return ", ".join(parts)


def context_summary(sheet: GradeSheet, average: Optional[float] = None) -> str:
    """채팅 컨텍스트용 한 줄 요약"""
    if average is None:
        average = compute_average(sheet.courses, sheet.system)
    return (
        f"Notendurchschnitt: {average:.2f}, "
        f"Stufe: {sheet.grade_level.value}, "
        f"Kurse: {course_list_text(sheet.courses)}"
    )
