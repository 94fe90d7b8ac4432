"""
schemas/grades.py

- 성적 체계(GradeSystem), 학년 단계(GradeLevel), 변환 방향(RemapDirection) 열거형
- 과목(Course)과 성적표 스냅샷(GradeSheet)
- /v1/grades 라우터 요청/응답 모델
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class GradeSystem(str, Enum):
    """성적 체계 선택자 (언어/로케일과 동일)"""
    GERMAN = "de"   # 1~6, 낮을수록 우수
    UK = "en"       # GCSE 9~1, 높을수록 우수


class RemapDirection(str, Enum):
    DE_TO_EN = "de_to_en"
    EN_TO_DE = "en_to_de"

    @classmethod
    def towards(cls, target: GradeSystem) -> "RemapDirection":
        return cls.DE_TO_EN if target is GradeSystem.UK else cls.EN_TO_DE

    @property
    def source(self) -> GradeSystem:
        return GradeSystem.GERMAN if self is RemapDirection.DE_TO_EN else GradeSystem.UK

    @property
    def target(self) -> GradeSystem:
        return GradeSystem.UK if self is RemapDirection.DE_TO_EN else GradeSystem.GERMAN


class GradeLevel(str, Enum):
    # 독일 학제
    FIVE = "Klasse 5"
    SIX = "Klasse 6"
    SEVEN = "Klasse 7"
    EIGHT = "Klasse 8"
    NINE = "Klasse 9"
    TEN = "Klasse 10 (Mittlere Reife)"
    EF = "Einführungsphase (EF/11)"
    Q1 = "Qualifikationsphase 1 (Q1/12.1)"
    Q2 = "Qualifikationsphase 2 (Q2/12.2)"
    Q3 = "Qualifikationsphase 3 (Q3/13.1)"
    Q4 = "Qualifikationsphase 4 (Q4/13.2)"
    ABITUR = "Abitur (Gesamt)"

    # 영국 학제
    Y7 = "Year 7"
    Y8 = "Year 8"
    Y9 = "Year 9"
    Y10 = "Year 10 (GCSE)"
    Y11 = "Year 11 (GCSE)"
    Y12 = "Year 12 (Sixth Form / A-Level)"
    Y13 = "Year 13 (Sixth Form / A-Level)"

    @property
    def system(self) -> GradeSystem:
        """학년 단계가 속한 성적 체계 (영국 학제는 'Year' 로 시작)"""
        return GradeSystem.UK if self.value.startswith("Year ") else GradeSystem.GERMAN


# =========================================================
# 과목 / 성적표
# =========================================================

class Course(BaseModel):
    id: str = Field(..., description="과목 식별자 (불투명 문자열)")
    name: str = Field("", max_length=100, description="과목명 (자유 입력)")
    grade: str = Field(..., max_length=4, description="현재 성적 체계의 성적 라벨 (예: 1-, 7, U)")
    credits: float = Field(1.0, gt=0, le=10, description="가중치 (LK/Higher Level = 2)")

    model_config = ConfigDict(frozen=True)


class GradeSheet(BaseModel):
    """요청 단위로 주고받는 성적표 스냅샷 (서버에 저장하지 않음)"""
    system: GradeSystem = GradeSystem.GERMAN
    grade_level: GradeLevel = GradeLevel.TEN
    courses: List[Course] = Field(default_factory=list, max_length=40)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _level_matches_system(self):
        if self.grade_level.system is not self.system:
            raise ValueError(f"grade_level '{self.grade_level.value}' does not belong to system '{self.system.value}'")
        return self


# =========================================================
# 요청 모델
# =========================================================

class ResolveReq(BaseModel):
    label: str
    system: GradeSystem


class AverageReq(BaseModel):
    system: GradeSystem
    courses: List[Course] = Field(default_factory=list, max_length=40)


class NearestReq(BaseModel):
    value: float
    system: GradeSystem


class RemapReq(BaseModel):
    label: str
    direction: RemapDirection


class SwitchLocaleReq(BaseModel):
    sheet: GradeSheet
    target: GradeSystem


class CourseCreate(BaseModel):
    name: str = Field("", max_length=100)
    grade: Optional[str] = Field(default=None, max_length=4, description="생략 시 체계별 기본 성적")
    credits: float = Field(1.0, gt=0, le=10)


class CourseUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)
    grade: Optional[str] = Field(default=None, max_length=4)
    credits: Optional[float] = Field(default=None, gt=0, le=10)


class CourseEditReq(BaseModel):
    sheet: GradeSheet
    course: CourseCreate


class CourseUpdateReq(BaseModel):
    sheet: GradeSheet
    changes: CourseUpdate


# =========================================================
# 응답 모델
# =========================================================

class ScaleEntry(BaseModel):
    label: str
    score: float


class ScaleOut(BaseModel):
    system: GradeSystem
    descending: bool = Field(..., description="True면 낮은 점수가 우수")
    entries: List[ScaleEntry]
    levels: List[GradeLevel]
    default_grade: str


class AverageOut(BaseModel):
    average: float
    label: str
    total_credits: float
    counted_courses: int


class SheetSummaryOut(BaseModel):
    sheet: GradeSheet
    average: float
    label: str
    advanced_level: bool
    context_summary: str
