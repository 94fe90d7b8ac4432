from dataclasses import dataclass
from typing import Iterable

from schemas.grades import Course, GradeSystem
from services.grade_scales import NO_LABEL, nearest_label, resolve_score


@dataclass(frozen=True)
class CourseSummary:
    average: float
    total_credits: float
    counted_courses: int


def summarize_courses(courses: Iterable[Course], system: GradeSystem) -> CourseSummary:
    """가중 평균 계산. 점수가 0 이하(미해결, U)인 과목은 분자/분모 모두에서 제외"""
    total_score = 0.0
    total_credits = 0.0
    counted = 0

    for course in courses:
        score = resolve_score(course.grade, system)
        if score > 0:
            total_score += score * course.credits
            total_credits += course.credits
            counted += 1

    # 가중치 합이 0 이하이면 평균은 0으로 정의
    average = total_score / total_credits if total_credits > 0 else 0.0
    return CourseSummary(average=average, total_credits=total_credits, counted_courses=counted)


def compute_average(courses: Iterable[Course], system: GradeSystem) -> float:
    return summarize_courses(courses, system).average


def label_for_summary(summary: CourseSummary, system: GradeSystem) -> str:
    """평균에 가장 가까운 표시용 라벨. 집계된 과목이 없으면 NO_LABEL"""
    if summary.counted_courses == 0:
        return NO_LABEL
    return nearest_label(summary.average, system)
