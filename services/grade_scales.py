"""
services/grade_scales.py

독일(1~6, +/- 포함) / 영국 GCSE(9~1) 성적 체계 테이블과 조회 함수.
- 테이블은 정의 순서를 유지하며, 최근접 라벨 탐색은 이 순서대로 전체를 순회합니다.
- 테이블에 없는 라벨은 0(미해결)으로 취급합니다.
"""

from __future__ import annotations

import math
from types import MappingProxyType
from typing import List, Mapping

from schemas.grades import GradeLevel, GradeSystem

# 최근접 라벨을 정할 수 없을 때(NaN) 표시용
NO_LABEL = "-"

# 낮을수록 우수 (0.7 ~ 6.0)
GERMAN_GRADES: Mapping[str, float] = MappingProxyType({
    "1+": 0.7, "1": 1.0, "1-": 1.3,
    "2+": 1.7, "2": 2.0, "2-": 2.3,
    "3+": 2.7, "3": 3.0, "3-": 3.3,
    "4+": 3.7, "4": 4.0, "4-": 4.3,
    "5+": 4.7, "5": 5.0, "5-": 5.3,
    "6": 6.0,
})

# 높을수록 우수 (GCSE 9-1), U = 불합격
UK_GRADES: Mapping[str, float] = MappingProxyType({
    "9+": 9.3, "9": 9.0, "9-": 8.7,   # A**
    "8+": 8.3, "8": 8.0, "8-": 7.7,   # A*
    "7+": 7.3, "7": 7.0, "7-": 6.7,   # A
    "6+": 6.3, "6": 6.0, "6-": 5.7,   # B
    "5+": 5.3, "5": 5.0, "5-": 4.7,   # Strong C
    "4+": 4.3, "4": 4.0, "4-": 3.7,   # Standard C
    "3": 3.0, "2": 2.0, "1": 1.0,
    "U": 0.0,
})

FAIL_LABEL_UK = "U"

GERMAN_LEVELS: List[GradeLevel] = [
    GradeLevel.FIVE, GradeLevel.SIX, GradeLevel.SEVEN, GradeLevel.EIGHT,
    GradeLevel.NINE, GradeLevel.TEN, GradeLevel.EF, GradeLevel.Q1,
    GradeLevel.Q2, GradeLevel.Q3, GradeLevel.Q4, GradeLevel.ABITUR,
]

UK_LEVELS: List[GradeLevel] = [
    GradeLevel.Y7, GradeLevel.Y8, GradeLevel.Y9, GradeLevel.Y10,
    GradeLevel.Y11, GradeLevel.Y12, GradeLevel.Y13,
]

# 가중치(LK / Higher Level) 과목이 허용되는 단계
ADVANCED_LEVELS = frozenset({
    GradeLevel.Q1, GradeLevel.Q2, GradeLevel.Q3, GradeLevel.Q4, GradeLevel.ABITUR,
    GradeLevel.Y12, GradeLevel.Y13,
})

# 새 과목 추가 시 기본 성적
DEFAULT_GRADES = {
    GradeSystem.GERMAN: "3",
    GradeSystem.UK: "5",
}


def scale_for(system: GradeSystem) -> Mapping[str, float]:
    return UK_GRADES if system is GradeSystem.UK else GERMAN_GRADES


def levels_for(system: GradeSystem) -> List[GradeLevel]:
    return list(UK_LEVELS if system is GradeSystem.UK else GERMAN_LEVELS)


def is_descending(system: GradeSystem) -> bool:
    """낮은 점수가 더 좋은 성적인 체계인지 여부"""
    return system is GradeSystem.GERMAN


def is_advanced_level(level: GradeLevel) -> bool:
    return level in ADVANCED_LEVELS


def resolve_score(label: str, system: GradeSystem) -> float:
    """라벨 → 점수. 테이블에 없으면 0"""
    return scale_for(system).get(label, 0.0)


def nearest_label(value: float, system: GradeSystem) -> str:
    """
    value와 점수 차이가 가장 작은 라벨을 반환합니다.
    - 정의 순서대로 전체 순회, 동률이면 먼저 나온 라벨 유지
    - 범위를 벗어난 값은 가장 가까운 끝 라벨
    - NaN은 NO_LABEL
    """
    scale = scale_for(system)
    if math.isnan(value):
        return NO_LABEL
    if math.isinf(value):
        pick = max if value > 0 else min
        return pick(scale, key=scale.__getitem__)

    closest = NO_LABEL
    min_diff = math.inf
    for label, score in scale.items():
        diff = abs(value - score)
        if diff < min_diff:
            min_diff = diff
            closest = label
    return closest
