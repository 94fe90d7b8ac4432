"""
services/grade_remapper.py

언어(성적 체계) 전환 시 성적 라벨 / 학년 단계 / 과목명을 변환합니다.
- 수치 변환이 아니라 구간(band) 단위의 대략적 대응이며 손실이 있습니다.
- 구간 테이블에 없는 라벨은 방향별 기본값을 반환하고 경고 로그를 남깁니다.
"""

import logging
from typing import Dict, List, Tuple

from schemas.grades import GradeLevel, RemapDirection
from services.grade_scales import FAIL_LABEL_UK

logger = logging.getLogger(__name__)


# ==========================================================
# [1] 성적 라벨 구간 테이블
# ==========================================================
# (구간 라벨들, 대상 라벨) - 위에서부터 검사
GRADE_BANDS: Dict[RemapDirection, List[Tuple[Tuple[str, ...], str]]] = {
    RemapDirection.DE_TO_EN: [
        (("1+", "1", "1-"), "9"),
        (("2+", "2", "2-"), "7"),
        (("3+", "3", "3-"), "5"),
        (("4+", "4", "4-"), "4"),
        (("5+", "5", "5-"), "2"),
        (("6",), FAIL_LABEL_UK),
    ],
    RemapDirection.EN_TO_DE: [
        # 9- ~ 4- 는 같은 숫자 구간에 포함
        (("9+", "9", "9-"), "1"),
        (("8+", "8", "8-"), "1-"),
        (("7+", "7", "7-"), "2"),
        (("6+", "6", "6-"), "2-"),
        (("5+", "5", "5-"), "3"),
        (("4+", "4", "4-"), "4"),
        (("3", "2", "1"), "5"),
        ((FAIL_LABEL_UK,), "6"),
    ],
}

# 구간에 없는 라벨의 기본값 (각 체계의 중간 성적)
GRADE_FALLBACKS: Dict[RemapDirection, str] = {
    RemapDirection.DE_TO_EN: "5",
    RemapDirection.EN_TO_DE: "3",
}


# ==========================================================
# [2] 학년 단계 테이블
# ==========================================================
LEVEL_MAP: Dict[RemapDirection, Dict[GradeLevel, GradeLevel]] = {
    RemapDirection.DE_TO_EN: {
        GradeLevel.FIVE: GradeLevel.Y7,
        GradeLevel.TEN: GradeLevel.Y11,
        GradeLevel.Q1: GradeLevel.Y13,
        GradeLevel.Q2: GradeLevel.Y13,
        GradeLevel.Q3: GradeLevel.Y13,
        GradeLevel.Q4: GradeLevel.Y13,
    },
    RemapDirection.EN_TO_DE: {
        GradeLevel.Y7: GradeLevel.FIVE,
        GradeLevel.Y11: GradeLevel.TEN,
        GradeLevel.Y12: GradeLevel.Q1,
        GradeLevel.Y13: GradeLevel.Q1,
    },
}

LEVEL_FALLBACKS: Dict[RemapDirection, GradeLevel] = {
    RemapDirection.DE_TO_EN: GradeLevel.Y10,
    RemapDirection.EN_TO_DE: GradeLevel.TEN,
}


# ==========================================================
# [3] 과목명 사전 (알려진 과목만)
# ==========================================================
SUBJECTS_DE_TO_EN: Dict[str, str] = {
    "Mathematik": "Math",
    "Deutsch": "German",
    "Englisch": "English",
    "Biologie": "Biology",
    "Geschichte": "History",
}
SUBJECTS_EN_TO_DE: Dict[str, str] = {en: de for de, en in SUBJECTS_DE_TO_EN.items()}


def remap_label(label: str, direction: RemapDirection) -> str:
    """성적 라벨을 대상 체계의 대표 라벨로 변환 (항상 유효한 라벨 반환)"""
    for band, target in GRADE_BANDS[direction]:
        if label in band:
            return target

    fallback = GRADE_FALLBACKS[direction]
    logger.warning("unmapped grade label %r for %s, using %r", label, direction.value, fallback)
    return fallback


def remap_grade_level(level: GradeLevel, direction: RemapDirection) -> GradeLevel:
    return LEVEL_MAP[direction].get(level, LEVEL_FALLBACKS[direction])


def translate_subject(name: str, direction: RemapDirection) -> str:
    """알려진 과목명만 번역, 나머지는 그대로"""
    table = SUBJECTS_DE_TO_EN if direction is RemapDirection.DE_TO_EN else SUBJECTS_EN_TO_DE
    return table.get(name, name)
