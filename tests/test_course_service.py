import pytest
from pydantic import ValidationError

from schemas.grades import Course, GradeLevel, GradeSheet, GradeSystem
from services import course_service
from services.course_service import CourseNotFoundError


def test_default_sheet_german_and_uk():
    de = course_service.default_sheet(GradeSystem.GERMAN)
    assert [(c.name, c.grade) for c in de.courses] == [("Mathematik", "2"), ("Deutsch", "1-"), ("Englisch", "2-")]
    assert de.grade_level is GradeLevel.TEN

    en = course_service.default_sheet(GradeSystem.UK)
    assert en.system is GradeSystem.UK
    assert [(c.name, c.grade) for c in en.courses] == [("Math", "7"), ("German", "9"), ("English", "7")]
    assert en.grade_level is GradeLevel.Y11


def test_new_course_defaults_per_system():
    de = course_service.new_course(GradeSystem.GERMAN)
    en = course_service.new_course(GradeSystem.UK, name="Chemistry")
    assert (de.grade, de.credits) == ("3", 1.0)
    assert (en.name, en.grade) == ("Chemistry", "5")
    assert de.id != en.id


def test_add_update_remove_do_not_mutate_input(german_sheet):
    added = course_service.add_course(german_sheet, course_service.new_course(GradeSystem.GERMAN, "Biologie"))
    assert len(german_sheet.courses) == 3
    assert len(added.courses) == 4

    updated = course_service.update_course(added, "1", grade="1+", name=None)
    assert updated.courses[0].grade == "1+"
    assert updated.courses[0].name == "Mathematik"
    assert german_sheet.courses[0].grade == "2"

    removed = course_service.remove_course(updated, "2")
    assert [c.id for c in removed.courses] == ["1", "3", added.courses[3].id]


def test_update_revalidates_course(german_sheet):
    with pytest.raises(ValidationError):
        course_service.update_course(german_sheet, "1", credits=-2)


@pytest.mark.parametrize("op", [
    lambda s: course_service.remove_course(s, "missing"),
    lambda s: course_service.update_course(s, "missing", grade="1"),
    lambda s: course_service.toggle_advanced(s, "missing"),
])
def test_unknown_course_id(german_sheet, op):
    with pytest.raises(CourseNotFoundError):
        op(german_sheet)


def test_toggle_advanced_flips_between_one_and_two(german_sheet):
    once = course_service.toggle_advanced(german_sheet, "2")
    assert once.courses[1].credits == 2
    twice = course_service.toggle_advanced(once, "2")
    assert twice.courses[1].credits == 1


def test_normalize_credits_resets_weights_below_advanced_levels(german_sheet):
    weighted = course_service.toggle_advanced(german_sheet, "1")
    normalized = course_service.normalize_credits(weighted)
    assert all(c.credits == 1 for c in normalized.courses)


def test_normalize_credits_keeps_weights_on_advanced_levels(uk_sheet):
    assert course_service.normalize_credits(uk_sheet) is uk_sheet
    assert uk_sheet.courses[0].credits == 2


def test_switch_locale_remaps_names_grades_and_level(german_sheet):
    uk = course_service.switch_locale(german_sheet, GradeSystem.UK)
    assert uk.system is GradeSystem.UK
    assert uk.grade_level is GradeLevel.Y11
    assert [(c.id, c.name, c.grade) for c in uk.courses] == [
        ("1", "Math", "7"), ("2", "German", "9"), ("3", "English", "7"),
    ]


def test_switch_locale_keeps_unknown_names_and_credits(uk_sheet):
    de = course_service.switch_locale(uk_sheet, GradeSystem.GERMAN)
    assert de.grade_level is GradeLevel.Q1
    assert [(c.name, c.grade, c.credits) for c in de.courses] == [
        ("Mathematik", "1-", 2), ("Physics", "2", 1), ("Geschichte", "6", 1),
    ]


def test_switch_locale_to_same_system_is_identity(german_sheet):
    assert course_service.switch_locale(german_sheet, GradeSystem.GERMAN) is german_sheet


def test_context_summary(german_sheet):
    text = course_service.context_summary(german_sheet)
    assert text == (
        "Notendurchschnitt: 1.87, Stufe: Klasse 10 (Mittlere Reife), "
        "Kurse: Mathematik (2), Deutsch (1-), Englisch (2-)"
    )


def test_course_list_text_marks_advanced_courses():
    courses = [
        Course(id="1", name="Math", grade="8", credits=2),
        Course(id="2", name="Art", grade="6", credits=1),
    ]
    assert course_service.course_list_text(courses, mark_advanced=True) == "Math: 8 (Advanced/LK), Art: 6"


def test_sheet_is_frozen(german_sheet):
    with pytest.raises(ValidationError):
        german_sheet.system = GradeSystem.UK
    assert isinstance(german_sheet, GradeSheet)


@pytest.mark.parametrize("system,level", [
    (GradeSystem.GERMAN, GradeLevel.Y12),
    (GradeSystem.UK, GradeLevel.Q1),
])
def test_sheet_rejects_level_of_other_system(system, level):
    with pytest.raises(ValidationError, match="does not belong to system"):
        GradeSheet(system=system, grade_level=level)


def test_sheet_default_level_matches_default_system():
    sheet = GradeSheet()
    assert sheet.grade_level.system is sheet.system
