"""Thai university grade scale and GPA arithmetic."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from coursehub.models import GPACalculation, StudentCourse

GradeTier = Literal["excellent", "very_good", "good", "fair", "poor", "none"]


@dataclass(frozen=True)
class GradeInfo:
    grade: str
    grade_point: float
    description: str


GRADE_SYSTEM: tuple[GradeInfo, ...] = (
    GradeInfo("A", 4.0, "ดีเยี่ยม (80-100)"),
    GradeInfo("B+", 3.5, "ดีมาก (75-79)"),
    GradeInfo("B", 3.0, "ดี (70-74)"),
    GradeInfo("C+", 2.5, "ค่อนข้างดี (65-69)"),
    GradeInfo("C", 2.0, "พอใช้ (60-64)"),
    GradeInfo("D+", 1.5, "อ่อน (55-59)"),
    GradeInfo("D", 1.0, "อ่อนมาก (50-54)"),
    GradeInfo("F", 0.0, "ตก (0-49)"),
    GradeInfo("I", 0.0, "ไม่สมบูรณ์"),
    GradeInfo("W", 0.0, "ถอน"),
    GradeInfo("S", 0.0, "พอใจ (ไม่นับเกรด)"),
    GradeInfo("U", 0.0, "ไม่พอใจ (ไม่นับเกรด)"),
)
_BY_GRADE = {item.grade: item for item in GRADE_SYSTEM}

# Grades that never enter the GPA denominator.
NON_GPA_GRADES = frozenset({"S", "U", "I", "W"})
# Grades that earn no credit towards graduation.
NON_CREDIT_GRADES = frozenset({"F", "I", "W"})

_TIERS: tuple[tuple[float, GradeTier], ...] = (
    (3.5, "excellent"),
    (3.0, "very_good"),
    (2.5, "good"),
    (2.0, "fair"),
    (1.0, "poor"),
)


def get_grade_point(grade: str) -> float:
    info = _BY_GRADE.get(grade)
    return info.grade_point if info else 0.0


def get_grade_description(grade: str) -> str:
    info = _BY_GRADE.get(grade)
    return info.description if info else ""


def available_grades() -> list[str]:
    return [item.grade for item in GRADE_SYSTEM]


def is_passing_grade(grade: str) -> bool:
    return get_grade_point(grade) >= 1.0 or grade == "S"


def _round_half_up(value: float) -> float:
    """Two decimal places, ties rounded up."""
    return math.floor(value * 100 + 0.5) / 100


def calculate_gpa(courses: Iterable[StudentCourse]) -> GPACalculation:
    """Summarise completed, graded courses.

    Only completed courses with a grade are counted. S/U/I/W are left out of the
    GPA; F/I/W do not count as completed credit.
    """
    total_credits = 0
    total_grade_points = 0.0
    completed_credits = 0

    for course in courses:
        if course.status != "completed" or not course.grade:
            continue
        if course.grade not in NON_GPA_GRADES:
            total_credits += course.credits
            total_grade_points += course.credits * get_grade_point(course.grade)
        if course.grade not in NON_CREDIT_GRADES:
            completed_credits += course.credits

    gpa = total_grade_points / total_credits if total_credits > 0 else 0.0
    return GPACalculation(
        total_credits=total_credits,
        total_grade_points=total_grade_points,
        gpa=_round_half_up(gpa),
        completed_credits=completed_credits,
    )


def gpa_tier(gpa: float) -> GradeTier:
    for threshold, tier in _TIERS:
        if gpa >= threshold:
            return tier
    return "none"


def grade_tier(grade: str) -> GradeTier:
    return gpa_tier(get_grade_point(grade))
