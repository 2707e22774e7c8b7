"""Course, curriculum and study-plan records."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from coursehub.errors import CourseHubError, ExitCode

CourseCategory = Literal["core", "major", "elective", "general", "free"]
CourseStatus = Literal["completed", "in_progress", "planned", "failed"]


class Course(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    code: str
    name: str
    credits: int = Field(ge=0)
    description: str = ""
    prerequisites: list[str] = Field(default_factory=list)
    corequisites: list[str] = Field(default_factory=list)
    category: CourseCategory
    semester: int = Field(ge=1)
    year: int = Field(ge=1)
    instructor: str | None = None
    is_active: bool = Field(default=True, alias="isActive")
    main_category: str | None = Field(default=None, alias="mainCategory")
    sub_category: str | None = Field(default=None, alias="subCategory")
    program: str | None = None
    curriculum_year: str | None = Field(default=None, alias="curriculumYear")


class CurriculumSemester(BaseModel):
    year: int = Field(ge=1)
    semester: int = Field(ge=1)
    courses: list[Course] = Field(default_factory=list)


class Curriculum(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    year: int
    buddhist_year: int = Field(alias="buddhistYear")
    name: str
    duration: int = Field(ge=1)
    total_credits: int = Field(ge=0, alias="totalCredits")
    semesters: list[CurriculumSemester] = Field(default_factory=list)

    def courses(self) -> list[Course]:
        return [course for semester in self.semesters for course in semester.courses]


class Department(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    code: str
    name: str
    name_thai: str = Field(alias="nameThai")
    curricula: list[Curriculum] = Field(default_factory=list)


class StudentCourse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    student_id: str = Field(alias="studentId")
    course_id: str = Field(alias="courseId")
    status: CourseStatus
    credits: int = Field(default=0, ge=0)
    grade: str | None = None
    grade_point: float | None = Field(default=None, alias="gradePoint")
    semester: str | None = None


class GPACalculation(BaseModel):
    total_credits: int = 0
    total_grade_points: float = 0.0
    gpa: float = 0.0
    completed_credits: int = 0


class StudyPlan(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    student_id: str = Field(alias="studentId")
    courses: list[StudentCourse] = Field(default_factory=list)
    total_credits: int = Field(default=0, alias="totalCredits")
    completed_credits: int = Field(default=0, alias="completedCredits")
    current_semester: int = Field(default=1, alias="currentSemester")
    current_year: int = Field(default=1, alias="currentYear")
    last_updated: datetime | None = Field(default=None, alias="lastUpdated")

    @classmethod
    def from_json_file(cls, path: str | Path) -> StudyPlan:
        resolved = Path(path).expanduser()
        try:
            raw = json.loads(resolved.read_text(encoding="utf-8"))
        except OSError as exc:
            raise CourseHubError(
                f"Cannot read study plan: {resolved}",
                code=ExitCode.DATA_ERROR,
                hint="Check that the file exists and is readable.",
            ) from exc
        except UnicodeDecodeError as exc:
            raise CourseHubError(
                f"Study plan is not UTF-8 text: {resolved}",
                code=ExitCode.DATA_ERROR,
                hint=f"Re-save the file as UTF-8 (bad byte at offset {exc.start}).",
            ) from exc
        except json.JSONDecodeError as exc:
            raise CourseHubError(
                f"Study plan is not valid JSON: {resolved}",
                code=ExitCode.DATA_ERROR,
                hint=f"Fix the syntax error at line {exc.lineno}.",
            ) from exc
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first["loc"]) or "<root>"
            raise CourseHubError(
                f"Invalid study plan: {resolved}",
                code=ExitCode.DATA_ERROR,
                hint=f"{location}: {first['msg']}",
            ) from exc
