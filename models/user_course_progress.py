from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional
from pydantic import BaseModel, Field, field_serializer, field_validator


def _index_by(value, key):
    # Stored and sent over the wire as a list
    if isinstance(value, list):
        indexed = {}
        for item in value:
            item_id = item.get(key) if isinstance(item, dict) else getattr(item, key, None)
            if item_id is None:
                raise ValueError(f"Entry without {key}: {item!r}")
            indexed[item_id] = item
        return indexed
    return value


def _whole_percentage(value):
    # Older items may hold a fractional percentage; halves round up
    if isinstance(value, (float, Decimal)):
        number = Decimal(str(value))
        if number.is_finite():
            return int(number.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return value


class ChapterProgress(BaseModel):
    chapterId: str
    completed: bool = False
    lastAccessedAt: Optional[str] = None
    timeSpent: Optional[int] = Field(default=None, ge=0)


class SectionProgress(BaseModel):
    sectionId: str
    chapters: Dict[str, ChapterProgress] = {}

    @field_validator("chapters", mode="before")
    @classmethod
    def index_chapters(cls, value):
        return _index_by(value, "chapterId")

    @field_serializer("chapters")
    def serialize_chapters(self, chapters: Dict[str, ChapterProgress]):
        return [chapter.model_dump(exclude_none=True) for chapter in chapters.values()]


class UserCourseProgress(BaseModel):
    """
    Completion ledger for one user in one course.

    ``sections`` mirrors the course structure lazily: a section or chapter
    missing here simply has not been completed yet.
    """
    userId: str
    courseId: str
    enrollmentDate: str
    overallProgress: int = Field(default=0, ge=0, le=100)
    sections: Dict[str, SectionProgress] = {}
    lastAccessedTimestamp: str
    version: int = 0

    @field_validator("sections", mode="before")
    @classmethod
    def index_sections(cls, value):
        return _index_by(value, "sectionId")

    @field_validator("overallProgress", mode="before")
    @classmethod
    def round_overall_progress(cls, value):
        return _whole_percentage(value)

    @field_serializer("sections")
    def serialize_sections(self, sections: Dict[str, SectionProgress]):
        return [section.model_dump() for section in sections.values()]

    def to_response(self) -> dict:
        return self.model_dump(exclude={"version"})


class EnrolledCourseSummary(BaseModel):
    courseId: str
    overallProgress: int = Field(default=0, ge=0, le=100)
    lastAccessedTimestamp: Optional[str] = None

    @field_validator("overallProgress", mode="before")
    @classmethod
    def round_overall_progress(cls, value):
        return _whole_percentage(value)
