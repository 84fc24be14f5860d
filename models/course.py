from typing import List, Optional
from pydantic import BaseModel, ConfigDict, model_validator


class Chapter(BaseModel):
    model_config = ConfigDict(extra="ignore")

    chapterId: str
    type: Optional[str] = None  # "Text" | "Quiz" | "Video"
    title: Optional[str] = None


class Section(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sectionId: str
    sectionTitle: Optional[str] = None
    chapters: List[Chapter] = []

    @model_validator(mode="after")
    def check_unique_chapters(self):
        seen = set()
        for chapter in self.chapters:
            if chapter.chapterId in seen:
                raise ValueError(
                    f"Duplicate chapterId '{chapter.chapterId}' in section '{self.sectionId}'"
                )
            seen.add(chapter.chapterId)
        return self


class Enrollment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    userId: str


class Course(BaseModel):
    """
    Read-only view of a course document from the catalog: its ordered
    sections and chapters, plus the users enrolled in it.
    """
    model_config = ConfigDict(extra="ignore")

    courseId: str
    title: Optional[str] = None
    sections: List[Section] = []
    enrollments: List[Enrollment] = []

    @model_validator(mode="after")
    def check_unique_sections(self):
        seen = set()
        for section in self.sections:
            if section.sectionId in seen:
                raise ValueError(
                    f"Duplicate sectionId '{section.sectionId}' in course '{self.courseId}'"
                )
            seen.add(section.sectionId)
        return self

    @property
    def total_chapters(self) -> int:
        return sum(len(section.chapters) for section in self.sections)

    def is_enrolled(self, user_id: str) -> bool:
        return any(enrollment.userId == user_id for enrollment in self.enrollments)
