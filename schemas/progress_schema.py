from typing import Annotated, Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StringConstraints

# Course, section and chapter ids are uuids in practice
IdStr = Annotated[str, StringConstraints(pattern=r"^[A-Za-z0-9_.:\-]{1,128}$")]


class ChapterProgressUpdate(BaseModel):
    """A single completion change for one chapter of a course"""
    model_config = ConfigDict(extra="forbid")

    sectionId: IdStr
    chapterId: IdStr
    completed: StrictBool
    timeSpent: Optional[StrictInt] = Field(default=None, ge=0)


class ChapterProgressPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    chapterId: IdStr
    completed: StrictBool
    timeSpent: Optional[StrictInt] = Field(default=None, ge=0)


class SectionProgressPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    sectionId: IdStr
    chapters: List[ChapterProgressPayload]


class ProgressUpdateRequest(BaseModel):
    """Partial nested ``sections`` payload of PUT .../progress"""
    model_config = ConfigDict(extra="forbid")

    sections: List[SectionProgressPayload]

    def to_updates(self) -> List[ChapterProgressUpdate]:
        return [
            ChapterProgressUpdate(
                sectionId=section.sectionId,
                chapterId=chapter.chapterId,
                completed=chapter.completed,
                timeSpent=chapter.timeSpent
            )
            for section in self.sections
            for chapter in section.chapters
        ]


class ChapterCompletionRequest(BaseModel):
    """Body of PUT .../sections/{sectionId}/chapters/{chapterId}/progress"""
    model_config = ConfigDict(extra="forbid")

    completed: StrictBool
    timeSpent: Optional[StrictInt] = Field(default=None, ge=0)


# Response Models
class ProgressResponse(BaseModel):
    message: str
    data: dict


class EnrolledCoursesResponse(BaseModel):
    message: str
    data: List[dict]


class CourseAccessResponse(BaseModel):
    message: str
    data: Any
