from typing import Dict, Optional

from models.course import Course
from models.user_course_progress import ChapterProgress, SectionProgress


def round_half_up_percentage(completed: int, total: int) -> int:
    """round(100 * completed / total) with halves rounded up, in exact integer math"""
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def compute_overall_progress(course: Course, sections: Dict[str, SectionProgress]) -> int:
    """
    Percentage of the course's chapters marked completed.

    The course structure decides which chapters count: stored entries for
    chapters no longer in the course are ignored, and chapters never touched
    count as not completed.
    """
    total = course.total_chapters
    if total == 0:
        return 0

    completed = 0
    for section in course.sections:
        section_progress = sections.get(section.sectionId)
        if section_progress is None:
            continue
        for chapter in section.chapters:
            chapter_progress = section_progress.chapters.get(chapter.chapterId)
            if chapter_progress is not None and chapter_progress.completed:
                completed += 1

    return round_half_up_percentage(completed, total)


def seed_sections(course: Course) -> Dict[str, SectionProgress]:
    """Not-completed entries for every chapter of the course"""
    return {
        section.sectionId: SectionProgress(
            sectionId=section.sectionId,
            chapters={
                chapter.chapterId: ChapterProgress(chapterId=chapter.chapterId, completed=False)
                for chapter in section.chapters
            }
        )
        for section in course.sections
    }


def apply_chapter_completion(
    sections: Dict[str, SectionProgress],
    section_id: str,
    chapter_id: str,
    completed: bool,
    accessed_at: str,
    time_spent: Optional[int] = None,
) -> ChapterProgress:
    """Set one chapter's flag, inserting its section and chapter entries if missing"""
    section = sections.get(section_id)
    if section is None:
        section = SectionProgress(sectionId=section_id, chapters={})
        sections[section_id] = section

    chapter = section.chapters.get(chapter_id)
    if chapter is None:
        chapter = ChapterProgress(chapterId=chapter_id, completed=False)
        section.chapters[chapter_id] = chapter

    chapter.completed = completed
    chapter.lastAccessedAt = accessed_at
    if time_spent is not None:
        chapter.timeSpent = time_spent
    return chapter
