import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, Iterator, Optional, TypeVar

from pydantic import ValidationError

from helpers.course_catalog import CourseCatalog
from helpers.progress_errors import (
    ProgressConflictError,
    ProgressNotFoundError,
    ProgressValidationError,
)
from helpers.progress_helper import (
    apply_chapter_completion,
    compute_overall_progress,
    seed_sections,
)
from helpers.progress_store import ProgressStore
from models.course import Course
from models.user_course_progress import EnrolledCourseSummary, UserCourseProgress
from schemas.progress_schema import ChapterProgressUpdate

logger = logging.getLogger(__name__)

T = TypeVar("T")


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class EnrolledSummaries:
    """Restartable listing of a user's cached progress; each iteration re-queries the store"""

    def __init__(self, store: ProgressStore, user_id: str):
        self.store = store
        self.user_id = user_id

    def __iter__(self) -> Iterator[EnrolledCourseSummary]:
        return self.store.iter_summaries(self.user_id)


class ProgressTracker:
    """
    Owns the per-user, per-course completion ledger.

    The course catalog is authoritative for which chapters exist, the store
    only for the completion flags of chapters that still do.
    """

    def __init__(self, store: ProgressStore, catalog: CourseCatalog, clock: Callable[[], str] = utc_now):
        self.store = store
        self.catalog = catalog
        self.clock = clock

    def get_or_create(self, user_id: str, course_id: str, course: Optional[Course]) -> UserCourseProgress:
        if course is None:
            raise ProgressNotFoundError(f"Course not found: {course_id}")

        now = self.clock()
        existing = self.store.get(user_id, course_id)
        if existing is not None:
            self.store.touch(user_id, course_id, now)
            return existing.model_copy(update={'lastAccessedTimestamp': now})

        record = UserCourseProgress(
            userId=user_id,
            courseId=course_id,
            enrollmentDate=now,
            overallProgress=0,
            sections=seed_sections(course),
            lastAccessedTimestamp=now
        )
        if self.store.create(record):
            logger.info(
                f"Created progress for user {user_id} in course {course_id} "
                f"with {course.total_chapters} chapters"
            )
            return record

        # Lost a creation race; the other request's record wins
        existing = self.store.get(user_id, course_id)
        if existing is None:
            raise ProgressConflictError(f"Progress for {user_id}/{course_id} vanished during creation")
        return existing

    def set_chapter_completion(
        self,
        user_id: str,
        course_id: str,
        section_id: str,
        chapter_id: str,
        completed: bool,
        time_spent: Optional[int] = None,
        course: Optional[Course] = None,
    ) -> UserCourseProgress:
        update = self._validate_update(section_id, chapter_id, completed, time_spent)
        return self.apply_updates(user_id, course_id, [update], course=course)

    def apply_updates(
        self,
        user_id: str,
        course_id: str,
        updates: Iterable[ChapterProgressUpdate],
        course: Optional[Course] = None,
    ) -> UserCourseProgress:
        """
        Apply completion changes in one read-mutate-write cycle.

        Raises ProgressNotFoundError when the record does not exist yet and
        ProgressConflictError when another writer committed in between.
        """
        updates = list(updates)
        for update in updates:
            if not isinstance(update, ChapterProgressUpdate):
                raise ProgressValidationError(f"Unsupported progress update: {update!r}")

        if course is None:
            course = self.catalog.get_course_structure(course_id)

        record = self.store.get(user_id, course_id)
        if record is None:
            raise ProgressNotFoundError(f"Progress record not found for {user_id}/{course_id}")

        expected_version = record.version
        record = record.model_copy(deep=True)
        now = self.clock()
        for update in updates:
            apply_chapter_completion(
                record.sections,
                update.sectionId,
                update.chapterId,
                update.completed,
                now,
                update.timeSpent
            )

        record.lastAccessedTimestamp = now
        record.overallProgress = compute_overall_progress(course, record.sections)
        saved = self.store.save(record, expected_version)
        logger.info(
            f"Updated {len(updates)} chapters for user {user_id} in course {course_id}, "
            f"overall progress {saved.overallProgress}%"
        )
        return saved

    def list_enrolled_summaries(self, user_id: str) -> EnrolledSummaries:
        return EnrolledSummaries(self.store, user_id)

    def check_course_access(self, user_id: str, course_id: str) -> bool:
        course = self.catalog.get_course_structure(course_id)
        return course.is_enrolled(user_id)

    @staticmethod
    def _validate_update(section_id, chapter_id, completed, time_spent) -> ChapterProgressUpdate:
        try:
            return ChapterProgressUpdate(
                sectionId=section_id,
                chapterId=chapter_id,
                completed=completed,
                timeSpent=time_spent
            )
        except ValidationError as e:
            raise ProgressValidationError(str(e)) from e


def retry_on_conflict(operation: Callable[[], T], attempts: int = 2) -> T:
    """Run a read-mutate-write cycle, starting over after a lost race"""
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except ProgressConflictError:
            if attempt == attempts:
                raise
            logger.warning(f"Progress write conflict, retrying (attempt {attempt + 1} of {attempts})")
