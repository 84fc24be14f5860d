from fastapi import APIRouter, Depends, HTTPException
from functools import lru_cache
import logging

from config.db_config import COURSES_TABLE_NAME, PROGRESS_TABLE_NAME, get_dynamodb_resource
from helpers.course_catalog import CourseCatalog
from helpers.progress_errors import ProgressError
from helpers.progress_store import ProgressStore
from helpers.progress_tracker import ProgressTracker, retry_on_conflict
from middleware.auth_middleware import ensure_same_user, get_current_user
from schemas.progress_schema import (
    ChapterCompletionRequest,
    CourseAccessResponse,
    EnrolledCoursesResponse,
    ProgressResponse,
    ProgressUpdateRequest,
)

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache()
def get_progress_tracker() -> ProgressTracker:
    dynamodb = get_dynamodb_resource()
    return ProgressTracker(
        store=ProgressStore(dynamodb.Table(PROGRESS_TABLE_NAME)),
        catalog=CourseCatalog(dynamodb.Table(COURSES_TABLE_NAME))
    )


def _to_http_error(e: Exception, action: str) -> HTTPException:
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, ProgressError):
        return HTTPException(status_code=e.status_code, detail=str(e))
    logger.error(f"Error {action}: {str(e)}", exc_info=True)
    return HTTPException(status_code=500, detail=f"Error {action}: {str(e)}")


@router.get("/users/{user_id}/enrolled-courses", response_model=EnrolledCoursesResponse)
def get_user_enrolled_courses(
    user_id: str,
    current_user: dict = Depends(get_current_user),
    tracker: ProgressTracker = Depends(get_progress_tracker)
):
    ensure_same_user(current_user, user_id)
    try:
        summaries = [summary.model_dump() for summary in tracker.list_enrolled_summaries(user_id)]
        return {
            "message": "Enrolled courses retrieved successfully",
            "data": summaries
        }
    except Exception as e:
        raise _to_http_error(e, "fetching enrolled courses")


@router.get("/users/{user_id}/courses/{course_id}/access", response_model=CourseAccessResponse)
def check_course_access(
    user_id: str,
    course_id: str,
    current_user: dict = Depends(get_current_user),
    tracker: ProgressTracker = Depends(get_progress_tracker)
):
    ensure_same_user(current_user, user_id)
    try:
        has_access = tracker.check_course_access(user_id, course_id)
        return {
            "message": "Course access checked successfully",
            "data": {"hasAccess": has_access}
        }
    except Exception as e:
        raise _to_http_error(e, "checking course access")


@router.get("/users/{user_id}/courses/{course_id}/progress", response_model=ProgressResponse)
def get_user_course_progress(
    user_id: str,
    course_id: str,
    current_user: dict = Depends(get_current_user),
    tracker: ProgressTracker = Depends(get_progress_tracker)
):
    ensure_same_user(current_user, user_id)
    try:
        course = tracker.catalog.get_course_structure(course_id)
        progress = tracker.get_or_create(user_id, course_id, course)
        return {
            "message": "Course progress retrieved successfully",
            "data": progress.to_response()
        }
    except Exception as e:
        raise _to_http_error(e, "retrieving course progress")


@router.put("/users/{user_id}/courses/{course_id}/progress", response_model=ProgressResponse)
def update_user_course_progress(
    user_id: str,
    course_id: str,
    progress_update: ProgressUpdateRequest,
    current_user: dict = Depends(get_current_user),
    tracker: ProgressTracker = Depends(get_progress_tracker)
):
    ensure_same_user(current_user, user_id)
    updates = progress_update.to_updates()

    def update_cycle():
        course = tracker.catalog.get_course_structure(course_id)
        tracker.get_or_create(user_id, course_id, course)
        return tracker.apply_updates(user_id, course_id, updates, course=course)

    try:
        progress = retry_on_conflict(update_cycle)
        return {
            "message": "User course progress updated successfully",
            "data": progress.to_response()
        }
    except Exception as e:
        raise _to_http_error(e, "updating user course progress")


@router.put(
    "/users/{user_id}/courses/{course_id}/sections/{section_id}/chapters/{chapter_id}/progress",
    response_model=ProgressResponse
)
def update_chapter_progress(
    user_id: str,
    course_id: str,
    section_id: str,
    chapter_id: str,
    chapter_update: ChapterCompletionRequest,
    current_user: dict = Depends(get_current_user),
    tracker: ProgressTracker = Depends(get_progress_tracker)
):
    ensure_same_user(current_user, user_id)

    def update_cycle():
        course = tracker.catalog.get_course_structure(course_id)
        tracker.get_or_create(user_id, course_id, course)
        return tracker.set_chapter_completion(
            user_id,
            course_id,
            section_id,
            chapter_id,
            chapter_update.completed,
            time_spent=chapter_update.timeSpent,
            course=course
        )

    try:
        progress = retry_on_conflict(update_cycle)
        return {
            "message": "Chapter progress updated successfully",
            "data": progress.to_response()
        }
    except Exception as e:
        raise _to_http_error(e, "updating chapter progress")
