import logging

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from helpers.dynamodb_helper import convert_from_dynamodb_type, raise_store_error
from helpers.progress_errors import ProgressNotFoundError, ProgressValidationError
from models.course import Course

logger = logging.getLogger(__name__)


class CourseCatalog:
    """Read-only access to course structure in the Courses table"""

    def __init__(self, table):
        self.table = table

    def get_course_structure(self, course_id: str) -> Course:
        try:
            response = self.table.get_item(Key={'courseId': course_id})
        except (ClientError, BotoCoreError) as e:
            raise_store_error(e, f"load course {course_id}")

        if 'Item' not in response:
            raise ProgressNotFoundError(f"Course not found: {course_id}")

        try:
            return Course(**convert_from_dynamodb_type(response['Item']))
        except ValidationError as e:
            logger.error(f"Course {course_id} has a malformed structure: {str(e)}")
            raise ProgressValidationError(f"Course {course_id} has a malformed structure") from e
