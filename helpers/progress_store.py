import logging
from typing import Iterator, Optional

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from helpers.dynamodb_helper import (
    convert_from_dynamodb_type,
    convert_to_dynamodb_type,
    error_code,
    raise_store_error,
)
from helpers.progress_errors import ProgressNotFoundError, ProgressValidationError
from models.user_course_progress import EnrolledCourseSummary, UserCourseProgress

logger = logging.getLogger(__name__)

SUMMARY_PROJECTION = 'courseId, overallProgress, lastAccessedTimestamp'


class ProgressStore:
    """
    UserCourseProgress table access.

    One item per (userId, courseId) with the sections embedded as a list.
    Every write that changes completion state is guarded by the item's
    ``version`` so two writers can never both commit from the same read.
    """

    def __init__(self, table):
        self.table = table

    def get(self, user_id: str, course_id: str) -> Optional[UserCourseProgress]:
        try:
            response = self.table.get_item(
                Key={'userId': user_id, 'courseId': course_id},
                ConsistentRead=True
            )
        except (ClientError, BotoCoreError) as e:
            raise_store_error(e, f"read progress for {user_id}/{course_id}")

        if 'Item' not in response:
            return None
        return self._load(UserCourseProgress, response['Item'], f"{user_id}/{course_id}")

    def create(self, record: UserCourseProgress) -> bool:
        """Insert the record unless one already exists; False when it did"""
        try:
            self.table.put_item(
                Item=convert_to_dynamodb_type(record.model_dump()),
                ConditionExpression=Attr('userId').not_exists()
            )
            return True
        except ClientError as e:
            if error_code(e) == 'ConditionalCheckFailedException':
                return False
            raise_store_error(e, f"create progress for {record.userId}/{record.courseId}")
        except BotoCoreError as e:
            raise_store_error(e, f"create progress for {record.userId}/{record.courseId}")

    def save(self, record: UserCourseProgress, expected_version: int) -> UserCourseProgress:
        """Replace the stored record if nobody else wrote it since ``expected_version``"""
        condition = Attr('userId').exists() & Attr('version').eq(expected_version)
        if expected_version == 0:
            # Seeded items predate the version attribute
            condition = Attr('userId').exists() & (
                Attr('version').not_exists() | Attr('version').eq(0)
            )

        updated = record.model_copy(update={'version': expected_version + 1})
        try:
            self.table.put_item(
                Item=convert_to_dynamodb_type(updated.model_dump()),
                ConditionExpression=condition
            )
        except (ClientError, BotoCoreError) as e:
            raise_store_error(e, f"save progress for {record.userId}/{record.courseId}")
        return updated

    def touch(self, user_id: str, course_id: str, timestamp: str):
        try:
            self.table.update_item(
                Key={'userId': user_id, 'courseId': course_id},
                UpdateExpression='SET #lastAccessedTimestamp = :lastAccessedTimestamp',
                ExpressionAttributeNames={'#lastAccessedTimestamp': 'lastAccessedTimestamp'},
                ExpressionAttributeValues={':lastAccessedTimestamp': timestamp},
                ConditionExpression=Attr('userId').exists()
            )
        except ClientError as e:
            if error_code(e) == 'ConditionalCheckFailedException':
                raise ProgressNotFoundError(
                    f"Progress record not found for {user_id}/{course_id}"
                ) from e
            raise_store_error(e, f"touch progress for {user_id}/{course_id}")
        except BotoCoreError as e:
            raise_store_error(e, f"touch progress for {user_id}/{course_id}")

    @staticmethod
    def _load(model, item, label):
        try:
            return model(**convert_from_dynamodb_type(item))
        except ValidationError as e:
            logger.error(f"Stored progress {label} is malformed: {str(e)}")
            raise ProgressValidationError(f"Stored progress {label} is malformed") from e

    def iter_summaries(self, user_id: str) -> Iterator[EnrolledCourseSummary]:
        query_kwargs = {
            'KeyConditionExpression': Key('userId').eq(user_id),
            'ProjectionExpression': SUMMARY_PROJECTION,
        }
        while True:
            try:
                response = self.table.query(**query_kwargs)
            except (ClientError, BotoCoreError) as e:
                raise_store_error(e, f"list progress for {user_id}")

            for item in response.get('Items', []):
                yield self._load(EnrolledCourseSummary, item, f"{user_id}/{item.get('courseId')}")

            last_key = response.get('LastEvaluatedKey')
            if not last_key:
                break
            query_kwargs['ExclusiveStartKey'] = last_key
