import copy
import itertools

import pytest
from botocore.exceptions import ClientError

from helpers.course_catalog import CourseCatalog
from helpers.dynamodb_helper import convert_to_dynamodb_type
from helpers.progress_store import ProgressStore
from helpers.progress_tracker import ProgressTracker
from models.course import Course


def _evaluate(condition, item):
    expression = condition.get_expression()
    operator = expression['operator']
    values = expression['values']
    if operator == 'AND':
        return all(_evaluate(value, item) for value in values)
    if operator == 'OR':
        return any(_evaluate(value, item) for value in values)
    if operator == 'NOT':
        return not _evaluate(values[0], item)
    if operator == 'attribute_exists':
        return item is not None and values[0].name in item
    if operator == 'attribute_not_exists':
        return item is None or values[0].name not in item
    if operator == '=':
        return item is not None and item.get(values[0].name) == values[1]
    raise NotImplementedError(f"Unsupported condition operator: {operator}")


def conditional_check_failed(operation):
    return ClientError(
        {'Error': {'Code': 'ConditionalCheckFailedException', 'Message': 'The conditional request failed'}},
        operation
    )


class FakeTable:
    """In-memory stand-in for a boto3 DynamoDB Table"""

    def __init__(self, name, key_names, page_size=100):
        self.name = name
        self.key_names = key_names
        self.page_size = page_size
        self.items = {}
        self.failures = {}
        self.calls = []

    def _key(self, item):
        return tuple(item[name] for name in self.key_names)

    def _maybe_fail(self, operation):
        self.calls.append(operation)
        pending = self.failures.get(operation)
        if pending:
            raise pending.pop(0)

    def fail_on(self, operation, error):
        self.failures.setdefault(operation, []).append(error)

    def get_item(self, Key, ConsistentRead=False):
        self._maybe_fail('GetItem')
        item = self.items.get(self._key(Key))
        return {'Item': copy.deepcopy(item)} if item is not None else {}

    def put_item(self, Item, ConditionExpression=None):
        self._maybe_fail('PutItem')
        key = self._key(Item)
        if ConditionExpression is not None and not _evaluate(ConditionExpression, self.items.get(key)):
            raise conditional_check_failed('PutItem')
        self.items[key] = copy.deepcopy(Item)
        return {}

    def update_item(self, Key, UpdateExpression, ExpressionAttributeNames,
                    ExpressionAttributeValues, ConditionExpression=None):
        self._maybe_fail('UpdateItem')
        key = self._key(Key)
        current = self.items.get(key)
        if ConditionExpression is not None and not _evaluate(ConditionExpression, current):
            raise conditional_check_failed('UpdateItem')
        assert UpdateExpression.startswith('SET ')
        for assignment in UpdateExpression[4:].split(','):
            name, value = (part.strip() for part in assignment.split('='))
            current[ExpressionAttributeNames[name]] = ExpressionAttributeValues[value]
        return {}

    def query(self, KeyConditionExpression, ProjectionExpression=None, ExclusiveStartKey=None):
        self._maybe_fail('Query')
        matches = sorted(
            (item for item in self.items.values() if _evaluate(KeyConditionExpression, item)),
            key=self._key
        )
        if ExclusiveStartKey is not None:
            start = self._key(ExclusiveStartKey)
            matches = [item for item in matches if self._key(item) > start]

        page = matches[:self.page_size]
        if ProjectionExpression:
            fields = [field.strip() for field in ProjectionExpression.split(',')]
            page = [{field: item[field] for field in fields if field in item} for item in page]

        response = {'Items': copy.deepcopy(page)}
        if len(matches) > self.page_size:
            last = matches[self.page_size - 1]
            response['LastEvaluatedKey'] = {name: last[name] for name in self.key_names}
        return response


COURSE_ID = "course-1"
USER_ID = "user-1"


def course_document(**overrides):
    """Two sections: A with three chapters, B with two"""
    document = {
        "courseId": COURSE_ID,
        "title": "Intro to Python",
        "enrollments": [{"userId": USER_ID}],
        "sections": [
            {
                "sectionId": "section-a",
                "sectionTitle": "Basics",
                "chapters": [
                    {"chapterId": "a1", "type": "Video", "title": "Install"},
                    {"chapterId": "a2", "type": "Text", "title": "Variables"},
                    {"chapterId": "a3", "type": "Quiz", "title": "Checkpoint"},
                ],
            },
            {
                "sectionId": "section-b",
                "sectionTitle": "Functions",
                "chapters": [
                    {"chapterId": "b1", "type": "Video", "title": "Defining"},
                    {"chapterId": "b2", "type": "Text", "title": "Arguments"},
                ],
            },
        ],
    }
    document.update(overrides)
    return document


@pytest.fixture
def course():
    return Course(**course_document())


@pytest.fixture
def courses_table():
    table = FakeTable("Courses", ["courseId"])
    table.items[(COURSE_ID,)] = convert_to_dynamodb_type(course_document())
    return table


@pytest.fixture
def progress_table():
    return FakeTable("UserCourseProgress", ["userId", "courseId"])


@pytest.fixture
def clock():
    ticks = itertools.count(1)
    return lambda: f"2026-03-01T10:00:{next(ticks):02d}+00:00"


@pytest.fixture
def store(progress_table):
    return ProgressStore(progress_table)


@pytest.fixture
def catalog(courses_table):
    return CourseCatalog(courses_table)


@pytest.fixture
def tracker(store, catalog, clock):
    return ProgressTracker(store, catalog, clock=clock)


def chapter_of(record, section_id, chapter_id):
    return record.sections[section_id].chapters[chapter_id]
