import os
import logging
import boto3
from botocore.config import Config

logger = logging.getLogger(__name__)

COURSES_TABLE_NAME = os.getenv('COURSES_TABLE_NAME', 'Courses')
PROGRESS_TABLE_NAME = os.getenv('PROGRESS_TABLE_NAME', 'UserCourseProgress')


def _client_config():
    """Timeout and retry policy shared by every DynamoDB call"""
    return Config(
        connect_timeout=float(os.getenv('DYNAMODB_CONNECT_TIMEOUT', '5')),
        read_timeout=float(os.getenv('DYNAMODB_READ_TIMEOUT', '10')),
        retries={
            'max_attempts': int(os.getenv('DYNAMODB_MAX_ATTEMPTS', '3')),
            'mode': 'standard'
        }
    )


def _connection_kwargs():
    return dict(
        endpoint_url=os.getenv('DYNAMODB_ENDPOINT_URL', 'http://localhost:8000'),  # DynamoDB Local by default
        region_name=os.getenv('AWS_REGION', 'local'),
        aws_access_key_id=os.getenv('AWS_ACCESS_KEY_ID', 'dummy'),
        aws_secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY', 'dummy'),
        config=_client_config()
    )


# DynamoDB Configuration
def get_dynamodb_resource():
    """Get DynamoDB resource"""
    return boto3.resource('dynamodb', **_connection_kwargs())


def create_tables():
    """Create DynamoDB tables if they don't exist"""
    dynamodb = get_dynamodb_resource()

    # Courses table
    try:
        table = dynamodb.create_table(
            TableName=COURSES_TABLE_NAME,
            KeySchema=[
                {'AttributeName': 'courseId', 'KeyType': 'HASH'}
            ],
            AttributeDefinitions=[
                {'AttributeName': 'courseId', 'AttributeType': 'S'}
            ],
            ProvisionedThroughput={
                'ReadCapacityUnits': 5,
                'WriteCapacityUnits': 5
            }
        )
        logger.info(f"Creating {COURSES_TABLE_NAME} table...")
        table.wait_until_exists()
    except dynamodb.meta.client.exceptions.ResourceInUseException:
        logger.info(f"{COURSES_TABLE_NAME} table already exists")

    # UserCourseProgress table
    try:
        table = dynamodb.create_table(
            TableName=PROGRESS_TABLE_NAME,
            KeySchema=[
                {'AttributeName': 'userId', 'KeyType': 'HASH'},
                {'AttributeName': 'courseId', 'KeyType': 'RANGE'}
            ],
            AttributeDefinitions=[
                {'AttributeName': 'userId', 'AttributeType': 'S'},
                {'AttributeName': 'courseId', 'AttributeType': 'S'}
            ],
            ProvisionedThroughput={
                'ReadCapacityUnits': 5,
                'WriteCapacityUnits': 5
            }
        )
        logger.info(f"Creating {PROGRESS_TABLE_NAME} table...")
        table.wait_until_exists()
    except dynamodb.meta.client.exceptions.ResourceInUseException:
        logger.info(f"{PROGRESS_TABLE_NAME} table already exists")
