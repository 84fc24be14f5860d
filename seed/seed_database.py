import os
import sys
import json
import logging
from typing import Any, Dict, List

# Dynamically add the parent directory to Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv

# Import custom database configuration
from config.db_config import (
    COURSES_TABLE_NAME,
    PROGRESS_TABLE_NAME,
    create_tables,
    get_dynamodb_resource,
)
from helpers.dynamodb_helper import convert_to_dynamodb_type

logger = logging.getLogger(__name__)

COURSE_SCHEMA = {
    "courseId": {"type": str, "required": True},
    "teacherId": {"type": str, "required": True},
    "teacherName": {"type": str, "required": True},
    "title": {"type": str, "required": True},
    "category": {"type": str, "required": True},
    "level": {"type": str, "required": True},
    "status": {"type": str, "required": True},
    "enrollments": {"type": list, "required": True},
    "sections": {"type": list, "required": True}
}

PROGRESS_SCHEMA = {
    "userId": {"type": str, "required": True},
    "courseId": {"type": str, "required": True},
    "enrollmentDate": {"type": str, "required": True},
    "overallProgress": {"type": (int, float), "required": True},
    "sections": {"type": list, "required": True},
    "lastAccessedTimestamp": {"type": str, "required": True}
}


def validate_data(data: List[Dict[str, Any]], schema: Dict[str, Any]) -> bool:
    """
    Basic validation for the data structure against a schema.
    """
    for record in data:
        for field, field_schema in schema.items():
            if field not in record:
                if field_schema.get('required', True):
                    logger.error(f"Missing required field '{field}' in record: {record}")
                    return False
            elif not isinstance(record[field], field_schema['type']):
                logger.error(f"Field '{field}' has incorrect type in record: {record}")
                return False
    return True


def load_json_data(file_path: str) -> List[Dict[str, Any]]:
    """
    Load data from a JSON file located in the 'data' directory.
    """
    current_dir = os.path.dirname(os.path.abspath(__file__))
    full_path = os.path.join(current_dir, "data", file_path)

    try:
        with open(full_path, 'r') as file:
            return json.load(file)
    except FileNotFoundError:
        logger.error(f"File not found: {full_path}")
        raise
    except json.JSONDecodeError:
        logger.error(f"Invalid JSON format in file: {full_path}")
        raise


def seed_table(table, data: List[Dict[str, Any]], schema: Dict[str, Dict[str, Any]]) -> int:
    """
    Seed records into a DynamoDB table, returning how many were written.
    """
    # Validate the data before seeding
    if not validate_data(data, schema):
        raise ValueError(f"Data validation failed for table: {table.name}")

    for record in data:
        try:
            # Convert data to DynamoDB-compatible types
            table.put_item(Item=convert_to_dynamodb_type(record))
        except Exception as e:
            logger.error(f"Failed to seed record: {record}. Error: {str(e)}")
            raise
    logger.info(f"Successfully seeded {len(data)} records into {table.name}")
    return len(data)


def seed_courses(dynamodb):
    logger.info("Seeding courses data...")
    return seed_table(dynamodb.Table(COURSES_TABLE_NAME), load_json_data("courses.json"), COURSE_SCHEMA)


def seed_user_progress(dynamodb):
    logger.info("Seeding user course progress data...")
    return seed_table(
        dynamodb.Table(PROGRESS_TABLE_NAME),
        load_json_data("userCourseProgress.json"),
        PROGRESS_SCHEMA
    )


def seed_all():
    """
    Create the tables and seed all data into the database.
    """
    logger.info("Starting database seeding...")
    try:
        create_tables()
        dynamodb = get_dynamodb_resource()
        seed_courses(dynamodb)
        seed_user_progress(dynamodb)
        logger.info("Database seeding completed successfully!")
    except Exception as e:
        logger.error(f"Database seeding failed: {e}")
        raise


if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(level=logging.INFO)
    seed_all()
