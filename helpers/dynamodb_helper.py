import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from botocore.exceptions import (
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from helpers.progress_errors import (
    PersistenceUnavailableError,
    ProgressConflictError,
)

logger = logging.getLogger(__name__)

# Error codes worth retrying at the request level once botocore has given up
UNAVAILABLE_ERROR_CODES = {
    'ProvisionedThroughputExceededException',
    'ThrottlingException',
    'RequestLimitExceeded',
    'InternalServerError',
    'ServiceUnavailable',
    'ResourceNotFoundException',
}

UNAVAILABLE_EXCEPTIONS = (ConnectTimeoutError, ReadTimeoutError, EndpointConnectionError)


def convert_to_dynamodb_type(value: Any) -> Any:
    """
    Convert various data types to DynamoDB-compatible types.
    """
    if isinstance(value, bool):
        return value  # Handle booleans first to prevent conversion to Decimal
    elif isinstance(value, (int, float)):
        try:
            return Decimal(str(value))
        except InvalidOperation:
            logger.error(f"Failed to convert numeric value: {value}")
            raise
    elif isinstance(value, dict):
        return {k: convert_to_dynamodb_type(v) for k, v in value.items() if v is not None}
    elif isinstance(value, list):
        return [convert_to_dynamodb_type(item) for item in value]
    return value


def convert_from_dynamodb_type(value: Any) -> Any:
    """
    Convert boto3's Decimal numbers back to int or float.
    """
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    elif isinstance(value, dict):
        return {k: convert_from_dynamodb_type(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [convert_from_dynamodb_type(item) for item in value]
    return value


def error_code(error: ClientError) -> str:
    return error.response.get('Error', {}).get('Code', '')


def raise_store_error(error: Exception, action: str):
    """
    Re-raise a botocore failure as a progress error.

    Failures outside the taxonomy are re-raised untouched.
    """
    if isinstance(error, UNAVAILABLE_EXCEPTIONS):
        logger.error(f"DynamoDB unreachable while trying to {action}: {str(error)}")
        raise PersistenceUnavailableError(f"Store unavailable while trying to {action}") from error
    if isinstance(error, ClientError):
        code = error_code(error)
        if code == 'ConditionalCheckFailedException':
            logger.warning(f"Conditional write rejected while trying to {action}")
            raise ProgressConflictError(f"Concurrent update detected while trying to {action}") from error
        if code in UNAVAILABLE_ERROR_CODES:
            logger.error(f"DynamoDB error {code} while trying to {action}: {str(error)}")
            raise PersistenceUnavailableError(f"Store unavailable while trying to {action}: {code}") from error
    raise error
