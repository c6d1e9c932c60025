"""
DynamoDB helpers over the boto3 resource layer.
Reads return [] or None on failure; writes report failure to the caller.
"""
import boto3
from botocore.exceptions import ClientError
from decimal import Decimal
from typing import List, Dict, Any, Optional
from boto3.dynamodb.conditions import Attr
from shared.config import config
from shared.logging import logger

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def to_dynamo(value: Any) -> Any:
    """
    Convert floats (recursively) to Decimal, which is the only number type
    the DynamoDB resource layer accepts.
    """
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_dynamo(v) for v in value]
    return value


def batch_write_items(table_name: str, items: List[Dict[str, Any]]) -> bool:
    """
    Write multiple items to DynamoDB using batch_write_item.
    Handles batching (max 25 items per batch) automatically.

    Args:
        table_name: Name of the DynamoDB table
        items: List of items to write

    Returns:
        True if all items written successfully, False otherwise
    """
    try:
        table = dynamodb.Table(table_name)

        with table.batch_writer() as batch:
            for item in items:
                batch.put_item(Item=to_dynamo(item))

        logger.info(f"Successfully wrote {len(items)} items to {table_name}")
        return True

    except Exception as e:
        logger.error(f"Error batch writing to {table_name}: {e}")
        return False


def batch_delete_items(table_name: str, keys: List[Dict[str, Any]]) -> bool:
    """
    Delete items by key in batches. Deleting a missing key is not an error.

    Returns:
        True if all deletes succeeded, False otherwise
    """
    try:
        table = dynamodb.Table(table_name)

        with table.batch_writer() as batch:
            for key in keys:
                batch.delete_item(Key=key)

        logger.info(f"Deleted {len(keys)} items from {table_name}")
        return True

    except Exception as e:
        logger.error(f"Error batch deleting from {table_name}: {e}")
        return False


def _read_all(operation, params: Dict[str, Any], limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Run a query or scan page by page until LastEvaluatedKey runs out (or limit is reached)."""
    items = []
    while True:
        response = operation(**params)
        items.extend(response.get('Items', []))
        last_key = response.get('LastEvaluatedKey')
        if not last_key or (limit and len(items) >= limit):
            break
        params['ExclusiveStartKey'] = last_key
    return items[:limit] if limit else items


def query(
    table_name: str,
    index_name: Optional[str] = None,
    key_condition: Optional[Any] = None,
    filter_expression: Optional[Any] = None,
    limit: Optional[int] = None,
    scan_forward: bool = True
) -> List[Dict[str, Any]]:
    """
    Query a table or one of its GSIs.

    Args:
        table_name: Name of the DynamoDB table
        index_name: Optional GSI name
        key_condition: Key condition expression
        filter_expression: Optional filter expression
        limit: Max items to return
        scan_forward: True for ascending, False for descending

    Returns:
        List of items matching the query
    """
    params = {'ScanIndexForward': scan_forward}
    if index_name:
        params['IndexName'] = index_name
    if key_condition is not None:
        params['KeyConditionExpression'] = key_condition
    if filter_expression is not None:
        params['FilterExpression'] = filter_expression

    try:
        return _read_all(dynamodb.Table(table_name).query, params, limit)
    except Exception as e:
        logger.error(f"Error querying {table_name}: {e}")
        return []


def scan(table_name: str, filter_expression: Optional[Any] = None) -> List[Dict[str, Any]]:
    """Scan a whole table, optionally filtered."""
    params = {}
    if filter_expression is not None:
        params['FilterExpression'] = filter_expression

    try:
        return _read_all(dynamodb.Table(table_name).scan, params)
    except Exception as e:
        logger.error(f"Error scanning {table_name}: {e}")
        return []


def get_item(table_name: str, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Get a single item from DynamoDB."""
    try:
        table = dynamodb.Table(table_name)
        response = table.get_item(Key=key)
        return response.get('Item')
    except Exception as e:
        logger.error(f"Error getting item from {table_name}: {e}")
        return None


def update_item(
    table_name: str,
    key: Dict[str, Any],
    update_expression: str,
    expression_values: Dict[str, Any],
    expression_names: Optional[Dict[str, str]] = None,
    condition_expression: Optional[str] = None
) -> Optional[Dict[str, Any]]:
    """
    Update an item in DynamoDB and return its new attributes.

    Conditional check failures propagate so callers can report a conflict;
    any other error is logged and None is returned.
    """
    table = dynamodb.Table(table_name)

    params = {
        'Key': key,
        'UpdateExpression': update_expression,
        'ExpressionAttributeValues': to_dynamo(expression_values),
        'ReturnValues': 'ALL_NEW'
    }

    if expression_names:
        params['ExpressionAttributeNames'] = expression_names
    if condition_expression:
        params['ConditionExpression'] = condition_expression

    try:
        response = table.update_item(**params)
        return response.get('Attributes', {})
    except ClientError as e:
        if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
            raise
        logger.error(f"Error updating item in {table_name}: {e}")
        return None
    except Exception as e:
        logger.error(f"Error updating item in {table_name}: {e}")
        return None


def contains_any(attribute: str, values: List[str]) -> Optional[Any]:
    """Filter condition matching items whose list attribute holds any of values."""
    condition = None
    for value in values:
        clause = Attr(attribute).contains(value)
        condition = clause if condition is None else condition | clause
    return condition
