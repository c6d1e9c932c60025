"""
Common utility functions for Lambda handlers.
"""
import json
import math
from decimal import Decimal
from typing import Any, Dict, List, Sequence, Tuple

from shared.errors import MicroGigError


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal types from DynamoDB."""

    def default(self, o):
        if isinstance(o, Decimal):
            # Convert to int if it's a whole number, otherwise float
            if o % 1 == 0:
                return int(o)
            return float(o)
        return super().default(o)


def format_response(
    status_code: int,
    body: Any,
    headers: Dict[str, str] = None
) -> Dict[str, Any]:
    """
    Format a standard API Gateway response with CORS headers.

    Args:
        status_code: HTTP status code
        body: Response body (will be JSON serialized)
        headers: Additional headers to include

    Returns:
        API Gateway response dict
    """
    default_headers = {
        'Access-Control-Allow-Origin': '*',
        'Access-Control-Allow-Credentials': True,
        'Content-Type': 'application/json'
    }

    if headers:
        default_headers.update(headers)

    return {
        'statusCode': status_code,
        'headers': default_headers,
        'body': json.dumps(body, cls=DecimalEncoder)
    }


def error_response(error: MicroGigError) -> Dict[str, Any]:
    """API Gateway response for a platform error."""
    return format_response(error.status_code, error.to_body())


def parse_body(event: dict) -> dict:
    """
    Safely parse JSON body from API Gateway event.

    Args:
        event: API Gateway Lambda proxy event

    Returns:
        Parsed body dict, or empty dict if invalid or not a JSON object
    """
    try:
        body = event.get('body') or '{}'
        if isinstance(body, str):
            body = json.loads(body, parse_float=Decimal)
    except (json.JSONDecodeError, TypeError):
        return {}
    return body if isinstance(body, dict) else {}


def get_path_param(event: dict, param_name: str) -> str:
    """Extract path parameter from event."""
    try:
        return event['pathParameters'][param_name]
    except (KeyError, TypeError):
        return None


def get_query_param(event: dict, param_name: str, default: str = None) -> str:
    """Extract query string parameter from event."""
    try:
        params = event.get('queryStringParameters') or {}
        return params.get(param_name, default)
    except (KeyError, TypeError):
        return default


def get_int_query_param(event: dict, param_name: str, default: int, minimum: int = 1, maximum: int = None) -> int:
    """Integer query parameter clamped to [minimum, maximum]; bad values fall back to default."""
    try:
        value = int(get_query_param(event, param_name, default))
    except (TypeError, ValueError):
        value = default
    value = max(value, minimum)
    if maximum is not None:
        value = min(value, maximum)
    return value


def paginate(items: Sequence[Any], page: int, limit: int) -> Tuple[List[Any], Dict[str, int]]:
    """
    Slice one page out of items.

    Returns:
        tuple: (page_items, pagination) where pagination is
               {'page', 'limit', 'total', 'pages'}
    """
    total = len(items)
    start = (page - 1) * limit
    return list(items[start:start + limit]), {
        'page': page,
        'limit': limit,
        'total': total,
        'pages': math.ceil(total / limit) if limit else 0,
    }
