"""
Logging setup shared by all handlers.
"""
import logging
import json
import os

logger = logging.getLogger('microgig')
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())

# Lambda reuses the module between invocations
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    logger.addHandler(handler)


def log_event(event: dict) -> None:
    """Log the route and caller of an API Gateway event. Bodies and headers are never logged."""
    try:
        claims = (event.get('requestContext') or {}).get('authorizer', {}).get('claims') or {}
        summary = {
            'method': event.get('httpMethod'),
            'path': event.get('path'),
            'pathParameters': event.get('pathParameters'),
            'queryStringParameters': event.get('queryStringParameters'),
            'user': claims.get('sub'),
            'groups': claims.get('cognito:groups'),
        }
        logger.info(f"Request: {json.dumps(summary, default=str)}")
    except Exception as e:
        logger.warning(f"Could not log event: {e}")
