"""
Cognito claim helpers.
Companies post and assign jobs, workers carry out tasks.
"""
from typing import List, Optional

from shared.models import UserRole


def get_claims(event: dict) -> dict:
    """Cognito authorizer claims of an API Gateway proxy event ({} if absent)."""
    try:
        return event['requestContext']['authorizer']['claims'] or {}
    except (KeyError, TypeError):
        return {}


def get_user_sub(event: dict) -> Optional[str]:
    """
    Extract user sub (unique ID) from Cognito authorizer claims.

    Args:
        event: API Gateway Lambda proxy event

    Returns:
        User sub string or None if not authenticated
    """
    return get_claims(event).get('sub')


def get_user_name(event: dict) -> Optional[str]:
    """Display name of the caller, falling back to the email."""
    claims = get_claims(event)
    return claims.get('name') or claims.get('email')


def get_user_groups(event: dict) -> List[str]:
    groups = get_claims(event).get('cognito:groups', '')
    if isinstance(groups, str):
        return [g.strip() for g in groups.split(',') if g.strip()]
    return list(groups or [])


def is_company(event: dict) -> bool:
    return UserRole.COMPANY in get_user_groups(event)


def is_worker(event: dict) -> bool:
    return UserRole.WORKER in get_user_groups(event)
