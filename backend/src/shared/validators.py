"""
Request payload validation.
Collects every field error before raising, so clients can fix a form in one go.
"""
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from shared.config import config
from shared.errors import InvalidInputError
from shared.lifecycle import WORKER_STATUSES
from shared.models import Complexity, Job, TaskStatus

TITLE_MIN, TITLE_MAX = 3, 200
DESCRIPTION_MIN, DESCRIPTION_MAX = 10, 5000
REQUIREMENT_MAX = 500
SKILL_MAX = 100
FEEDBACK_MAX = 1000
RATING_MIN, RATING_MAX = 1, 5

REVIEW_FIELDS = ('feedback', 'rating')
WORK_FIELDS = ('actualHours', 'deliverables')


def parse_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp ('Z' suffix accepted); naive values are taken as UTC."""
    parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _string_list(body: dict, name: str, max_length: int, errors: List[str]) -> List[str]:
    values = body.get(name, [])
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        errors.append(f"{name}: must be a list of strings")
        return []
    values = [v.strip() for v in values]
    if any(len(v) > max_length for v in values):
        errors.append(f"{name}: entries must be at most {max_length} characters")
    return [v for v in values if v]


def _number(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return None
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def validate_job_post(body: Dict[str, Any], now: datetime = None) -> Job:
    """
    Validate a job-posting payload.

    Args:
        body: Parsed request body
        now: Reference time for the deadline check (defaults to current UTC time)

    Returns:
        Job built from the cleaned payload

    Raises:
        InvalidInputError: listing every invalid field
    """
    now = now or datetime.now(timezone.utc)
    errors = []

    title = body.get('title')
    if not isinstance(title, str) or not TITLE_MIN <= len(title.strip()) <= TITLE_MAX:
        errors.append(f"title: must be {TITLE_MIN}-{TITLE_MAX} characters")
        title = ''

    description = body.get('description')
    if not isinstance(description, str) or not DESCRIPTION_MIN <= len(description.strip()) <= DESCRIPTION_MAX:
        errors.append(f"description: must be {DESCRIPTION_MIN}-{DESCRIPTION_MAX} characters")
        description = ''

    requirements = _string_list(body, 'requirements', REQUIREMENT_MAX, errors)
    if len(requirements) > config.MAX_JOB_REQUIREMENTS:
        errors.append(f"requirements: at most {config.MAX_JOB_REQUIREMENTS} allowed")

    skills = _string_list(body, 'skills', SKILL_MAX, errors)

    budget = _number(body.get('budget'))
    if budget is None or budget <= 0:
        errors.append('budget: must be a positive number')

    deadline = None
    raw_deadline = body.get('deadline')
    try:
        deadline = parse_datetime(raw_deadline)
        if deadline <= now:
            errors.append('deadline: must be in the future')
    except (TypeError, ValueError, AttributeError):
        errors.append('deadline: must be an ISO-8601 datetime')

    complexity = body.get('complexity') or Complexity.MEDIUM
    if complexity not in Complexity.ALL:
        errors.append(f"complexity: must be one of {', '.join(Complexity.ALL)}")

    if errors:
        raise InvalidInputError('Invalid input data', details=errors)

    return Job(
        title=title.strip(),
        description=description.strip(),
        requirements=requirements,
        budget=budget,
        skills=skills,
        complexity=complexity,
        deadline=deadline,
    )


def validate_status_update(body: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a task status change request.

    Feedback and rating belong to a review only. Actual hours and
    deliverables belong to the worker's own transitions.

    Returns:
        Cleaned dict with 'status' and any of 'feedback', 'rating',
        'actualHours', 'deliverables'
    """
    errors = []
    cleaned = {}

    status = body.get('status')
    if status not in TaskStatus.ALL:
        errors.append(f"status: must be one of {', '.join(TaskStatus.ALL)}")
    cleaned['status'] = status

    review = status == TaskStatus.REVIEWED
    work = status in WORKER_STATUSES
    for name in REVIEW_FIELDS:
        if body.get(name) is not None and not review:
            errors.append(f"{name}: only allowed when reviewing a task")
    for name in WORK_FIELDS:
        if body.get(name) is not None and not work:
            errors.append(f"{name}: only allowed when starting or completing a task")

    if review and body.get('feedback') is not None:
        feedback = body['feedback']
        if not isinstance(feedback, str) or len(feedback) > FEEDBACK_MAX:
            errors.append(f"feedback: must be at most {FEEDBACK_MAX} characters")
        else:
            cleaned['feedback'] = feedback.strip()

    if review and body.get('rating') is not None:
        rating = _number(body['rating'])
        if rating is None or not RATING_MIN <= rating <= RATING_MAX:
            errors.append(f"rating: must be between {RATING_MIN} and {RATING_MAX}")
        else:
            cleaned['rating'] = rating

    if work and body.get('actualHours') is not None:
        hours = _number(body['actualHours'])
        if hours is None or hours < 0:
            errors.append('actualHours: cannot be negative')
        else:
            cleaned['actualHours'] = hours

    if work and body.get('deliverables') is not None:
        cleaned['deliverables'] = _string_list(body, 'deliverables', REQUIREMENT_MAX, errors)

    if errors:
        raise InvalidInputError('Invalid input data', details=errors)
    return cleaned
