"""
List Jobs Handler.
Workers get tasks (assigned to them and/or still available), companies get
their posted jobs. Results are newest first and paginated with page/limit.
GET /jobs?page=1&limit=10&status=...&skills=a,b
"""
from boto3.dynamodb.conditions import Attr, Key
from shared.config import config
from shared.logging import logger, log_event
from shared.auth import get_user_sub, is_company, is_worker
from shared.models import TaskStatus
from shared.lifecycle import efficiency, hourly_rate, progress_percentage
from shared.dynamo import contains_any, query
from shared.utils import format_response, get_query_param, get_int_query_param, paginate


def handler(event, context):
    log_event(event)

    user_id = get_user_sub(event)
    if not user_id:
        return format_response(401, {'error': 'Unauthorized'})

    page = get_int_query_param(event, 'page', 1)
    limit = get_int_query_param(event, 'limit', config.DEFAULT_PAGE_SIZE, maximum=config.MAX_PAGE_SIZE)
    status = get_query_param(event, 'status')
    skills_param = get_query_param(event, 'skills') or ''
    skills = [s.strip() for s in skills_param.split(',') if s.strip()]

    try:
        if is_worker(event):
            tasks = list_worker_tasks(user_id, status, skills)
            page_items, pagination = paginate(tasks, page, limit)
            return format_response(200, {
                'tasks': [with_progress(task) for task in page_items],
                'pagination': pagination,
            })

        if is_company(event):
            jobs = list_company_jobs(user_id, status)
            page_items, pagination = paginate(jobs, page, limit)
            return format_response(200, {'jobs': page_items, 'pagination': pagination})

        return format_response(400, {'error': 'Invalid user role'})

    except Exception as e:
        logger.error(f"Job listing error: {e}")
        return format_response(500, {'error': 'Internal server error'})


def list_worker_tasks(worker_id, status=None, skills=None):
    """
    Tasks visible to a worker.

    status='assigned': the worker's assigned and in-progress tasks
    status='available': unassigned pending tasks, optionally having one of skills
    otherwise: both of the above
    """
    if status == 'assigned':
        tasks = _assigned_tasks(worker_id)
    elif status == 'available':
        tasks = _available_tasks(skills)
    else:
        tasks = query(
            config.TASKS_TABLE,
            index_name=config.TASKS_BY_ASSIGNEE_INDEX,
            key_condition=Key('assignedTo').eq(worker_id)
        ) + _available_tasks()

    tasks.sort(key=lambda t: t.get('createdAt', ''), reverse=True)
    return tasks


def _assigned_tasks(worker_id):
    return query(
        config.TASKS_TABLE,
        index_name=config.TASKS_BY_ASSIGNEE_INDEX,
        key_condition=Key('assignedTo').eq(worker_id),
        filter_expression=Attr('status').is_in([TaskStatus.ASSIGNED, TaskStatus.IN_PROGRESS])
    )


def _available_tasks(skills=None):
    filter_expression = Attr('assignedTo').not_exists()
    if skills:
        filter_expression = filter_expression & contains_any('skills', skills)

    return query(
        config.TASKS_TABLE,
        index_name=config.TASKS_BY_STATUS_INDEX,
        key_condition=Key('status').eq(TaskStatus.PENDING),
        filter_expression=filter_expression
    )


def list_company_jobs(company_id, status=None):
    """Jobs posted by the company, newest first."""
    filter_expression = Attr('status').eq(status) if status else None
    return query(
        config.JOBS_TABLE,
        index_name=config.JOBS_BY_COMPANY_INDEX,
        key_condition=Key('postedBy').eq(company_id),
        filter_expression=filter_expression,
        scan_forward=False
    )


def with_progress(task):
    """Task item plus its derived progress, hourly rate and efficiency."""
    return {
        **task,
        'progressPercentage': progress_percentage(task.get('status')),
        'hourlyRate': hourly_rate(task.get('budget', 0), task.get('estimatedHours')),
        'efficiency': efficiency(task.get('estimatedHours'), task.get('actualHours')),
    }
