"""
Update Task Status Handler.
Moves a task along its lifecycle after assignment:
    assigned → in_progress → completed   (by the assigned worker)
    completed → reviewed                 (by the company that posted the job)
POST /tasks/{taskId}/status
"""
import datetime
from botocore.exceptions import ClientError
from shared.config import config
from shared.logging import logger, log_event
from shared.auth import get_user_sub, is_company, is_worker
from shared.errors import InvalidInputError, InvalidTransitionError
from shared.models import TaskStatus
from shared.lifecycle import check_transition, progress_percentage, WORKER_STATUSES, COMPANY_STATUSES
from shared.dynamo import get_item, update_item
from shared.utils import format_response, error_response, parse_body, get_path_param
from shared.validators import validate_status_update


def handler(event, context):
    log_event(event)

    user_id = get_user_sub(event)
    if not user_id:
        return format_response(401, {'error': 'Unauthorized'})

    task_id = get_path_param(event, 'taskId')
    if not task_id:
        return format_response(400, {'error': 'Task ID is required'})

    try:
        update = validate_status_update(parse_body(event))
    except InvalidInputError as e:
        return error_response(e)

    try:
        task = get_item(config.TASKS_TABLE, {'taskId': task_id})
        if not task:
            return format_response(404, {'error': 'Task not found'})

        new_status = update['status']
        if not is_allowed(event, user_id, task, new_status):
            return format_response(403, {'error': 'You cannot change this task'})

        check_transition(task.get('status'), new_status)

        updated = apply_status(task, update)
        if updated is None:
            return format_response(500, {'error': 'Failed to update task'})

        return format_response(200, {
            'message': f"Task moved to {new_status}",
            'task': {**updated, 'progressPercentage': progress_percentage(new_status)},
        })

    except InvalidTransitionError as e:
        return error_response(e)
    except ClientError as e:
        if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
            return format_response(409, {'error': 'Task status changed, please reload.'})
        logger.error(f"Error updating task {task_id}: {e}")
        return format_response(500, {'error': 'Internal server error'})
    except Exception as e:
        logger.error(f"Error updating task {task_id}: {e}")
        return format_response(500, {'error': 'Internal server error'})


def is_allowed(event, user_id, task, new_status):
    """Workers drive their own tasks; companies review tasks of their jobs."""
    if new_status in WORKER_STATUSES:
        return is_worker(event) and task.get('assignedTo') == user_id
    if new_status in COMPANY_STATUSES:
        return is_company(event) and task.get('companyId') == user_id
    # pending → assigned belongs to the assignment endpoints
    return False


def apply_status(task, update):
    """
    Write the new status with its timestamps and review fields.
    The update is conditional on the status read, so concurrent changes conflict.
    """
    timestamp = datetime.datetime.now(datetime.timezone.utc).isoformat()
    new_status = update['status']

    set_parts = ['#status = :new_status', 'updatedAt = :ts']
    values = {
        ':new_status': new_status,
        ':old_status': task.get('status'),
        ':ts': timestamp,
    }

    if new_status == TaskStatus.COMPLETED and not task.get('completedDate'):
        set_parts.append('completedDate = :ts')

    for field in ('feedback', 'rating', 'actualHours', 'deliverables'):
        if field in update:
            set_parts.append(f"{field} = :{field}")
            values[f":{field}"] = update[field]

    updated = update_item(
        config.TASKS_TABLE,
        {'taskId': task['taskId']},
        'SET ' + ', '.join(set_parts),
        values,
        expression_names={'#status': 'status'},
        condition_expression='#status = :old_status'
    )
    if updated is not None:
        logger.info(f"Task {task['taskId']}: {task.get('status')} -> {new_status}")
    return updated
