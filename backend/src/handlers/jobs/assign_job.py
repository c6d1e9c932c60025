"""
Assign Job Handler.
Deals a job's pending tasks to suitable workers (round-robin with a
skill-match threshold) and moves the job to in_progress.
POST /company/jobs/{jobId}/assign
"""
import datetime
import boto3
from botocore.exceptions import ClientError
from boto3.dynamodb.conditions import Attr, Key
from shared.config import config
from shared.logging import logger, log_event
from shared.auth import get_user_sub, is_company
from shared.errors import NoEligibleWorkersError
from shared.models import JobStatus, Task, TaskStatus, UserRole, WorkerCandidate
from shared.assignment import RoundRobinThreshold, assign_round_robin
from shared.dynamo import contains_any, get_item, query, scan
from shared.utils import format_response, error_response, parse_body, get_path_param

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def handler(event, context):
    log_event(event)

    company_id = get_user_sub(event)
    if not company_id or not is_company(event):
        return format_response(401, {'error': 'Unauthorized. Only companies can assign jobs.'})

    job_id = get_path_param(event, 'jobId') or parse_body(event).get('jobId')
    if not job_id:
        return format_response(400, {'error': 'Job ID is required'})

    try:
        job = get_item(config.JOBS_TABLE, {'jobId': job_id})
        if not job:
            return format_response(404, {'error': 'Job not found'})

        if job.get('postedBy') != company_id:
            return format_response(403, {'error': 'You can only assign your own jobs'})

        job_skills = list(job.get('skills') or [])
        workers = load_suitable_workers(job_skills)
        tasks = load_pending_tasks(job_id)

        strategy = RoundRobinThreshold(threshold=config.SKILL_MATCH_THRESHOLD)
        try:
            result = assign_round_robin(job_skills, tasks, workers, strategy.threshold)
        except NoEligibleWorkersError as e:
            return error_response(e)

        try:
            commit_assignments(job, result)
        except ClientError as e:
            if e.response['Error']['Code'] == 'TransactionCanceledException':
                # Another assignment run touched the job or one of its tasks first
                logger.warning(f"Assignment of job {job_id} lost a race: {e}")
                return format_response(409, {
                    'error': 'Job tasks changed during assignment, please retry.'
                })
            raise

        return format_response(200, {
            'message': 'Job tasks assigned successfully',
            'jobId': job_id,
            'assignmentsCount': len(result.assignments),
            'assignments': [a.to_dict() for a in result.assignments],
        })

    except Exception as e:
        logger.error(f"Job assignment error: {e}")
        return format_response(500, {'error': 'Internal server error'})


def load_suitable_workers(job_skills):
    """Available workers having at least one of the job's skills."""
    if not job_skills:
        return []
    filter_expression = (
        Attr('role').eq(UserRole.WORKER)
        & Attr('available').eq(True)
        & contains_any('skills', job_skills)
    )
    items = scan(config.WORKERS_TABLE, filter_expression)
    return [WorkerCandidate.from_item(item) for item in items]


def load_pending_tasks(job_id):
    """Pending tasks of the job in decomposition order."""
    items = query(
        config.TASKS_TABLE,
        index_name=config.TASKS_BY_JOB_INDEX,
        key_condition=Key('jobId').eq(job_id),
        filter_expression=Attr('status').eq(TaskStatus.PENDING)
    )
    items.sort(key=lambda item: int(item.get('sequence', 0)))
    return [Task.from_item(item) for item in items]


def commit_assignments(job, result):
    """
    Write all accepted assignments and the job update in one transaction.

    Each task must still be pending and the job version must be unchanged,
    so two concurrent runs for the same job cannot both succeed.
    """
    timestamp = datetime.datetime.now(datetime.timezone.utc).isoformat()
    version = int(job.get('version', 0))

    transact_items = [
        {
            'Update': {
                'TableName': config.TASKS_TABLE,
                'Key': {'taskId': record.task_id},
                'UpdateExpression': 'SET assignedTo = :worker, #status = :assigned, startDate = :ts, updatedAt = :ts',
                'ConditionExpression': '#status = :pending',
                'ExpressionAttributeNames': {'#status': 'status'},
                'ExpressionAttributeValues': {
                    ':worker': record.worker_id,
                    ':assigned': TaskStatus.ASSIGNED,
                    ':pending': TaskStatus.PENDING,
                    ':ts': timestamp,
                }
            }
        }
        for record in result.assignments
    ]

    transact_items.append({
        'Update': {
            'TableName': config.JOBS_TABLE,
            'Key': {'jobId': job['jobId']},
            'UpdateExpression': (
                'SET #status = :in_progress, selectedWorkers = :workers, updatedAt = :ts, '
                '#version = if_not_exists(#version, :zero) + :one'
            ),
            'ConditionExpression': 'attribute_not_exists(#version) OR #version = :version',
            'ExpressionAttributeNames': {'#status': 'status', '#version': 'version'},
            'ExpressionAttributeValues': {
                ':in_progress': JobStatus.IN_PROGRESS,
                ':workers': result.selected_workers,
                ':ts': timestamp,
                ':zero': 0,
                ':one': 1,
                ':version': version,
            }
        }
    })

    dynamodb.meta.client.transact_write_items(TransactItems=transact_items)
    logger.info(f"Committed {len(result.assignments)} assignments for job {job['jobId']}")
