"""
Post Job Handler.
Validates a job posting, splits it into micro-tasks and stores both.
With autoAssign=true, each task is offered to its best scoring worker.
POST /company/jobs
"""
import uuid
import datetime
import boto3
from botocore.exceptions import ClientError
from boto3.dynamodb.conditions import Attr
from shared.config import config
from shared.logging import logger, log_event
from shared.auth import get_user_sub, get_user_name, is_company
from shared.errors import InvalidInputError
from shared.models import JobStatus, Task, TaskStatus, UserRole, WorkerCandidate
from shared.task_splitter import split_job, build_task_item
from shared.assignment import BestMatchScored, assign_tasks
from shared.dynamo import batch_delete_items, batch_write_items, scan, to_dynamo
from shared.utils import format_response, error_response, parse_body
from shared.validators import validate_job_post

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def handler(event, context):
    log_event(event)

    company_id = get_user_sub(event)
    if not company_id or not is_company(event):
        return format_response(401, {'error': 'Unauthorized. Only companies can post jobs.'})

    body = parse_body(event)

    try:
        job = validate_job_post(body)
        micro_tasks = split_job(job)
    except InvalidInputError as e:
        return error_response(e)

    timestamp = datetime.datetime.now(datetime.timezone.utc).isoformat()
    job_item = {
        'jobId': str(uuid.uuid4()),
        'title': job.title,
        'description': job.description,
        'requirements': job.requirements,
        'budget': job.budget,
        'deadline': job.deadline.isoformat(),
        'skills': job.skills,
        'complexity': job.complexity,
        'status': JobStatus.OPEN,
        'postedBy': company_id,
        'companyName': get_user_name(event),
        'applicants': [],
        'selectedWorkers': [],
        'version': 0,
        'createdAt': timestamp,
        'updatedAt': timestamp,
    }

    task_items = [
        build_task_item(task, job_item, timestamp, sequence=i)
        for i, task in enumerate(micro_tasks)
    ]
    job_item['taskIds'] = [item['taskId'] for item in task_items]

    try:
        dynamodb.Table(config.JOBS_TABLE).put_item(Item=to_dynamo(job_item))
    except ClientError as e:
        logger.error(f"Error saving job: {e}")
        return format_response(500, {'error': 'Failed to save job'})

    if not batch_write_items(config.TASKS_TABLE, task_items):
        discard_job(job_item)
        return format_response(500, {'error': 'Failed to save tasks'})

    logger.info(f"Job {job_item['jobId']} posted with {len(task_items)} tasks")

    response_body = {
        'message': 'Job posted and split into micro-tasks successfully',
        'job': job_item,
        'tasksCreated': len(task_items),
    }

    if body.get('autoAssign'):
        # The job is already stored; an assignment failure is reported, not fatal
        try:
            assignments = auto_assign(task_items)
            response_body['assignmentsCount'] = len(assignments)
            response_body['assignments'] = [a.to_dict() for a in assignments]
        except ClientError as e:
            logger.error(f"Auto-assignment failed for job {job_item['jobId']}: {e}")
            response_body['autoAssignError'] = 'Tasks could not be auto-assigned'

    return format_response(201, response_body)


def load_worker_candidates():
    """All worker profiles, regardless of availability (scored, not filtered)."""
    items = scan(config.WORKERS_TABLE, Attr('role').eq(UserRole.WORKER))
    return [WorkerCandidate.from_item(item) for item in items]


def auto_assign(task_items):
    """
    Give every new task to its best scoring worker.
    A task whose conditional update fails (already taken) is left as is.

    Returns:
        List of AssignmentRecord that were committed
    """
    workers = load_worker_candidates()
    tasks = [Task.from_item(item) for item in task_items]
    records = assign_tasks(BestMatchScored(), tasks, workers)

    tasks_table = dynamodb.Table(config.TASKS_TABLE)
    now = datetime.datetime.now(datetime.timezone.utc).isoformat()
    committed = []

    for record in records:
        try:
            tasks_table.update_item(
                Key={'taskId': record.task_id},
                UpdateExpression='SET assignedTo = :worker, #status = :assigned, startDate = :ts, updatedAt = :ts',
                ConditionExpression='#status = :pending',
                ExpressionAttributeNames={'#status': 'status'},
                ExpressionAttributeValues={
                    ':worker': record.worker_id,
                    ':assigned': TaskStatus.ASSIGNED,
                    ':pending': TaskStatus.PENDING,
                    ':ts': now,
                }
            )
            committed.append(record)
        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                logger.warning(f"Task {record.task_id} no longer pending, skipping auto-assignment")
            else:
                raise

    logger.info(f"Auto-assigned {len(committed)} of {len(task_items)} tasks")
    return committed


def discard_job(job_item):
    """
    Remove a job whose tasks could not be stored, together with any of its
    tasks the failed batch did write.
    """
    try:
        dynamodb.Table(config.JOBS_TABLE).delete_item(Key={'jobId': job_item['jobId']})
    except ClientError as e:
        logger.error(f"Could not remove job {job_item['jobId']} after task write failure: {e}")

    task_keys = [{'taskId': task_id} for task_id in job_item['taskIds']]
    if not batch_delete_items(config.TASKS_TABLE, task_keys):
        logger.error(f"Could not remove tasks of job {job_item['jobId']}")
