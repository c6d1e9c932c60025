"""
Update Worker Stats Handler.
Triggered by DynamoDB Streams on TasksTable.
Credits the assigned worker when a task is reviewed: one more completed task
and, if the review carries a rating, a new average rating. Both feed the
worker ranking used by job assignment.
"""
import json
import boto3
from decimal import Decimal
from datetime import datetime, timezone
from shared.config import config
from shared.logging import logger
from shared.models import TaskStatus

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def handler(event, context):
    """
    Handler triggered by DynamoDB Stream on Tasks Table.
    Listens for MODIFY events where status changes to 'reviewed'.
    """
    logger.info(f"Received event: {json.dumps(event, default=str)}")

    if 'Records' not in event:
        return {'message': 'No records to process'}

    processed = 0
    for record in event['Records']:
        if record['eventName'] == 'MODIFY':
            try:
                if process_record(record):
                    processed += 1
            except Exception as e:
                # One bad record must not block the rest of the batch
                logger.error(f"Error processing record: {e}")

    return {'message': f'Processed {processed} records'}


def process_record(record) -> bool:
    """
    Process a single DynamoDB Stream record.
    Returns True if stats were updated, False otherwise.
    """
    new_image = record['dynamodb']['NewImage']
    old_image = record['dynamodb'].get('OldImage', {})

    new_status = new_image.get('status', {}).get('S')
    old_status = old_image.get('status', {}).get('S')

    # Only the transition into 'reviewed' counts
    if new_status != TaskStatus.REVIEWED or old_status == TaskStatus.REVIEWED:
        return False

    worker_id = new_image.get('assignedTo', {}).get('S')
    if not worker_id:
        logger.warning(f"Reviewed task {new_image.get('taskId', {}).get('S')} has no assignee")
        return False

    rating = None
    if 'N' in new_image.get('rating', {}):
        rating = Decimal(new_image['rating']['N'])

    update_worker_stats(worker_id, rating)
    return True


def update_worker_stats(worker_id: str, rating: Decimal = None):
    """
    Increment the worker's completed tasks and fold in a review rating.
    Uses atomic ADD so concurrent reviews do not lose updates.

    Args:
        worker_id: The worker's ID
        rating: Review rating (1-5), if the company gave one
    """
    workers_table = dynamodb.Table(config.WORKERS_TABLE)
    timestamp = datetime.now(timezone.utc).isoformat()

    if rating is not None:
        update_expr = 'ADD completedTasks :one, ratingTotal :rating, ratingCount :one SET updatedAt = :ts'
        attrs = {':one': 1, ':rating': rating, ':ts': timestamp}
    else:
        update_expr = 'ADD completedTasks :one SET updatedAt = :ts'
        attrs = {':one': 1, ':ts': timestamp}

    response = workers_table.update_item(
        Key={'workerId': worker_id},
        UpdateExpression=update_expr,
        ExpressionAttributeValues=attrs,
        ReturnValues='ALL_NEW'
    )

    updated_item = response.get('Attributes', {})
    completed = int(updated_item.get('completedTasks', 0))
    logger.info(f"Worker {worker_id} completed tasks: {completed}")

    if rating is None:
        return

    rating_count = int(updated_item.get('ratingCount', 0))
    if rating_count == 0:
        return
    average = (Decimal(str(updated_item.get('ratingTotal', 0))) / rating_count).quantize(Decimal('0.01'))

    workers_table.update_item(
        Key={'workerId': worker_id},
        UpdateExpression='SET rating = :rating, updatedAt = :ts',
        ExpressionAttributeValues={':rating': average, ':ts': timestamp}
    )
    logger.info(f"Worker {worker_id} rating now {average} over {rating_count} reviews")
