"""
Tests for the job posting, assignment and listing handlers.
DynamoDB access is mocked.
"""
import json
import pytest
from unittest.mock import patch
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from botocore.exceptions import ClientError
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))


def make_event(sub='company-1', groups='company', body=None, path=None, query=None):
    return {
        'requestContext': {
            'authorizer': {
                'claims': {'sub': sub, 'cognito:groups': groups, 'email': f"{sub}@example.com"}
            }
        },
        'body': json.dumps(body) if body is not None else None,
        'pathParameters': path,
        'queryStringParameters': query,
    }


def future_deadline(days=30):
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def job_body(**overrides):
    body = {
        'title': 'Recipe app',
        'description': 'A mobile app to share family recipes',
        'requirements': ['Core recipe API', 'Optional dark mode UI'],
        'budget': 1000,
        'deadline': future_deadline(),
        'skills': ['api', 'css'],
        'complexity': 'high',
    }
    body.update(overrides)
    return body


def worker_item(worker_id, skills, rating=0, completed=0, available=True, experience=None):
    return {
        'workerId': worker_id,
        'name': worker_id.title(),
        'role': 'worker',
        'skills': skills,
        'available': available,
        'rating': Decimal(str(rating)),
        'completedTasks': Decimal(completed),
        'experience': experience or [],
    }


def client_error(code):
    return ClientError({'Error': {'Code': code, 'Message': code}}, 'Operation')


class TestPostJob:
    """Tests for POST /company/jobs."""

    def test_creates_job_and_tasks(self):
        from handlers.jobs import post_job

        with patch.object(post_job, 'dynamodb') as mock_dynamodb, \
                patch.object(post_job, 'batch_write_items', return_value=True) as mock_write:
            response = post_job.handler(make_event(body=job_body()), None)

        assert response['statusCode'] == 201
        body = json.loads(response['body'])
        assert body['tasksCreated'] == 5
        assert body['job']['status'] == 'open'
        assert body['job']['postedBy'] == 'company-1'
        assert len(body['job']['taskIds']) == 5

        mock_dynamodb.Table.return_value.put_item.assert_called_once()
        table_name, items = mock_write.call_args[0]
        assert [item['sequence'] for item in items] == [0, 1, 2, 3, 4]
        assert all(item['status'] == 'pending' for item in items)
        assert all(item['jobId'] == body['job']['jobId'] for item in items)
        assert items[1]['priority'] == 'high'
        assert items[2]['priority'] == 'low'
        assert items[1]['estimatedHours'] == Decimal('12')

    def test_rejects_non_company(self):
        from handlers.jobs import post_job

        response = post_job.handler(make_event(groups='worker', body=job_body()), None)

        assert response['statusCode'] == 401

    def test_invalid_payload(self):
        from handlers.jobs import post_job

        with patch.object(post_job, 'dynamodb') as mock_dynamodb:
            response = post_job.handler(make_event(body=job_body(budget=-1, title='')), None)

        assert response['statusCode'] == 400
        body = json.loads(response['body'])
        assert body['error'] == 'Invalid input data'
        assert len(body['details']) == 2
        mock_dynamodb.Table.assert_not_called()

    def test_task_write_failure(self):
        from handlers.jobs import post_job

        with patch.object(post_job, 'dynamodb') as mock_dynamodb, \
                patch.object(post_job, 'batch_write_items', return_value=False), \
                patch.object(post_job, 'batch_delete_items', return_value=True) as mock_delete:
            response = post_job.handler(make_event(body=job_body()), None)

        assert response['statusCode'] == 500
        saved_job = mock_dynamodb.Table.return_value.put_item.call_args.kwargs['Item']
        mock_dynamodb.Table.return_value.delete_item.assert_called_once_with(Key={'jobId': saved_job['jobId']})
        table_name, keys = mock_delete.call_args[0]
        assert keys == [{'taskId': task_id} for task_id in saved_job['taskIds']]

    def test_non_object_body(self):
        from handlers.jobs import post_job

        event = make_event()
        event['body'] = '[1]'

        with patch.object(post_job, 'dynamodb') as mock_dynamodb:
            response = post_job.handler(event, None)

        assert response['statusCode'] == 400
        mock_dynamodb.Table.assert_not_called()

    def test_auto_assign_best_match(self):
        from handlers.jobs import post_job

        workers = [
            worker_item('qa', ['Testing', 'Jest']),
            worker_item('dev', ['REST', 'API', 'Backend'], experience=['a', 'b']),
        ]

        with patch.object(post_job, 'dynamodb') as mock_dynamodb, \
                patch.object(post_job, 'batch_write_items', return_value=True), \
                patch.object(post_job, 'scan', return_value=workers):
            response = post_job.handler(make_event(body=job_body(autoAssign=True)), None)

        body = json.loads(response['body'])
        by_title = {a['taskTitle']: a['workerId'] for a in body['assignments']}
        assert by_title['Recipe app - Core recipe API'] == 'dev'
        assert by_title['Recipe app - Testing & QA'] == 'qa'
        # planning and review tasks have no matching worker
        assert body['assignmentsCount'] == len(by_title)
        assert 'Recipe app - Planning & Research' not in by_title

        update_calls = mock_dynamodb.Table.return_value.update_item.call_args_list
        assert len(update_calls) == body['assignmentsCount']
        assert update_calls[0].kwargs['ConditionExpression'] == '#status = :pending'

    def test_auto_assign_skips_taken_task(self):
        from handlers.jobs import post_job

        with patch.object(post_job, 'dynamodb') as mock_dynamodb, \
                patch.object(post_job, 'batch_write_items', return_value=True), \
                patch.object(post_job, 'scan', return_value=[worker_item('qa', ['testing'])]):
            mock_dynamodb.Table.return_value.update_item.side_effect = client_error('ConditionalCheckFailedException')
            response = post_job.handler(make_event(body=job_body(autoAssign=True)), None)

        assert response['statusCode'] == 201
        assert json.loads(response['body'])['assignmentsCount'] == 0


class TestAssignJob:
    """Tests for POST /company/jobs/{jobId}/assign."""

    JOB = {
        'jobId': 'job-1',
        'postedBy': 'company-1',
        'skills': ['react', 'css'],
        'status': 'open',
        'version': Decimal(0),
    }

    def tasks(self):
        return [
            {'taskId': 't2', 'title': 'Styling', 'skills': ['css'], 'status': 'pending', 'sequence': Decimal(2)},
            {'taskId': 't1', 'title': 'Components', 'skills': ['react'], 'status': 'pending', 'sequence': Decimal(1)},
            {'taskId': 't3', 'title': 'Figma', 'skills': ['figma'], 'status': 'pending', 'sequence': Decimal(3)},
        ]

    def run(self, job=None, workers=None, tasks=None, event=None, transact_error=None):
        from handlers.jobs import assign_job

        event = event or make_event(path={'jobId': 'job-1'})
        with patch.object(assign_job, 'dynamodb') as mock_dynamodb, \
                patch.object(assign_job, 'get_item', return_value=job) as mock_get, \
                patch.object(assign_job, 'scan', return_value=workers or []), \
                patch.object(assign_job, 'query', return_value=tasks if tasks is not None else self.tasks()):
            if transact_error:
                mock_dynamodb.meta.client.transact_write_items.side_effect = transact_error
            response = assign_job.handler(event, None)
        return response, mock_dynamodb, mock_get

    def test_round_robin_assignment(self):
        workers = [
            worker_item('w-css', ['css'], rating=4),
            worker_item('w-react', ['react'], rating=5),
        ]

        response, mock_dynamodb, _ = self.run(job=self.JOB, workers=workers)

        assert response['statusCode'] == 200
        body = json.loads(response['body'])
        # t1 (react) -> w-react, t2 (css) -> w-css, t3 (figma) offered to w-react and rejected
        assert [(a['taskId'], a['workerId']) for a in body['assignments']] == [
            ('t1', 'w-react'),
            ('t2', 'w-css'),
        ]
        assert body['assignments'][0]['skillMatch'] == '100%'

        items = mock_dynamodb.meta.client.transact_write_items.call_args.kwargs['TransactItems']
        assert len(items) == 3
        job_update = items[-1]['Update']
        assert job_update['Key'] == {'jobId': 'job-1'}
        assert job_update['ExpressionAttributeValues'][':in_progress'] == 'in_progress'
        assert job_update['ExpressionAttributeValues'][':workers'] == ['w-react', 'w-css']
        assert job_update['ExpressionAttributeValues'][':version'] == 0
        assert items[0]['Update']['ConditionExpression'] == '#status = :pending'

    def test_zero_assignments_still_starts_job(self):
        workers = [worker_item('w-css', ['css'])]
        tasks = [{'taskId': 't1', 'title': 'Components', 'skills': ['react'], 'status': 'pending'}]

        response, mock_dynamodb, _ = self.run(job=self.JOB, workers=workers, tasks=tasks)

        assert response['statusCode'] == 200
        assert json.loads(response['body'])['assignmentsCount'] == 0
        items = mock_dynamodb.meta.client.transact_write_items.call_args.kwargs['TransactItems']
        assert len(items) == 1
        assert items[0]['Update']['TableName'] == assign_job_config().JOBS_TABLE

    def test_no_suitable_workers(self):
        response, mock_dynamodb, _ = self.run(job=self.JOB, workers=[])

        assert response['statusCode'] == 404
        assert json.loads(response['body'])['error'] == 'No suitable workers found for this job'
        mock_dynamodb.meta.client.transact_write_items.assert_not_called()

    def test_job_not_found(self):
        response, _, _ = self.run(job=None)

        assert response['statusCode'] == 404

    def test_other_company_job(self):
        response, _, _ = self.run(job={**self.JOB, 'postedBy': 'company-2'})

        assert response['statusCode'] == 403

    def test_job_id_from_body(self):
        event = make_event(body={'jobId': 'job-1'})

        response, _, mock_get = self.run(job=self.JOB, workers=[worker_item('w', ['react'])], event=event)

        assert response['statusCode'] == 200
        mock_get.assert_called_once_with(assign_job_config().JOBS_TABLE, {'jobId': 'job-1'})

    def test_missing_job_id(self):
        response, _, _ = self.run(event=make_event())

        assert response['statusCode'] == 400

    def test_non_object_body(self):
        response, _, mock_get = self.run(event=make_event(body=['job-1']))

        assert response['statusCode'] == 400
        mock_get.assert_not_called()

    def test_concurrent_assignment_conflict(self):
        workers = [worker_item('w-react', ['react'])]

        response, _, _ = self.run(job=self.JOB, workers=workers,
                                  transact_error=client_error('TransactionCanceledException'))

        assert response['statusCode'] == 409

    def test_unexpected_error(self):
        workers = [worker_item('w-react', ['react'])]

        response, _, _ = self.run(job=self.JOB, workers=workers,
                                  transact_error=client_error('InternalServerError'))

        assert response['statusCode'] == 500

    def test_only_companies(self):
        response, _, _ = self.run(event=make_event(groups='worker', path={'jobId': 'job-1'}))

        assert response['statusCode'] == 401


def assign_job_config():
    from handlers.jobs import assign_job
    return assign_job.config


class TestListJobs:
    """Tests for GET /jobs."""

    def test_worker_sees_assigned_and_available(self):
        from handlers.jobs import list_jobs

        assigned = [{'taskId': 'a', 'status': 'assigned', 'createdAt': '2026-01-02',
                     'budget': Decimal('100'), 'estimatedHours': Decimal('8')}]
        available = [{'taskId': 'b', 'status': 'pending', 'createdAt': '2026-01-03',
                      'budget': Decimal('50'), 'estimatedHours': Decimal('4')}]

        with patch.object(list_jobs, 'query', side_effect=[assigned, available]):
            response = list_jobs.handler(make_event(sub='worker-1', groups='worker'), None)

        body = json.loads(response['body'])
        assert response['statusCode'] == 200
        assert [t['taskId'] for t in body['tasks']] == ['b', 'a']
        assert body['tasks'][1]['progressPercentage'] == 10
        assert body['tasks'][1]['hourlyRate'] == 12.5
        assert body['tasks'][1]['efficiency'] is None
        assert body['pagination'] == {'page': 1, 'limit': 10, 'total': 2, 'pages': 1}

    def test_worker_available_filter(self):
        from handlers.jobs import list_jobs

        with patch.object(list_jobs, 'query', return_value=[]) as mock_query:
            list_jobs.handler(make_event(sub='worker-1', groups='worker',
                                         query={'status': 'available', 'skills': 'react, css'}), None)

        mock_query.assert_called_once()
        assert mock_query.call_args.kwargs['index_name'] == list_jobs.config.TASKS_BY_STATUS_INDEX

    def test_company_jobs_paginated(self):
        from handlers.jobs import list_jobs

        jobs = [{'jobId': f"job-{i}"} for i in range(5)]

        with patch.object(list_jobs, 'query', return_value=jobs):
            response = list_jobs.handler(make_event(query={'page': '2', 'limit': '2'}), None)

        body = json.loads(response['body'])
        assert [j['jobId'] for j in body['jobs']] == ['job-2', 'job-3']
        assert body['pagination'] == {'page': 2, 'limit': 2, 'total': 5, 'pages': 3}

    def test_unauthenticated(self):
        from handlers.jobs import list_jobs

        response = list_jobs.handler({'queryStringParameters': None}, None)

        assert response['statusCode'] == 401

    def test_unknown_role(self):
        from handlers.jobs import list_jobs

        response = list_jobs.handler(make_event(groups=''), None)

        assert response['statusCode'] == 400


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
