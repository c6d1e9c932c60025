"""
Configuration module for Lambda handlers.
Loads all environment variables needed by the platform.
"""
import os


class Config:
    """Centralized configuration from environment variables."""

    # AWS Region
    AWS_REGION = os.environ.get('AWS_REGION', 'us-east-1')

    # DynamoDB Tables
    JOBS_TABLE = os.environ.get('JOBS_TABLE', '')
    TASKS_TABLE = os.environ.get('TASKS_TABLE', '')
    WORKERS_TABLE = os.environ.get('WORKERS_TABLE', '')

    # Tasks table indexes
    TASKS_BY_JOB_INDEX = os.environ.get('TASKS_BY_JOB_INDEX', 'byJob')
    TASKS_BY_ASSIGNEE_INDEX = os.environ.get('TASKS_BY_ASSIGNEE_INDEX', 'byAssignee')
    TASKS_BY_STATUS_INDEX = os.environ.get('TASKS_BY_STATUS_INDEX', 'StatusIndex')

    # Jobs table indexes
    JOBS_BY_COMPANY_INDEX = os.environ.get('JOBS_BY_COMPANY_INDEX', 'byCompany')

    # Assignment Configuration
    SKILL_MATCH_THRESHOLD = float(os.environ.get('SKILL_MATCH_THRESHOLD', '0.30'))

    # A job's tasks (requirements + 3) must fit one DynamoDB transaction
    MAX_JOB_REQUIREMENTS = int(os.environ.get('MAX_JOB_REQUIREMENTS', '50'))

    # Listing
    DEFAULT_PAGE_SIZE = int(os.environ.get('DEFAULT_PAGE_SIZE', '10'))
    MAX_PAGE_SIZE = int(os.environ.get('MAX_PAGE_SIZE', '100'))


config = Config()
