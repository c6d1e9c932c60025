"""
Task Splitter - breaks a posted job into budgeted micro-tasks.

Every job becomes:
    planning → one task per requirement (input order) → testing → final review

The per-task budget share is derived from an estimated task count that has a
floor per complexity level, so small jobs do not spend their whole budget.
Budgets and hours are Decimals so they can be written to DynamoDB as-is.
"""
import uuid
from decimal import Decimal
from typing import Any, Dict, List

from shared.assignment import contains_either_way
from shared.errors import InvalidInputError
from shared.logging import logger
from shared.models import Complexity, Job, MicroTask, Priority, TaskStatus


# Minimum task count used for the budget share
TASK_COUNT_FLOOR = {
    Complexity.LOW: 3,
    Complexity.MEDIUM: 5,
    Complexity.HIGH: 8,
}

# Planning, testing and review tasks added around the requirements
FIXED_TASK_COUNT = 3

PLANNING_HOURS = {
    Complexity.LOW: Decimal('1'),
    Complexity.MEDIUM: Decimal('2'),
    Complexity.HIGH: Decimal('4'),
}
REQUIREMENT_BASE_HOURS = {
    Complexity.LOW: Decimal('2'),
    Complexity.MEDIUM: Decimal('4'),
    Complexity.HIGH: Decimal('8'),
}
TESTING_HOURS = {
    Complexity.LOW: Decimal('1'),
    Complexity.MEDIUM: Decimal('2'),
    Complexity.HIGH: Decimal('3'),
}
REVIEW_HOURS = Decimal('1')

# Budget shares of budget_per_task for the fixed tasks
PLANNING_BUDGET_SHARE = Decimal('0.20')
TESTING_BUDGET_SHARE = Decimal('0.15')
REVIEW_BUDGET_SHARE = Decimal('0.10')

# Effort scaling by requirement keywords
COMPLEX_KEYWORDS = ['api', 'database', 'integration', 'algorithm', 'ai', 'ml']
SIMPLE_KEYWORDS = ['ui', 'styling', 'layout', 'text', 'image']
COMPLEX_MULTIPLIER = Decimal('1.5')
SIMPLE_MULTIPLIER = Decimal('0.7')

HIGH_PRIORITY_KEYWORDS = ['core', 'critical', 'essential', 'main', 'primary']
LOW_PRIORITY_KEYWORDS = ['optional', 'nice-to-have', 'extra', 'bonus']

SKILL_MAPPING = {
    'frontend': ['react', 'html', 'css', 'javascript'],
    'backend': ['node.js', 'api', 'database'],
    'ui': ['design', 'css', 'figma'],
    'database': ['mongodb', 'sql', 'database'],
    'api': ['rest', 'api', 'backend'],
    'testing': ['testing', 'jest', 'quality-assurance'],
    'mobile': ['react-native', 'mobile', 'ios', 'android'],
}

# Bounds of the persisted estimatedHours attribute
MIN_TASK_HOURS = Decimal('0.5')
MAX_TASK_HOURS = Decimal('100')


def split_job(job: Job) -> List[MicroTask]:
    """
    Split a job into an ordered list of micro-tasks.

    Args:
        job: The job to decompose. Budget must be positive and complexity
             one of low/medium/high.

    Returns:
        [planning, requirement_1 .. requirement_n, testing, review]

    Raises:
        InvalidInputError: if the budget or complexity is invalid
    """
    budget = _check_job(job)

    budget_per_task = budget / estimate_task_count(job)
    tasks = []

    tasks.append(MicroTask(
        title=f"{job.title} - Planning & Research",
        description=f"Initial research and planning for: {job.description}",
        estimated_hours=PLANNING_HOURS[job.complexity],
        budget=budget_per_task * PLANNING_BUDGET_SHARE,
        skills=['research', 'planning'],
        priority=Priority.HIGH,
    ))

    for requirement in job.requirements:
        tasks.append(MicroTask(
            title=f"{job.title} - {requirement}",
            description=f"Implementation of: {requirement}",
            estimated_hours=estimate_hours(requirement, job.complexity),
            budget=budget_per_task,
            skills=extract_skills(requirement, job.skills),
            priority=determine_priority(requirement),
        ))

    tasks.append(MicroTask(
        title=f"{job.title} - Testing & QA",
        description=f"Quality assurance and testing for: {job.description}",
        estimated_hours=TESTING_HOURS[job.complexity],
        budget=budget_per_task * TESTING_BUDGET_SHARE,
        skills=['testing', 'quality-assurance'],
        priority=Priority.MEDIUM,
    ))

    tasks.append(MicroTask(
        title=f"{job.title} - Final Review",
        description=f"Final review and delivery for: {job.description}",
        estimated_hours=REVIEW_HOURS,
        budget=budget_per_task * REVIEW_BUDGET_SHARE,
        skills=['review', 'documentation'],
        priority=Priority.MEDIUM,
    ))

    logger.debug(f"Split job '{job.title}' into {len(tasks)} tasks "
                 f"(budget per task {budget_per_task:.2f})")
    return tasks


def _check_job(job: Job) -> Decimal:
    """Fail fast on a job that would produce nonsensical budgets."""
    errors = []
    budget = None
    if job.complexity not in Complexity.ALL:
        errors.append(f"complexity: must be one of {', '.join(Complexity.ALL)}")
    try:
        budget = Decimal(str(job.budget))
        if not budget.is_finite() or budget <= 0:
            errors.append('budget: must be positive')
    except ArithmeticError:
        errors.append('budget: must be a number')
    if errors:
        raise InvalidInputError('Invalid job', details=errors)
    return budget


def estimate_task_count(job: Job) -> int:
    """Number of tasks the budget is divided by (never below the complexity floor)."""
    base_count = len(job.requirements) + FIXED_TASK_COUNT
    return max(base_count, TASK_COUNT_FLOOR[job.complexity])


def estimate_hours(requirement: str, complexity: str) -> Decimal:
    """Estimate effort for one requirement from its wording."""
    base_hours = REQUIREMENT_BASE_HOURS[complexity]
    req_lower = requirement.lower()

    if any(keyword in req_lower for keyword in COMPLEX_KEYWORDS):
        hours = base_hours * COMPLEX_MULTIPLIER
    elif any(keyword in req_lower for keyword in SIMPLE_KEYWORDS):
        hours = base_hours * SIMPLE_MULTIPLIER
    else:
        hours = base_hours

    return min(max(hours, MIN_TASK_HOURS), MAX_TASK_HOURS)


def extract_skills(requirement: str, job_skills: List[str]) -> List[str]:
    """
    Collect the skills a requirement calls for.

    Skills come from the keyword table plus any job skill that matches the
    requirement text or a skill produced by the table. A match is
    case-insensitive containment in either direction, so the job skill
    "React" follows the mapped "react" and "REST API" follows "rest".
    """
    req_lower = requirement.lower()
    skills = []

    for keyword, related_skills in SKILL_MAPPING.items():
        if keyword in req_lower:
            skills.extend(related_skills)

    relevant_job_skills = [
        skill for skill in job_skills
        if skill.strip() and (
            contains_either_way(skill, requirement)
            or any(contains_either_way(skill, mapped) for mapped in skills)
        )
    ]

    # dict.fromkeys keeps first-seen order
    return list(dict.fromkeys(skills + relevant_job_skills))


def determine_priority(requirement: str) -> str:
    req_lower = requirement.lower()

    if any(keyword in req_lower for keyword in HIGH_PRIORITY_KEYWORDS):
        return Priority.HIGH
    if any(keyword in req_lower for keyword in LOW_PRIORITY_KEYWORDS):
        return Priority.LOW
    return Priority.MEDIUM


def build_task_item(task: MicroTask, job_item: Dict[str, Any], timestamp: str, sequence: int = 0) -> Dict[str, Any]:
    """
    Build the Tasks table item for a micro-task of a persisted job.

    New tasks start pending and unassigned, inherit the job deadline and have
    no deliverables or dependencies yet. sequence is the task's position in
    the decomposition and keeps the job's tasks ordered when read back.
    """
    return {
        'taskId': str(uuid.uuid4()),
        'jobId': job_item['jobId'],
        'companyId': job_item.get('postedBy'),
        'sequence': sequence,
        'title': task.title,
        'description': task.description,
        'status': TaskStatus.PENDING,
        'estimatedHours': task.estimated_hours,
        'budget': task.budget.quantize(Decimal('0.01')),
        'skills': task.skills,
        'priority': task.priority,
        'deadline': job_item.get('deadline'),
        'deliverables': [],
        'dependencies': [],
        'createdAt': timestamp,
        'updatedAt': timestamp,
    }
