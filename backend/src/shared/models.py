"""
Data models and status constants for the micro-gig marketplace.
Based on the task lifecycle: pending → assigned → in_progress → completed → reviewed
"""
import math
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional


class TaskStatus:
    """Task lifecycle statuses."""
    PENDING = 'pending'
    ASSIGNED = 'assigned'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    REVIEWED = 'reviewed'

    ALL = (PENDING, ASSIGNED, IN_PROGRESS, COMPLETED, REVIEWED)


class JobStatus:
    """Job statuses."""
    OPEN = 'open'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'

    ALL = (OPEN, IN_PROGRESS, COMPLETED, CANCELLED)


class Complexity:
    """Job complexity levels."""
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'

    ALL = (LOW, MEDIUM, HIGH)


class Priority:
    """Task priorities."""
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'


class UserRole:
    """User roles (also the Cognito group names)."""
    WORKER = 'worker'
    COMPANY = 'company'
    ADMIN = 'admin'


@dataclass
class Job:
    """A company-posted unit of work, input to decomposition."""
    title: str
    description: str
    requirements: List[str]
    budget: Decimal
    skills: List[str]
    complexity: str = Complexity.MEDIUM
    deadline: Optional[datetime] = None
    job_id: Optional[str] = None

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> 'Job':
        """Build a Job from a DynamoDB item."""
        deadline = item.get('deadline')
        if isinstance(deadline, str):
            deadline = datetime.fromisoformat(deadline)
        return cls(
            title=item['title'],
            description=item.get('description', ''),
            requirements=list(item.get('requirements') or []),
            budget=Decimal(str(item['budget'])),
            skills=list(item.get('skills') or []),
            complexity=item.get('complexity', Complexity.MEDIUM),
            deadline=deadline,
            job_id=item.get('jobId'),
        )


@dataclass
class MicroTask:
    """A budgeted, skill-tagged unit of work derived from a Job."""
    title: str
    description: str
    estimated_hours: Decimal
    budget: Decimal
    skills: List[str]
    priority: str


@dataclass
class Task:
    """A persisted MicroTask as seen by the assignment strategies."""
    task_id: str
    title: str
    skills: List[str]
    status: str = TaskStatus.PENDING
    assigned_to: Optional[str] = None

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> 'Task':
        return cls(
            task_id=item['taskId'],
            title=item.get('title', ''),
            skills=list(item.get('skills') or []),
            status=item.get('status', TaskStatus.PENDING),
            assigned_to=item.get('assignedTo'),
        )


@dataclass
class WorkerCandidate:
    """Read-only view of a worker profile used for matching."""
    worker_id: str
    name: str = ''
    skills: List[str] = field(default_factory=list)
    available: bool = True
    rating: float = 0.0
    completed_tasks: int = 0
    experience_count: int = 0
    role: str = UserRole.WORKER

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> 'WorkerCandidate':
        """Build a candidate from a Workers table item (numbers arrive as Decimal)."""
        return cls(
            worker_id=item['workerId'],
            name=item.get('name', ''),
            skills=list(item.get('skills') or []),
            available=bool(item.get('available', False)),
            rating=float(item.get('rating', 0) or 0),
            completed_tasks=int(item.get('completedTasks', 0) or 0),
            experience_count=len(item.get('experience') or []),
            role=item.get('role', UserRole.WORKER),
        )


@dataclass
class AssignmentRecord:
    """A task→worker match emitted by an assignment strategy."""
    task_id: str
    worker_id: str
    skill_match: float
    task_title: str = ''
    worker_name: str = ''

    @property
    def skill_match_pct(self) -> str:
        # rounds half up
        return f"{math.floor(self.skill_match * 100 + 0.5)}%"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'taskId': self.task_id,
            'taskTitle': self.task_title,
            'workerId': self.worker_id,
            'workerName': self.worker_name,
            'skillMatch': self.skill_match_pct,
        }
