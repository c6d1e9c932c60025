"""
Worker assignment strategies.

Two strategies are available and the caller picks one explicitly:

- RoundRobinThreshold: job-level assignment triggered by a company. Workers
  sharing at least one job skill are ranked by rating and completed tasks,
  then dealt to the pending tasks in turn. A match is only committed when the
  exact-tag skill overlap reaches the threshold.
- BestMatchScored: per-task best candidate using fuzzy (substring) skill
  matching plus availability and experience bonuses. No threshold.

Both are pure functions over their inputs; persistence is the caller's job.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from shared.errors import NoEligibleWorkersError
from shared.logging import logger
from shared.models import (
    AssignmentRecord,
    Task,
    TaskStatus,
    UserRole,
    WorkerCandidate,
)

DEFAULT_SKILL_MATCH_THRESHOLD = 0.30


@dataclass(frozen=True)
class RoundRobinThreshold:
    """Round-robin over ranked workers, gated by an exact skill-match threshold."""
    threshold: float = DEFAULT_SKILL_MATCH_THRESHOLD


@dataclass(frozen=True)
class ScoreWeights:
    """Weights of the best-match score components."""
    available_bonus: float = 1.0
    unavailable_bonus: float = 0.5
    experience_weight: float = 0.1


@dataclass(frozen=True)
class BestMatchScored:
    """Highest scoring worker per task."""
    weights: ScoreWeights = field(default_factory=ScoreWeights)


AssignmentStrategy = Union[RoundRobinThreshold, BestMatchScored]


@dataclass
class RoundRobinResult:
    """Accepted assignments of a round-robin pass."""
    assignments: List[AssignmentRecord]
    selected_workers: List[str]
    skipped_task_ids: List[str]


@dataclass
class BestMatch:
    """Best candidate for one task (worker is None when nobody qualifies)."""
    task: Task
    worker: Optional[WorkerCandidate]
    score: float = 0.0
    skill_match: float = 0.0

    def to_record(self) -> Optional[AssignmentRecord]:
        if self.worker is None:
            return None
        return AssignmentRecord(
            task_id=self.task.task_id,
            task_title=self.task.title,
            worker_id=self.worker.worker_id,
            worker_name=self.worker.name,
            skill_match=self.skill_match,
        )


# =============================================================================
# Skill matching
# =============================================================================

def exact_skill_match(task_skills: Sequence[str], worker_skills: Sequence[str]) -> float:
    """
    Fraction of task skills the worker holds, by exact tag equality.

    An empty task skill list is a 0.0 match.
    """
    if not task_skills:
        return 0.0
    worker_set = set(worker_skills)
    matches = sum(1 for skill in task_skills if skill in worker_set)
    return matches / len(task_skills)


def contains_either_way(a: str, b: str) -> bool:
    """Case-insensitive containment of either string in the other."""
    a, b = a.lower(), b.lower()
    return a in b or b in a


def fuzzy_skill_match(task_skills: Sequence[str], worker_skills: Sequence[str]) -> float:
    """
    Fraction of task skills matched by some worker skill, where a match is
    case-insensitive containment in either direction ("jest" ~ "Jest", "sql" ~ "PostgreSQL").
    """
    if not task_skills:
        return 0.0
    matches = [
        task_skill for task_skill in task_skills
        if any(contains_either_way(task_skill, worker_skill) for worker_skill in worker_skills)
    ]
    return len(matches) / len(task_skills)


# =============================================================================
# Strategy A: round-robin with threshold
# =============================================================================

def eligible_workers(job_skills: Sequence[str], workers: Sequence[WorkerCandidate]) -> List[WorkerCandidate]:
    """
    Workers that can be dealt tasks of a job, best first.

    Keeps available workers sharing at least one job skill, sorted by rating
    then completed tasks (both descending). The sort is stable.
    """
    job_skill_set = set(job_skills)
    pool = [
        worker for worker in workers
        if worker.role == UserRole.WORKER
        and worker.available
        and job_skill_set.intersection(worker.skills)
    ]
    return sorted(pool, key=lambda w: (-w.rating, -w.completed_tasks))


def assign_round_robin(
    job_skills: Sequence[str],
    tasks: Sequence[Task],
    workers: Sequence[WorkerCandidate],
    threshold: float = DEFAULT_SKILL_MATCH_THRESHOLD
) -> RoundRobinResult:
    """
    Deal pending tasks to ranked workers in turn.

    The worker cursor only advances when an assignment is accepted, so a
    rejected task is offered to the same worker as the next one.

    Args:
        job_skills: Skill tags of the job
        tasks: Tasks of the job; only pending ones are considered
        workers: Candidate roster
        threshold: Minimum exact skill-match fraction to accept

    Returns:
        RoundRobinResult with accepted assignments in task order

    Raises:
        NoEligibleWorkersError: if no worker qualifies for the job
    """
    pool = eligible_workers(job_skills, workers)
    if not pool:
        raise NoEligibleWorkersError('No suitable workers found for this job')

    assignments = []
    skipped = []
    cursor = 0

    for task in tasks:
        if task.status != TaskStatus.PENDING:
            continue

        worker = pool[cursor % len(pool)]
        if not task.skills:
            logger.warning(f"Task {task.task_id} has no skills, counting as 0% match")
        skill_match = exact_skill_match(task.skills, worker.skills)

        if task.skills and skill_match >= threshold:
            assignments.append(AssignmentRecord(
                task_id=task.task_id,
                task_title=task.title,
                worker_id=worker.worker_id,
                worker_name=worker.name,
                skill_match=skill_match,
            ))
            cursor += 1
        else:
            skipped.append(task.task_id)

    selected = list(dict.fromkeys(a.worker_id for a in assignments))

    logger.info(f"Round-robin assigned {len(assignments)} tasks to {len(selected)} workers, "
                f"{len(skipped)} left pending")
    return RoundRobinResult(assignments=assignments, selected_workers=selected, skipped_task_ids=skipped)


# =============================================================================
# Strategy B: scored best match
# =============================================================================

def score_worker(task: Task, worker: WorkerCandidate, weights: ScoreWeights) -> float:
    availability = weights.available_bonus if worker.available else weights.unavailable_bonus
    experience = worker.experience_count * weights.experience_weight
    return fuzzy_skill_match(task.skills, worker.skills) + availability + experience


def find_best_match(task: Task, workers: Sequence[WorkerCandidate], weights: ScoreWeights = None) -> BestMatch:
    """Pick the highest scoring worker holding one of the task's skills."""
    weights = weights or ScoreWeights()
    task_skills = [s.lower() for s in task.skills]

    candidates = [
        worker for worker in workers
        if any(skill in worker_skill.lower() for skill in task_skills for worker_skill in worker.skills)
    ]
    if not candidates:
        return BestMatch(task=task, worker=None)

    scored = [(score_worker(task, worker, weights), worker) for worker in candidates]
    # stable: equal scores keep roster order
    scored.sort(key=lambda pair: pair[0], reverse=True)
    best_score, best_worker = scored[0]

    return BestMatch(
        task=task,
        worker=best_worker,
        score=best_score,
        skill_match=fuzzy_skill_match(task.skills, best_worker.skills),
    )


def assign_best_match(
    tasks: Sequence[Task],
    workers: Sequence[WorkerCandidate],
    weights: ScoreWeights = None
) -> List[BestMatch]:
    """Best candidate for every task, computed independently per task."""
    return [find_best_match(task, workers, weights) for task in tasks]


# =============================================================================
# Strategy selection
# =============================================================================

def assign_tasks(
    strategy: AssignmentStrategy,
    tasks: Sequence[Task],
    workers: Sequence[WorkerCandidate],
    job_skills: Sequence[str] = ()
) -> List[AssignmentRecord]:
    """
    Run the given strategy and return the assignments to commit.

    Raises:
        NoEligibleWorkersError: round-robin with an empty eligible pool
        TypeError: unknown strategy
    """
    if isinstance(strategy, RoundRobinThreshold):
        return assign_round_robin(job_skills, tasks, workers, strategy.threshold).assignments
    if isinstance(strategy, BestMatchScored):
        matches = assign_best_match(tasks, workers, strategy.weights)
        return [m.to_record() for m in matches if m.worker is not None]
    raise TypeError(f"Unknown assignment strategy: {strategy!r}")
