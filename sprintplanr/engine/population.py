"""
Population initializer.

Builds random candidate schedules: every task gets a uniformly random
resource, a start 0-29 days from the reference time and a 1-30 day duration.
Entries are index-aligned with the task list, which keeps single-point
crossover closed over valid candidates.
"""

import random
from datetime import datetime, timedelta
from typing import List, Sequence

from sprintplanr.models.entities import Candidate, Resource, ScheduleEntry, Task, ensure_utc

MAX_START_OFFSET_DAYS = 30
MAX_DURATION_DAYS = 30


def task_priority(task: Task, now: datetime) -> float:
    """
    Heuristic urgency of a task: grows with story points and shrinks with
    the distance to the deadline. Overdue tasks count as due today.

    Stored on schedule entries for display only; fitness ignores it.
    """
    seconds_left = (ensure_utc(task.deadline) - ensure_utc(now)).total_seconds()
    days_until_deadline = max(0.0, seconds_left / 86400)
    return (1 / (days_until_deadline + 1)) * (task.story_points + 1)


def random_candidate(
    tasks: Sequence[Task],
    resources: Sequence[Resource],
    rng: random.Random,
    now: datetime,
) -> Candidate:
    now = ensure_utc(now)
    entries = []
    for task in tasks:
        resource = resources[rng.randrange(len(resources))]
        start = now + timedelta(days=rng.randrange(MAX_START_OFFSET_DAYS))
        end = start + timedelta(days=rng.randint(1, MAX_DURATION_DAYS))
        entries.append(ScheduleEntry(
            task_id=task.id,
            resource_id=resource.id,
            start=start,
            end=end,
            priority=task_priority(task, now),
        ))
    return tuple(entries)


def initial_population(
    tasks: Sequence[Task],
    resources: Sequence[Resource],
    size: int,
    rng: random.Random,
    now: datetime,
) -> List[Candidate]:
    return [random_candidate(tasks, resources, rng, now) for _ in range(size)]
