"""
Fitness evaluation for candidate schedules.

All three metrics are percentages in [0, 100] and count assignments, not
story points:

- resource utilization: share of resources that received at least one task
- deadline meeting rate: share of tasks whose entry ends at or before the deadline
- workload balance: 100 minus the largest deviation from the mean task count,
  relative to that mean, over resources that received work

Fitness is the weighted sum 0.4 / 0.4 / 0.2 of the three.
"""

from collections import Counter
from typing import Sequence

from sprintplanr.models.entities import Candidate, Metrics, Resource, Solution, Task, ensure_utc

FITNESS_WEIGHTS = (0.4, 0.4, 0.2)

# Returned when the balance formula has nothing to compare (one loaded resource)
NEUTRAL_BALANCE = 100.0


def _clamp_percentage(value: float) -> float:
    return min(100.0, max(0.0, value))


def resource_utilization(candidate: Candidate, resources: Sequence[Resource]) -> float:
    if not resources:
        return 0.0
    resource_ids = {r.id for r in resources}
    touched = {entry.resource_id for entry in candidate} & resource_ids
    return _clamp_percentage(len(touched) / len(resource_ids) * 100)


def deadline_meeting_rate(candidate: Candidate, tasks: Sequence[Task]) -> float:
    if not tasks:
        return 0.0
    on_time = 0
    for task, entry in zip(tasks, candidate):
        if entry.task_id != task.id:
            raise ValueError(f"Candidate entry {entry.task_id} is not aligned with task {task.id}")
        if ensure_utc(entry.end) <= ensure_utc(task.deadline):
            on_time += 1
    return _clamp_percentage(on_time / len(tasks) * 100)


def workload_balance(candidate: Candidate) -> float:
    loads = list(Counter(entry.resource_id for entry in candidate).values())
    if len(loads) <= 1:
        return NEUTRAL_BALANCE
    mean_load = sum(loads) / len(loads)
    if mean_load == 0:
        return NEUTRAL_BALANCE
    max_deviation = max(abs(load - mean_load) for load in loads)
    # Heavily skewed loads push the raw value below zero
    return _clamp_percentage(100 - max_deviation / mean_load * 100)


def compute_metrics(candidate: Candidate, tasks: Sequence[Task], resources: Sequence[Resource]) -> Metrics:
    return Metrics(
        resource_utilization=resource_utilization(candidate, resources),
        deadline_meeting_rate=deadline_meeting_rate(candidate, tasks),
        workload_balance=workload_balance(candidate),
    )


def fitness_from_metrics(metrics: Metrics) -> float:
    w_util, w_deadline, w_balance = FITNESS_WEIGHTS
    return _clamp_percentage(
        metrics.resource_utilization * w_util
        + metrics.deadline_meeting_rate * w_deadline
        + metrics.workload_balance * w_balance
    )


def evaluate(candidate: Candidate, tasks: Sequence[Task], resources: Sequence[Resource]) -> Solution:
    metrics = compute_metrics(candidate, tasks, resources)
    return Solution(entries=candidate, metrics=metrics, fitness=fitness_from_metrics(metrics))
