"""
Example: running the optimizer as a library

Builds a small sprint, runs a seeded optimization and prints the three
best schedules with their metrics.
"""

from datetime import datetime, timedelta, timezone

from sprintplanr.engine.genetic import GAConfig, optimize
from sprintplanr.models.entities import Resource, Task


now = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

tasks = [
    Task(id="api", story_points=5, deadline=now + timedelta(days=10), title="Build API"),
    Task(id="login", story_points=2, deadline=now + timedelta(days=2), title="Fix login"),
    Task(id="reports", story_points=8, deadline=now + timedelta(days=20), title="Reporting"),
    Task(id="docs", story_points=1, deadline=now + timedelta(days=25), title="Write docs"),
]
resources = [
    Resource(id="alice", name="Alice", role="backend"),
    Resource(id="bob", name="Bob", role="frontend"),
]

solutions = optimize(tasks, resources, GAConfig(population_size=30, generations=40, seed=7), now=now)

for rank, solution in enumerate(solutions, start=1):
    m = solution.metrics
    print(
        f"#{rank} fitness={solution.fitness:.1f} "
        f"utilization={m.resource_utilization:.0f}% "
        f"deadlines={m.deadline_meeting_rate:.0f}% "
        f"balance={m.workload_balance:.0f}%"
    )
    for entry in solution.entries:
        print(f"    {entry.task_id:<8} -> {entry.resource_id:<6} {entry.start:%Y-%m-%d} .. {entry.end:%Y-%m-%d}")
