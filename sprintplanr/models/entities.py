from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so deadlines and schedule times compare cleanly."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class Resource:
    id: str
    name: str = ""
    email: str = ""
    role: str = ""


@dataclass(frozen=True)
class Task:
    id: str
    story_points: int
    deadline: datetime
    assigned_to: Optional[str] = None
    title: str = ""
    description: str = ""
    status: str = "To Do"


@dataclass(frozen=True)
class ScheduleEntry:
    task_id: str
    resource_id: str
    start: datetime
    end: datetime
    priority: float = 0.0


# One entry per task, index-aligned with the task list the candidate was built from.
Candidate = Tuple[ScheduleEntry, ...]


@dataclass(frozen=True)
class Metrics:
    resource_utilization: float
    deadline_meeting_rate: float
    workload_balance: float


@dataclass(frozen=True)
class Solution:
    entries: Candidate
    metrics: Metrics
    fitness: float


@dataclass(frozen=True)
class GenerationStats:
    generation: int
    best_fitness: float
    mean_fitness: float
    leaderboard_min: float
