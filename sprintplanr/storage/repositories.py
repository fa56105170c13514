from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from sprintplanr.models.entities import Metrics, Resource, ScheduleEntry, Solution, Task, ensure_utc
from sprintplanr.storage.database import TaskModel, ResourceModel, OptimizationRunModel

# Status every task is reset to when a schedule is applied
APPLIED_STATUS = "To Do"


class TaskRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, task_id: str) -> Optional[Task]:
        model = self.db.get(TaskModel, task_id)
        if not model:
            return None
        return self._model_to_task(model)

    def save(self, task: Task) -> None:
        existing = self.db.get(TaskModel, task.id)
        if existing:
            existing.title = task.title
            existing.description = task.description
            existing.status = task.status
            existing.story_points = task.story_points
            existing.deadline = ensure_utc(task.deadline)
            existing.assigned_to = task.assigned_to
        else:
            model = TaskModel(
                id=task.id,
                title=task.title,
                description=task.description,
                status=task.status,
                story_points=task.story_points,
                deadline=ensure_utc(task.deadline),
                assigned_to=task.assigned_to,
            )
            self.db.add(model)
        self.db.commit()

    def apply_entry(self, entry: ScheduleEntry) -> bool:
        """
        Write one schedule entry back onto its task.

        Returns False when the task is not stored. Each call commits on its
        own; applying a whole schedule is not atomic.
        """
        model = self.db.get(TaskModel, entry.task_id)
        if not model:
            return False
        model.assigned_to = entry.resource_id
        model.start_date = ensure_utc(entry.start)
        model.end_date = ensure_utc(entry.end)
        model.status = APPLIED_STATUS
        self.db.commit()
        return True

    @staticmethod
    def _model_to_task(model: TaskModel) -> Task:
        return Task(
            id=model.id,
            story_points=model.story_points,
            deadline=ensure_utc(model.deadline),
            assigned_to=model.assigned_to,
            title=model.title,
            description=model.description,
            status=model.status,
        )


class ResourceRepository:
    def __init__(self, db: Session):
        self.db = db

    def save(self, resource: Resource) -> None:
        existing = self.db.get(ResourceModel, resource.id)
        if existing:
            existing.name = resource.name
            existing.email = resource.email
            existing.role = resource.role
        else:
            model = ResourceModel(
                id=resource.id,
                name=resource.name,
                email=resource.email,
                role=resource.role,
            )
            self.db.add(model)
        self.db.commit()


class OptimizationRunRepository:
    def __init__(self, db: Session):
        self.db = db

    def save_run(self, run_id: str, solutions: List[Solution]) -> None:
        model = OptimizationRunModel(
            id=run_id,
            solutions=[self.solution_to_dict(s) for s in solutions],
            best_fitness=solutions[0].fitness if solutions else None,
        )
        self.db.add(model)
        self.db.commit()

    def get_run(self, run_id: str) -> Optional[List[Solution]]:
        model = self.db.get(OptimizationRunModel, run_id)
        if not model:
            return None
        return [self.solution_from_dict(d) for d in model.solutions]

    @staticmethod
    def solution_to_dict(solution: Solution) -> Dict:
        return {
            "fitness": solution.fitness,
            "metrics": {
                "resource_utilization": solution.metrics.resource_utilization,
                "deadline_meeting_rate": solution.metrics.deadline_meeting_rate,
                "workload_balance": solution.metrics.workload_balance,
            },
            "entries": [
                {
                    "task_id": e.task_id,
                    "resource_id": e.resource_id,
                    "start": e.start.isoformat(),
                    "end": e.end.isoformat(),
                    "priority": e.priority,
                }
                for e in solution.entries
            ],
        }

    @staticmethod
    def solution_from_dict(data: Dict) -> Solution:
        entries = tuple(
            ScheduleEntry(
                task_id=e["task_id"],
                resource_id=e["resource_id"],
                start=datetime.fromisoformat(e["start"]),
                end=datetime.fromisoformat(e["end"]),
                priority=e["priority"],
            )
            for e in data["entries"]
        )
        return Solution(entries=entries, metrics=Metrics(**data["metrics"]), fitness=data["fitness"])
