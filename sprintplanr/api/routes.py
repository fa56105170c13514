from datetime import datetime
from typing import List, Optional
import logging
import uuid

import redis
from fastapi import APIRouter, HTTPException, Depends, Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from sprintplanr.config.settings import get_settings
from sprintplanr.engine.exceptions import InvalidInputError, OptimizationAborted
from sprintplanr.engine.genetic import GAConfig, GeneticOptimizer
from sprintplanr.models.entities import Resource, Solution, Task
from sprintplanr.storage.cache import SolutionCache
from sprintplanr.storage.database import get_db
from sprintplanr.storage.repositories import TaskRepository, ResourceRepository, OptimizationRunRepository

router = APIRouter()
cache = SolutionCache()
settings = get_settings()
logger = logging.getLogger(__name__)


class ResourceDTO(BaseModel):
    id: str
    name: str = ""
    email: str = ""
    role: str = ""

    def to_domain(self) -> Resource:
        return Resource(id=self.id, name=self.name, email=self.email, role=self.role)


class TaskDTO(BaseModel):
    id: str
    story_points: int = 0
    deadline: datetime
    assigned_to: Optional[str] = None
    title: str = ""
    description: str = ""
    status: str = "To Do"

    @field_validator("story_points")
    @classmethod
    def validate_story_points(cls, v: int):
        """Story points are a non-negative effort weight."""
        if v < 0:
            raise ValueError("story_points must be non-negative")
        return v

    def to_domain(self) -> Task:
        return Task(
            id=self.id,
            story_points=self.story_points,
            deadline=self.deadline,
            assigned_to=self.assigned_to,
            title=self.title,
            description=self.description,
            status=self.status,
        )


class OptimizeConfigDTO(BaseModel):
    population_size: Optional[int] = Field(None, ge=1, le=1000)
    generations: Optional[int] = Field(None, ge=1, le=5000)
    mutation_rate: Optional[float] = Field(None, ge=0.0, le=1.0)
    elite_size: Optional[int] = Field(None, ge=0)
    tournament_size: Optional[int] = Field(None, ge=1)
    top_k: Optional[int] = Field(None, ge=1, le=20)
    seed: Optional[int] = None

    def to_domain(self) -> GAConfig:
        return GAConfig.from_settings(settings, **self.model_dump())


class ScheduleEntryDTO(BaseModel):
    task_id: str
    resource_id: str
    start: datetime
    end: datetime
    priority: float


class MetricsDTO(BaseModel):
    resource_utilization: float
    deadline_meeting_rate: float
    workload_balance: float


class SolutionDTO(BaseModel):
    entries: List[ScheduleEntryDTO]
    metrics: MetricsDTO
    fitness: float

    @classmethod
    def from_domain(cls, s: Solution) -> "SolutionDTO":
        return cls(
            entries=[
                ScheduleEntryDTO(task_id=e.task_id, resource_id=e.resource_id, start=e.start, end=e.end, priority=e.priority)
                for e in s.entries
            ],
            metrics=MetricsDTO(
                resource_utilization=s.metrics.resource_utilization,
                deadline_meeting_rate=s.metrics.deadline_meeting_rate,
                workload_balance=s.metrics.workload_balance,
            ),
            fitness=s.fitness,
        )


class OptimizeRequest(BaseModel):
    tasks: List[TaskDTO]
    resources: List[ResourceDTO]
    config: OptimizeConfigDTO = Field(default_factory=OptimizeConfigDTO)
    reference_time: Optional[datetime] = None


class OptimizeResponse(BaseModel):
    run_id: str
    solutions: List[SolutionDTO]
    generations_run: int
    cached: bool = False


class ApplyResponse(BaseModel):
    run_id: str
    rank: int
    updated: List[str]
    missing: List[str]


def _cache_key(req: OptimizeRequest) -> Optional[str]:
    # Output is only reproducible with a fixed seed and reference time
    if req.config.seed is None or req.reference_time is None:
        return None
    return SolutionCache.hash_request(
        [t.model_dump(mode="json") for t in req.tasks],
        [r.model_dump(mode="json") for r in req.resources],
        req.config.model_dump(mode="json"),
        req.reference_time.isoformat(),
    )


@router.post("/schedule/optimize", response_model=OptimizeResponse, summary="Search for balanced schedules")
def optimize_endpoint(req: OptimizeRequest, db: Session = Depends(get_db)):
    """
    Run the genetic optimizer over the submitted tasks and resources.

    **Algorithm**:
    1. Validate input (DTOs, then engine preconditions)
    2. Persist tasks and resources, also when the result comes from cache
    3. Check cache for an identical seeded request
    4. Evolve a population of schedules for a fixed number of generations
    5. Store the ranked solutions as a run that can later be applied

    **Error Handling:**
    - 400: Empty task or resource list, duplicate ids, invalid configuration
    - 422: Malformed request body
    - 503: Run exceeded its time limit

    **Returns:**
    - `run_id`: Identifier for `/schedule/runs/{run_id}/apply`
    - `solutions`: Best distinct schedules, highest fitness first
    - `cached`: Whether result was retrieved from cache
    """
    logger.info(f"Optimize request: {len(req.tasks)} tasks, {len(req.resources)} resources")

    tasks = [t.to_domain() for t in req.tasks]
    resources = [r.to_domain() for r in req.resources]

    try:
        optimizer = GeneticOptimizer(tasks, resources, config=req.config.to_domain(), now=req.reference_time)
    except InvalidInputError as exc:
        logger.warning(f"Rejected optimize request: {exc}")
        raise HTTPException(status_code=400, detail=str(exc))

    task_repo = TaskRepository(db)
    resource_repo = ResourceRepository(db)
    for task in tasks:
        task_repo.save(task)
    for resource in resources:
        resource_repo.save(resource)

    key = _cache_key(req)
    if key is not None:
        try:
            cached_result = cache.get(key)
        except redis.RedisError as exc:
            logger.warning(f"Cache unavailable, running uncached: {exc}")
            cached_result = None
        if cached_result:
            logger.info("Cache hit")
            return {**cached_result, "cached": True}

    try:
        solutions = optimizer.run()
    except OptimizationAborted as exc:
        logger.warning(f"Optimize request aborted: {exc}")
        raise HTTPException(status_code=503, detail=str(exc))

    run_id = uuid.uuid4().hex
    OptimizationRunRepository(db).save_run(run_id, solutions)
    logger.info(f"Run {run_id} stored: best fitness={solutions[0].fitness:.2f}")

    response = OptimizeResponse(
        run_id=run_id,
        solutions=[SolutionDTO.from_domain(s) for s in solutions],
        generations_run=len(optimizer.history),
    )
    if key is not None:
        try:
            cache.set(key, response.model_dump(mode="json"))
        except redis.RedisError as exc:
            logger.warning(f"Could not cache run {run_id}: {exc}")
    return response


@router.post("/schedule/runs/{run_id}/apply", response_model=ApplyResponse, summary="Apply a stored solution")
def apply_endpoint(
    run_id: str,
    rank: int = Query(0, ge=0, description="Index of the solution in the run, 0 is the best"),
    db: Session = Depends(get_db),
):
    """
    Write the chosen solution back onto the stored tasks.

    Each task gets its assigned resource, start and end date, and its status
    reset to "To Do". Updates are issued one task at a time; tasks that are no
    longer stored are reported in `missing` and do not stop the others.
    """
    run_repo = OptimizationRunRepository(db)
    solutions = run_repo.get_run(run_id)
    if solutions is None:
        raise HTTPException(status_code=404, detail=f"Unknown run {run_id}")
    if rank >= len(solutions):
        raise HTTPException(status_code=400, detail=f"Run {run_id} has {len(solutions)} solutions, rank {rank} out of range")

    task_repo = TaskRepository(db)
    updated, missing = [], []
    for entry in solutions[rank].entries:
        if task_repo.apply_entry(entry):
            updated.append(entry.task_id)
        else:
            logger.warning(f"Task {entry.task_id} not found while applying run {run_id}")
            missing.append(entry.task_id)

    logger.info(f"Applied run {run_id} rank {rank}: {len(updated)} updated, {len(missing)} missing")
    return {"run_id": run_id, "rank": rank, "updated": updated, "missing": missing}
