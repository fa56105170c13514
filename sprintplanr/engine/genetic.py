"""
Genetic Algorithm Schedule Optimizer

Assigns every task to a resource and a time window, trading off three
objectives scored by `sprintplanr.utils.scoring`: resource utilization,
deadline compliance and workload balance.

Algorithm:
1. Build a random initial population (index-aligned candidates)
2. Each generation: evaluate and rank every candidate by fitness
3. Update the top-k leaderboard of distinct candidates seen so far
4. Carry the elites over unchanged, fill the rest with tournament-selected,
   crossed-over and mutated children
5. Stop after a fixed number of generations and return the leaderboard

Complexity:
    O(g * p * n) where g = generations, p = population size, n = tasks

Trade-offs:
+ Fixed, predictable budget (default 50 individuals x 100 generations)
+ Reproducible: all randomness comes from one seeded `random.Random`
- No optimality guarantee and no convergence-based early exit
- Resources have no capacity model; any resource may take any number of tasks
"""

import logging
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Sequence

from sprintplanr.config.settings import Settings, get_settings
from sprintplanr.engine.exceptions import InvalidInputError, OptimizationAborted
from sprintplanr.engine.operators import mutate, single_point_crossover
from sprintplanr.engine.population import initial_population
from sprintplanr.engine.selection import tournament_select
from sprintplanr.models.entities import Candidate, GenerationStats, Resource, Solution, Task, ensure_utc
from sprintplanr.utils.scoring import evaluate

logger = logging.getLogger(__name__)

DEFAULT_ELITE_SIZE = 5


class OptimizerState(str, Enum):
    INITIALIZING = "initializing"
    EVALUATING = "evaluating"
    SELECTING = "selecting"
    TERMINATED = "terminated"


@dataclass
class GAConfig:
    population_size: int = 50
    generations: int = 100
    mutation_rate: float = 0.1
    # None means DEFAULT_ELITE_SIZE, capped at population_size
    elite_size: Optional[int] = None
    tournament_size: int = 3
    top_k: int = 3
    seed: Optional[int] = None
    workers: int = 1
    time_limit_seconds: Optional[float] = None

    def __post_init__(self):
        if self.elite_size is None:
            self.elite_size = max(0, min(DEFAULT_ELITE_SIZE, self.population_size))

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **overrides) -> "GAConfig":
        """Defaults from application settings; `None` overrides are ignored."""
        settings = settings or get_settings()
        values = dict(
            population_size=settings.ga_population_size,
            generations=settings.ga_generations,
            mutation_rate=settings.ga_mutation_rate,
            tournament_size=settings.ga_tournament_size,
            top_k=settings.ga_top_k,
            workers=settings.ga_workers,
            time_limit_seconds=settings.ga_time_limit_seconds,
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        if overrides.get("elite_size") is None:
            # Default elite count shrinks to fit small populations
            values["elite_size"] = max(0, min(settings.ga_elite_size, values["population_size"]))
        return cls(**values)

    def validate(self) -> None:
        if self.population_size < 1:
            raise InvalidInputError("population_size must be at least 1")
        if self.generations < 1:
            raise InvalidInputError("generations must be at least 1")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise InvalidInputError("mutation_rate must be between 0 and 1")
        if not 0 <= self.elite_size <= self.population_size:
            raise InvalidInputError("elite_size must be between 0 and population_size")
        if self.tournament_size < 1:
            raise InvalidInputError("tournament_size must be at least 1")
        if self.top_k < 1:
            raise InvalidInputError("top_k must be at least 1")
        if self.workers < 1:
            raise InvalidInputError("workers must be at least 1")
        if self.time_limit_seconds is not None and self.time_limit_seconds <= 0:
            raise InvalidInputError("time_limit_seconds must be positive")


def validate_inputs(tasks: Sequence[Task], resources: Sequence[Resource]) -> None:
    """Reject inputs no run can be started on."""
    if not tasks:
        raise InvalidInputError("at least one task is required")
    if not resources:
        raise InvalidInputError("at least one resource is required")

    task_ids = [t.id for t in tasks]
    if len(set(task_ids)) != len(task_ids):
        raise InvalidInputError("task ids must be unique")
    resource_ids = [r.id for r in resources]
    if len(set(resource_ids)) != len(resource_ids):
        raise InvalidInputError("resource ids must be unique")

    for task in tasks:
        if task.story_points < 0:
            raise InvalidInputError(f"Task {task.id} has negative story points")


class GeneticOptimizer:
    """
    One optimization run over a fixed task and resource list.

    `history` and `leaderboard` are filled while `run()` executes; the
    population itself is rebuilt every generation and never shared.
    """

    def __init__(
        self,
        tasks: Sequence[Task],
        resources: Sequence[Resource],
        config: Optional[GAConfig] = None,
        rng: Optional[random.Random] = None,
        now: Optional[datetime] = None,
    ):
        self.config = config if config is not None else GAConfig.from_settings()
        self.config.validate()
        validate_inputs(tasks, resources)

        self.tasks: List[Task] = list(tasks)
        self.resources: List[Resource] = list(resources)
        self.rng = rng if rng is not None else random.Random(self.config.seed)
        self.now = ensure_utc(now) if now is not None else datetime.now(timezone.utc)

        self.state = OptimizerState.INITIALIZING
        self.history: List[GenerationStats] = []
        self.leaderboard: List[Solution] = []

    def run(self, cancel_event: Optional[threading.Event] = None) -> List[Solution]:
        cfg = self.config
        logger.info(
            f"GA run: {len(self.tasks)} tasks, {len(self.resources)} resources, "
            f"population={cfg.population_size}, generations={cfg.generations}"
        )
        started = time.monotonic()

        self.state = OptimizerState.INITIALIZING
        self.history = []
        self.leaderboard = []
        population = initial_population(self.tasks, self.resources, cfg.population_size, self.rng, self.now)

        executor = ThreadPoolExecutor(max_workers=cfg.workers) if cfg.workers > 1 else None
        try:
            for generation in range(cfg.generations):
                self.state = OptimizerState.EVALUATING
                ranked = self._evaluate(population, executor)
                self._update_leaderboard(ranked)
                self._record(generation, ranked)

                if generation == cfg.generations - 1:
                    break

                self._check_budget(generation, started, cancel_event)
                self.state = OptimizerState.SELECTING
                population = self._next_generation(ranked)
        finally:
            if executor is not None:
                executor.shutdown(wait=True)
            self.state = OptimizerState.TERMINATED

        best = self.best_solutions()
        logger.info(
            f"GA run finished in {time.monotonic() - started:.2f}s: "
            f"best fitness={best[0].fitness:.2f}"
        )
        return best

    def best_solutions(self) -> List[Solution]:
        return sorted(self.leaderboard, key=lambda s: s.fitness, reverse=True)

    def _score(self, candidate: Candidate) -> Solution:
        return evaluate(candidate, self.tasks, self.resources)

    def _evaluate(self, population: List[Candidate], executor: Optional[ThreadPoolExecutor]) -> List[Solution]:
        """Score a whole generation and rank it, best first."""
        if executor is not None:
            # map() preserves order; list() waits for every evaluation
            solutions = list(executor.map(self._score, population))
        else:
            solutions = [self._score(c) for c in population]
        return sorted(solutions, key=lambda s: s.fitness, reverse=True)

    def _update_leaderboard(self, ranked: List[Solution]) -> None:
        on_board = {s.entries for s in self.leaderboard}
        for solution in ranked:
            if solution.entries in on_board:
                continue
            if len(self.leaderboard) < self.config.top_k:
                self.leaderboard.append(solution)
                on_board.add(solution.entries)
                continue

            weakest = min(range(len(self.leaderboard)), key=lambda i: self.leaderboard[i].fitness)
            # ranked is sorted, nothing further down can beat the board either
            if solution.fitness <= self.leaderboard[weakest].fitness:
                break
            on_board.discard(self.leaderboard[weakest].entries)
            self.leaderboard[weakest] = solution
            on_board.add(solution.entries)

    def _record(self, generation: int, ranked: List[Solution]) -> None:
        stats = GenerationStats(
            generation=generation,
            best_fitness=ranked[0].fitness,
            mean_fitness=sum(s.fitness for s in ranked) / len(ranked),
            leaderboard_min=min(s.fitness for s in self.leaderboard),
        )
        self.history.append(stats)
        logger.debug(
            f"Generation {generation}: best={stats.best_fitness:.2f} "
            f"mean={stats.mean_fitness:.2f} leaderboard_min={stats.leaderboard_min:.2f}"
        )

    def _check_budget(self, generation: int, started: float, cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.warning(f"GA run cancelled after generation {generation}")
            raise OptimizationAborted(f"cancelled after generation {generation}")
        limit = self.config.time_limit_seconds
        if limit is not None and time.monotonic() - started > limit:
            logger.warning(f"GA run exceeded {limit}s after generation {generation}")
            raise OptimizationAborted(f"time limit of {limit}s exceeded after generation {generation}")

    def _next_generation(self, ranked: List[Solution]) -> List[Candidate]:
        cfg = self.config
        parents = [s.entries for s in ranked]
        fitnesses = [s.fitness for s in ranked]

        next_population: List[Candidate] = parents[: cfg.elite_size]
        while len(next_population) < cfg.population_size:
            parent_a = tournament_select(parents, fitnesses, self.rng, cfg.tournament_size)
            parent_b = tournament_select(parents, fitnesses, self.rng, cfg.tournament_size)
            child_a, child_b = single_point_crossover(parent_a, parent_b, self.rng)
            child_a = mutate(child_a, self.resources, self.rng, cfg.mutation_rate)
            child_b = mutate(child_b, self.resources, self.rng, cfg.mutation_rate)

            next_population.append(child_a)
            if len(next_population) < cfg.population_size:
                next_population.append(child_b)
        return next_population


def optimize(
    tasks: Sequence[Task],
    resources: Sequence[Resource],
    config: Optional[GAConfig] = None,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
    cancel_event: Optional[threading.Event] = None,
) -> List[Solution]:
    """
    Run the genetic optimizer and return the best distinct schedules found.

    Args:
        tasks: Tasks to schedule (at least one, unique ids)
        resources: Assignable resources (at least one, unique ids)
        config: Run parameters; defaults come from application settings
        rng: Random source; built from `config.seed` when omitted
        now: Reference time schedules start from; defaults to the current UTC time
        cancel_event: Checked between generations to abandon the run

    Returns:
        Up to `config.top_k` solutions, best fitness first

    Raises:
        InvalidInputError: empty or inconsistent inputs, invalid config
        OptimizationAborted: cancelled or over `config.time_limit_seconds`
    """
    return GeneticOptimizer(tasks, resources, config=config, rng=rng, now=now).run(cancel_event)
