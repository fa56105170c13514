import random
from datetime import timedelta

import pytest
from sprintplanr.engine.operators import mutate, single_point_crossover
from sprintplanr.engine.population import initial_population, random_candidate, task_priority
from sprintplanr.engine.selection import tournament_select
from sprintplanr.models.entities import Task


class TestPopulation:
    """Random initial candidates."""

    def test_population_size_and_coverage(self, scenario_tasks, scenario_resources, rng, now):
        population = initial_population(scenario_tasks, scenario_resources, 20, rng, now)

        assert len(population) == 20
        for candidate in population:
            assert [e.task_id for e in candidate] == ["A", "B", "C"]

    def test_entry_windows(self, scenario_tasks, scenario_resources, rng, now):
        resource_ids = {r.id for r in scenario_resources}
        for _ in range(50):
            for entry in random_candidate(scenario_tasks, scenario_resources, rng, now):
                assert entry.resource_id in resource_ids
                assert now <= entry.start <= now + timedelta(days=29)
                assert timedelta(days=1) <= entry.end - entry.start <= timedelta(days=30)
                assert entry.end > entry.start

    def test_entries_carry_priority(self, scenario_tasks, scenario_resources, rng, now):
        candidate = random_candidate(scenario_tasks, scenario_resources, rng, now)
        for task, entry in zip(scenario_tasks, candidate):
            assert entry.priority == pytest.approx(task_priority(task, now))

    def test_same_seed_same_population(self, scenario_tasks, scenario_resources, now):
        first = initial_population(scenario_tasks, scenario_resources, 5, random.Random(7), now)
        second = initial_population(scenario_tasks, scenario_resources, 5, random.Random(7), now)
        assert first == second


class TestTaskPriority:
    """Urgency heuristic stored on schedule entries."""

    def test_due_now(self, now):
        task = Task(id="t", story_points=4, deadline=now)
        assert task_priority(task, now) == pytest.approx(5.0)

    def test_overdue_counts_as_due_now(self, now):
        task = Task(id="t", story_points=4, deadline=now - timedelta(days=10))
        assert task_priority(task, now) == pytest.approx(5.0)

    def test_nearer_and_heavier_is_higher(self, now):
        near = Task(id="near", story_points=3, deadline=now + timedelta(days=1))
        far = Task(id="far", story_points=3, deadline=now + timedelta(days=9))
        heavy = Task(id="heavy", story_points=8, deadline=now + timedelta(days=9))

        assert task_priority(near, now) == pytest.approx(2.0)
        assert task_priority(far, now) == pytest.approx(0.4)
        assert task_priority(heavy, now) > task_priority(far, now)

    def test_naive_deadline_treated_as_utc(self, now):
        task = Task(id="t", story_points=0, deadline=(now + timedelta(days=3)).replace(tzinfo=None))
        assert task_priority(task, now) == pytest.approx(0.25)


class TestTournamentSelection:
    """Fittest of a random sample wins."""

    def test_single_member(self, scenario_tasks, scenario_resources, rng, now):
        population = initial_population(scenario_tasks, scenario_resources, 1, rng, now)
        assert tournament_select(population, [12.0], rng, tournament_size=3) is population[0]

    def test_large_tournament_finds_best(self, scenario_tasks, scenario_resources, rng, now):
        population = initial_population(scenario_tasks, scenario_resources, 2, rng, now)
        fitnesses = [10.0, 90.0]
        assert tournament_select(population, fitnesses, rng, tournament_size=30) is population[1]

    def test_winner_comes_from_population(self, scenario_tasks, scenario_resources, rng, now):
        population = initial_population(scenario_tasks, scenario_resources, 10, rng, now)
        fitnesses = [float(i) for i in range(10)]
        for _ in range(20):
            assert tournament_select(population, fitnesses, rng) in population

    def test_mismatched_lengths_rejected(self, scenario_tasks, scenario_resources, rng, now):
        population = initial_population(scenario_tasks, scenario_resources, 3, rng, now)
        with pytest.raises(ValueError):
            tournament_select(population, [1.0], rng)

    def test_empty_population_rejected(self, rng):
        with pytest.raises(ValueError):
            tournament_select([], [], rng)


class TestCrossover:
    """Single-point crossover keeps one entry per task."""

    def test_children_are_complementary(self, scenario_tasks, scenario_resources, rng, now):
        parent_a, parent_b = initial_population(scenario_tasks, scenario_resources, 2, rng, now)
        for _ in range(20):
            child_a, child_b = single_point_crossover(parent_a, parent_b, rng)

            assert len(child_a) == len(child_b) == len(scenario_tasks)
            assert [e.task_id for e in child_a] == [t.id for t in scenario_tasks]
            assert [e.task_id for e in child_b] == [t.id for t in scenario_tasks]
            for i in range(len(scenario_tasks)):
                assert {child_a[i], child_b[i]} == {parent_a[i], parent_b[i]}

    def test_parents_untouched(self, scenario_tasks, scenario_resources, rng, now):
        parent_a, parent_b = initial_population(scenario_tasks, scenario_resources, 2, rng, now)
        snapshot = (parent_a, parent_b)
        single_point_crossover(parent_a, parent_b, rng)
        assert (parent_a, parent_b) == snapshot

    def test_length_mismatch_rejected(self, scenario_tasks, scenario_resources, rng, now):
        parent_a, parent_b = initial_population(scenario_tasks, scenario_resources, 2, rng, now)
        with pytest.raises(ValueError):
            single_point_crossover(parent_a, parent_b[:2], rng)


class TestMutation:
    """Resource reassignment of a single entry."""

    def test_zero_rate_is_identity(self, scenario_tasks, scenario_resources, rng, now):
        candidate = random_candidate(scenario_tasks, scenario_resources, rng, now)
        assert mutate(candidate, scenario_resources, rng, 0.0) is candidate

    def test_only_resource_changes(self, scenario_tasks, scenario_resources, rng, now):
        resource_ids = {r.id for r in scenario_resources}
        for _ in range(30):
            candidate = random_candidate(scenario_tasks, scenario_resources, rng, now)
            mutated = mutate(candidate, scenario_resources, rng, 1.0)

            assert len(mutated) == len(candidate)
            changed = [i for i in range(len(candidate)) if mutated[i] != candidate[i]]
            assert len(changed) <= 1
            for before, after in zip(candidate, mutated):
                assert after.task_id == before.task_id
                assert after.start == before.start
                assert after.end == before.end
                assert after.priority == before.priority
                assert after.resource_id in resource_ids

    def test_single_resource_mutation_is_noop(self, scenario_tasks, scenario_resources, rng, now):
        only = scenario_resources[:1]
        candidate = random_candidate(scenario_tasks, only, rng, now)
        assert mutate(candidate, only, rng, 1.0) == candidate
