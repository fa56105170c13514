import random
from dataclasses import replace
from typing import Sequence, Tuple

from sprintplanr.models.entities import Candidate, Resource


def single_point_crossover(
    parent_a: Candidate,
    parent_b: Candidate,
    rng: random.Random,
) -> Tuple[Candidate, Candidate]:
    """
    Cut both parents at one random index k in [0, n) and swap the tails.

    Parents are index-aligned with the same task list, so each child still
    holds exactly one entry per task.
    """
    if len(parent_a) != len(parent_b):
        raise ValueError(f"parents differ in length: {len(parent_a)} != {len(parent_b)}")
    if not parent_a:
        return parent_a, parent_b

    k = rng.randrange(len(parent_a))
    child_a = parent_a[:k] + parent_b[k:]
    child_b = parent_b[:k] + parent_a[k:]
    return child_a, child_b


def mutate(
    candidate: Candidate,
    resources: Sequence[Resource],
    rng: random.Random,
    mutation_rate: float,
) -> Candidate:
    """
    With probability `mutation_rate`, move one random entry to a random resource.

    Start, end and priority are left as they are.
    """
    if not candidate or not resources or rng.random() >= mutation_rate:
        return candidate

    index = rng.randrange(len(candidate))
    resource = resources[rng.randrange(len(resources))]
    mutated = replace(candidate[index], resource_id=resource.id)
    return candidate[:index] + (mutated,) + candidate[index + 1:]
