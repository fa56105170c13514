import random
from typing import Sequence

from sprintplanr.models.entities import Candidate


def tournament_select(
    population: Sequence[Candidate],
    fitnesses: Sequence[float],
    rng: random.Random,
    tournament_size: int = 3,
) -> Candidate:
    """
    Tournament selection.

    Draws `tournament_size` members uniformly with replacement and returns
    the fittest of them; on ties the first drawn wins.
    """
    if not population:
        raise ValueError("cannot select from an empty population")
    if len(population) != len(fitnesses):
        raise ValueError("population and fitnesses must have the same length")

    contenders = [rng.randrange(len(population)) for _ in range(tournament_size)]
    best_index = max(contenders, key=lambda idx: fitnesses[idx])
    return population[best_index]
