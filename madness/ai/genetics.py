from typing import List, Optional, Tuple

import torch

from madness.ai.genome import Genome
from madness.ai.population import Population
from madness.config import GAConfig


def _coin(generator: torch.Generator, p: float) -> bool:
    return torch.rand(1, generator=generator).item() < p


def tournament_select(fitnesses: List[float], generator: torch.Generator, k: int = 3) -> int:
    """
    Samples k individuals uniformly (with replacement) and returns the index of the fittest.
    Equal fitness goes to the lower population index.
    """
    candidates = torch.randint(0, len(fitnesses), (k,), generator=generator).tolist()
    return min(candidates, key=lambda i: (-fitnesses[i], i))


def uniform_crossover(parent1_vec: torch.Tensor, parent2_vec: torch.Tensor, generator: torch.Generator) -> torch.Tensor:
    """Per-gene coin flip between the two parents."""
    mask = torch.rand(parent1_vec.shape, generator=generator) < 0.5
    return torch.where(mask, parent1_vec, parent2_vec)


def single_point_crossover(parent1_vec: torch.Tensor, parent2_vec: torch.Tensor,
                           generator: torch.Generator) -> Tuple[torch.Tensor, torch.Tensor]:
    """Split at a point in [1, L-1]; returns both complementary children."""
    length = parent1_vec.numel()
    if length < 2:
        return parent1_vec.clone(), parent2_vec.clone()
    point = torch.randint(1, length, (1,), generator=generator).item()
    child_a = torch.cat([parent1_vec[:point], parent2_vec[point:]])
    child_b = torch.cat([parent2_vec[:point], parent1_vec[point:]])
    return child_a, child_b


def crossover(parent1_vec: torch.Tensor, parent2_vec: torch.Tensor, generator: torch.Generator,
              rate: float = 0.9, kind: str = "uniform") -> List[torch.Tensor]:
    """
    Produces the children of one mating: two complementary children for single-point,
    one child for uniform. With probability (1 - rate) the first parent is cloned unchanged.
    """
    if parent1_vec.shape != parent2_vec.shape:
        raise ValueError(f"Parent shapes differ: {tuple(parent1_vec.shape)} vs {tuple(parent2_vec.shape)}")

    if not _coin(generator, rate):
        return [parent1_vec.clone()]

    if kind == "single_point":
        return list(single_point_crossover(parent1_vec, parent2_vec, generator))
    return [uniform_crossover(parent1_vec, parent2_vec, generator)]


def mutate(vector: torch.Tensor, generator: torch.Generator, mutation_rate=0.05, mutation_strength=0.1,
           bounds: Optional[Tuple[float, float]] = None) -> torch.Tensor:
    """
    Returns a copy of `vector` where each gene, independently with chance `mutation_rate`,
    is shifted by N(0, mutation_strength**2). `bounds` (low, high) clamps only the shifted genes.
    """
    mask = torch.rand(vector.shape, generator=generator) < mutation_rate
    noise = torch.randn(vector.shape, generator=generator, dtype=vector.dtype) * mutation_strength

    mutated = vector + noise
    if bounds is not None:
        mutated = mutated.clamp(bounds[0], bounds[1])

    # Untouched genes keep their exact bits
    return torch.where(mask, mutated, vector)


def select_elites(population: Population, count: int) -> List[Genome]:
    """Copies of the top `count` genomes, fitness preserved."""
    return [population[idx].clone() for idx in population.ranked()[:count]]


def reproduce(population: Population, config: GAConfig, generator: torch.Generator) -> Population:
    """
    Builds the next generation: elites first, then tournament / crossover / mutation
    children until the population is full again. The current population is only read.
    """
    fitnesses = population.fitnesses()

    new_genomes = select_elites(population, config.elitism)
    while len(new_genomes) < len(population):
        p1_idx = tournament_select(fitnesses, generator, k=config.tournament_size)
        p2_idx = tournament_select(fitnesses, generator, k=config.tournament_size)

        children = crossover(population[p1_idx].params, population[p2_idx].params, generator,
                             rate=config.crossover_rate, kind=config.crossover_kind)
        # A second single-point child is dropped when only one slot is left
        for child_vec in children[:len(population) - len(new_genomes)]:
            child_vec = mutate(child_vec, generator, mutation_rate=config.mutation_rate,
                               mutation_strength=config.mutation_strength, bounds=config.mutation_bounds)
            new_genomes.append(Genome(child_vec))

    return Population(new_genomes, generation=population.generation + 1)
