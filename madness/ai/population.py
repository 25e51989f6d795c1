from typing import Dict, List

import numpy as np
import torch

from madness.ai.genome import Genome, random_genome
from madness.ai.model import NetworkTopology


class Population:
    def __init__(self, genomes: List[Genome], generation: int = 0):
        self.genomes = genomes
        self.generation = generation

    @classmethod
    def random(cls, topology: NetworkTopology, size: int, generator: torch.Generator, init_range: float = 1.0):
        return cls([random_genome(topology, generator, init_range) for _ in range(size)])

    def __len__(self):
        return len(self.genomes)

    def __iter__(self):
        return iter(self.genomes)

    def __getitem__(self, idx):
        return self.genomes[idx]

    @property
    def evaluated(self) -> bool:
        return all(g.evaluated for g in self.genomes)

    def fitnesses(self) -> List[float]:
        if not self.evaluated:
            raise RuntimeError(f"Generation {self.generation} has unevaluated genomes")
        return [g.fitness for g in self.genomes]

    def ranked(self) -> List[int]:
        """Indices sorted by fitness (descending). Stable, so equal fitness keeps index order."""
        scores = self.fitnesses()
        return sorted(range(len(scores)), key=lambda i: -scores[i])

    def best(self) -> Genome:
        return self.genomes[self.ranked()[0]]

    def average_fitness(self) -> float:
        return float(np.mean(self.fitnesses()))

    def stats(self) -> Dict[str, float]:
        scores = self.fitnesses()
        return {
            "generation": self.generation,
            "best": float(np.max(scores)),
            "average": float(np.mean(scores)),
            "worst": float(np.min(scores)),
            "std_dev": float(np.std(scores)),
        }
