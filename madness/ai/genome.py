from dataclasses import dataclass
from typing import Optional

import torch

from madness.ai.model import NetworkTopology
from madness.errors import DimensionMismatchError


@dataclass
class Genome:
    """A candidate network: flat float64 parameter vector plus its fitness (None until evaluated)."""
    params: torch.Tensor
    fitness: Optional[float] = None

    def __len__(self):
        return self.params.numel()

    @property
    def evaluated(self) -> bool:
        return self.fitness is not None

    def clone(self) -> "Genome":
        return Genome(self.params.clone(), self.fitness)

    def check(self, topology: NetworkTopology) -> "Genome":
        if len(self) != topology.param_count:
            raise DimensionMismatchError("genome", topology.param_count, len(self))
        return self


def random_genome(topology: NetworkTopology, generator: torch.Generator, init_range: float = 1.0) -> Genome:
    """Uniform initialization in [-init_range, init_range]."""
    params = torch.rand(topology.param_count, generator=generator, dtype=torch.float64)
    params = (params * 2.0 - 1.0) * init_range
    return Genome(params)


def make_generator(seed: Optional[int] = None) -> torch.Generator:
    generator = torch.Generator()
    if seed is None:
        generator.seed()
    else:
        generator.manual_seed(seed)
    return generator
