import os
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import numpy as np
import torch

import madness.config as config
from madness.ai.genome import Genome
from madness.ai.model import NetworkTopology, forward
from madness.ai.population import Population
from madness.data.encoding import FeatureEncoder
from madness.data.games import GameRecord
from madness.errors import ConfigurationError, DimensionMismatchError


class FitnessEvaluator:
    """
    Scores genomes against an encoded, read-only dataset.

    Per game error: (y_pred - y_true)^2, plus `winner_penalty` when the prediction
    lands on the wrong side of 0.5 for a game that had a winner.
    Fitness = 1 / (1 + mean error), so higher is better and 1.0 is perfect.
    """

    def __init__(self, topology: NetworkTopology, inputs: np.ndarray, targets: np.ndarray,
                 winner_penalty: float = config.WINNER_PENALTY, workers: Optional[int] = None):
        if len(inputs) == 0:
            raise ConfigurationError("Training dataset is empty")
        if inputs.shape[1] != topology.input_size:
            raise DimensionMismatchError("encoded input", topology.input_size, inputs.shape[1])
        if targets.shape[1] != topology.output_size:
            raise DimensionMismatchError("encoded target", topology.output_size, targets.shape[1])

        self.topology = topology
        self.inputs = torch.as_tensor(inputs, dtype=torch.float64)
        self.targets = torch.as_tensor(targets, dtype=torch.float64)
        self.winner_penalty = winner_penalty
        self.workers = workers or os.cpu_count() or 1

        # Games that ended with a winner; those are the only ones the side check applies to
        self._decided = self.targets != 0.5

    @classmethod
    def from_games(cls, topology: NetworkTopology, encoder: FeatureEncoder, games: List[GameRecord], **kwargs):
        inputs, targets, _ = encoder.encode_games(games)
        return cls(topology, inputs, targets, **kwargs)

    def __len__(self):
        return len(self.inputs)

    def score(self, params: torch.Tensor) -> float:
        """Pure: fitness of a parameter vector, nothing is written."""
        preds = forward(self.topology, params, self.inputs)
        errors = (preds - self.targets) ** 2
        wrong_side = self._decided & ((preds - 0.5) * (self.targets - 0.5) <= 0)
        errors = errors + self.winner_penalty * wrong_side.to(errors.dtype)
        return 1.0 / (1.0 + errors.mean().item())

    def evaluate(self, genome: Genome) -> float:
        genome.fitness = self.score(genome.params)
        return genome.fitness

    def winner_accuracy(self, genome: Genome) -> float:
        """Fraction of decided games where the predicted winner is right."""
        preds = forward(self.topology, genome.params, self.inputs)
        right = ((preds - 0.5) * (self.targets - 0.5) > 0) & self._decided
        decided = self._decided.sum().item()
        return right.sum().item() / decided if decided else 1.0

    def evaluate_population(self, population: Population) -> List[float]:
        """
        Evaluates every genome, across a thread pool when workers > 1.
        Returns only after all fitnesses are set.
        """
        if self.workers == 1:
            return [self.evaluate(g) for g in population]

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            return list(pool.map(self.evaluate, population.genomes))
