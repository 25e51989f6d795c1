# Global Predictor & GA Configuration
from dataclasses import dataclass
from typing import Optional, Tuple

from madness.errors import ConfigurationError

# Network Topology
INPUT_SIZE = 6     # Team A, Team B, Seed Diff, Year, Round, Region
HIDDEN_SIZES = [16]
OUTPUT_SIZE = 1    # Normalized margin for team A
ACTIVATION = "sigmoid"
OUTPUT_ACTIVATION = "sigmoid"

# Encoding
MARGIN_SCALE = 40.0  # Margins beyond +/-40 saturate the output
MAX_SEED = 16
BASE_YEAR = 1985
YEAR_SPAN = 50.0

# Fitness
WINNER_PENALTY = 0.25

# Training Hyperparameters
POP_SIZE = 200
GENERATIONS = 300
MUTATION_RATE = 0.1
MUTATION_STRENGTH = 0.15
CROSSOVER_RATE = 0.9
ELITISM_PCT = 0.1
TOURNAMENT_SIZE = 3
INIT_RANGE = 1.0

# Files
DATA_FILE = "NCAA Mens March Madness Historical Results.csv"
MODEL_FILE = "model.mmp"
LOG_FILE = "training_log.json"
CHECKPOINT_DIR = "checkpoints"

CROSSOVER_KINDS = ("uniform", "single_point")


@dataclass
class GAConfig:
    """Hyperparameters for one training run."""

    pop_size: int = POP_SIZE
    generations: int = GENERATIONS
    elitism: Optional[int] = None  # None -> ELITISM_PCT of the population, at least 2
    tournament_size: int = TOURNAMENT_SIZE
    crossover_rate: float = CROSSOVER_RATE
    crossover_kind: str = "uniform"
    mutation_rate: float = MUTATION_RATE
    mutation_strength: float = MUTATION_STRENGTH
    mutation_bounds: Optional[Tuple[float, float]] = None
    init_range: float = INIT_RANGE
    target_fitness: Optional[float] = None
    seed: Optional[int] = None
    workers: Optional[int] = None  # None -> os.cpu_count()

    def __post_init__(self):
        if self.elitism is None:
            self.elitism = min(self.pop_size, max(2, int(self.pop_size * ELITISM_PCT)))

    def validate(self) -> "GAConfig":
        if self.pop_size <= 0:
            raise ConfigurationError(f"Population size must be positive, got {self.pop_size}")
        if self.generations < 0:
            raise ConfigurationError(f"Generation count cannot be negative, got {self.generations}")
        if not 0 <= self.elitism <= self.pop_size:
            raise ConfigurationError(f"Elitism count {self.elitism} outside [0, {self.pop_size}]")
        if self.tournament_size < 1:
            raise ConfigurationError("Tournament size must be at least 1")
        for name in ("crossover_rate", "mutation_rate"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be within [0, 1], got {value}")
        if self.mutation_strength < 0:
            raise ConfigurationError("Mutation strength cannot be negative")
        if self.crossover_kind not in CROSSOVER_KINDS:
            raise ConfigurationError(
                f"Unknown crossover kind '{self.crossover_kind}', expected one of {CROSSOVER_KINDS}"
            )
        if self.mutation_bounds is not None:
            low, high = self.mutation_bounds
            if low >= high:
                raise ConfigurationError(f"Invalid mutation bounds {self.mutation_bounds}")
        if self.init_range <= 0:
            raise ConfigurationError("Initialization range must be positive")
        if self.workers is not None and self.workers < 1:
            raise ConfigurationError("Worker count must be at least 1")
        return self
