import datetime
from dataclasses import dataclass
from typing import Optional

import torch

from madness.ai.genome import Genome
from madness.ai.model import NetworkTopology, forward
from madness.ai.persistence import load_model
from madness.data.encoding import FeatureEncoder
from madness.data.games import Region, Round
from madness.errors import StaleStateError


@dataclass(frozen=True)
class PredictionRequest:
    team_a: str
    seed_a: int
    team_b: str
    seed_b: int
    date: datetime.date
    round: Round = Round.UNKNOWN
    region: Region = Region.UNKNOWN


@dataclass(frozen=True)
class PredictionResult:
    team_a: str
    team_b: str
    margin: float            # Points, positive means team A wins
    win_probability: float   # Network output, chance of team A winning

    @property
    def winner(self) -> str:
        return self.team_a if self.margin >= 0 else self.team_b

    @property
    def loser(self) -> str:
        return self.team_b if self.margin >= 0 else self.team_a

    def __str__(self):
        return f"{self.winner} over {self.loser} by {abs(self.margin):.1f} (P({self.team_a} wins) = {self.win_probability:.2f})"


class Predictor:
    def __init__(self, genome: Genome, topology: NetworkTopology, encoder: FeatureEncoder):
        if genome.params.numel() != topology.param_count:
            raise StaleStateError(
                f"Genome has {genome.params.numel()} parameters, topology expects {topology.param_count}"
            )
        encoder.check_topology(topology)
        self.genome = genome
        self.topology = topology
        self.encoder = encoder

    @classmethod
    def from_file(cls, path: str, topology: Optional[NetworkTopology] = None) -> "Predictor":
        saved = load_model(path, topology)
        if saved.encoder is None:
            raise StaleStateError(f"{path} was saved without a team vocabulary")
        return cls(saved.genome, saved.topology, saved.encoder)

    def predict(self, request: PredictionRequest) -> PredictionResult:
        # Encoding validates both team names before any forward pass
        x = self.encoder.encode(request.team_a, request.seed_a, request.team_b, request.seed_b,
                                request.date, request.round, request.region)
        output = forward(self.topology, self.genome.params, torch.as_tensor(x)).item()
        return PredictionResult(
            team_a=self.encoder.canonical_name(request.team_a),
            team_b=self.encoder.canonical_name(request.team_b),
            margin=self.encoder.decode_output(output),
            win_probability=output,
        )
