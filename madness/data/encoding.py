import datetime
from typing import Iterable, List, Tuple

import numpy as np

import madness.config as config
from madness.data.games import GameRecord, Region, Round
from madness.errors import ConfigurationError, UnrecognizedEntityError


class FeatureEncoder:
    """
    Turns a matchup into the network input vector and margins into network targets.
    The same instance (vocabulary included) must be used for training and prediction,
    which is why it is persisted next to the trained genome.

    Input layout (6 floats):
        [team_a_id, team_b_id, seed_diff, year, round, region]
    Output layout (1 float):
        0.5 + margin / (2 * margin_scale), clipped to [0, 1]. Above 0.5 means team A wins.
    """
    input_size = 6
    output_size = 1

    def __init__(self, teams: Iterable[str], margin_scale: float = config.MARGIN_SCALE):
        self.teams: List[str] = sorted({t.strip() for t in teams if t and t.strip()})
        self.margin_scale = float(margin_scale)
        self._index = {t.casefold(): i for i, t in enumerate(self.teams)}

    @classmethod
    def from_games(cls, games: Iterable[GameRecord], margin_scale: float = config.MARGIN_SCALE):
        names = []
        for g in games:
            names.extend((g.team_a, g.team_b))
        return cls(names, margin_scale=margin_scale)

    def __contains__(self, team: str) -> bool:
        return team.strip().casefold() in self._index

    def team_index(self, team: str) -> int:
        try:
            return self._index[team.strip().casefold()]
        except KeyError:
            raise UnrecognizedEntityError(team) from None

    def canonical_name(self, team: str) -> str:
        return self.teams[self.team_index(team)]

    def _team_feature(self, team: str) -> float:
        return (self.team_index(team) + 1) / (len(self.teams) + 1)

    def encode(self, team_a: str, seed_a: int, team_b: str, seed_b: int,
               date: datetime.date, round: Round, region: Region) -> np.ndarray:
        for seed in (seed_a, seed_b):
            if not 1 <= seed <= config.MAX_SEED:
                raise ValueError(f"Seed {seed} outside 1..{config.MAX_SEED}")

        return np.array([
            self._team_feature(team_a),
            self._team_feature(team_b),
            (seed_b - seed_a) / (config.MAX_SEED - 1),  # positive when A is the better seed
            (date.year - config.BASE_YEAR) / config.YEAR_SPAN,
            Round(round).value / Round.UNKNOWN.value,
            Region(region).value / Region.UNKNOWN.value,
        ], dtype=np.float64)

    def encode_game(self, game: GameRecord) -> np.ndarray:
        return self.encode(game.team_a, game.seed_a, game.team_b, game.seed_b,
                           game.date, game.round, game.region)

    def encode_target(self, margin: float) -> float:
        return float(np.clip(0.5 + margin / (2.0 * self.margin_scale), 0.0, 1.0))

    def check_topology(self, topology):
        """Raises ConfigurationError unless `topology` can be trained on and decoded by this encoder."""
        if topology.input_size != self.input_size or topology.output_size != self.output_size:
            raise ConfigurationError(
                f"Topology {topology.layer_sizes} needs {self.input_size} inputs and {self.output_size} output"
            )
        # Targets and decode_output assume a [0, 1] output pivoting on 0.5
        if topology.output_activation != "sigmoid":
            raise ConfigurationError(
                f"Output activation must be sigmoid to encode margins, got '{topology.output_activation}'"
            )

    def decode_output(self, output: float) -> float:
        """Network output -> margin in points for team A."""
        return (float(output) - 0.5) * 2.0 * self.margin_scale

    def encode_games(self, games: List[GameRecord]) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        :return: (inputs (n, 6), targets (n, 1), raw margins (n,))
        """
        inputs = np.zeros((len(games), self.input_size), dtype=np.float64)
        targets = np.zeros((len(games), self.output_size), dtype=np.float64)
        margins = np.zeros(len(games), dtype=np.float64)
        for i, game in enumerate(games):
            inputs[i] = self.encode_game(game)
            targets[i, 0] = self.encode_target(game.margin)
            margins[i] = game.margin
        return inputs, targets, margins
