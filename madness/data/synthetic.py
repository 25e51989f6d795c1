import datetime
import random
from typing import List, Optional

from madness.data.games import GameRecord, Region, Round


def make_teams(count: int) -> List[str]:
    return [f"Team {i:02d}" for i in range(count)]


def synthetic_games(num_games: int, teams: Optional[List[str]] = None, margin: int = 10,
                    seed: int = 0, mirror: bool = True, min_gap: int = 1) -> List[GameRecord]:
    """
    Games where the better (lower) seed always wins by exactly `margin` points.
    The two seeds always differ by at least `min_gap`.
    """
    if not 1 <= min_gap <= 15:
        raise ValueError(f"min_gap must be within 1..15, got {min_gap}")
    rng = random.Random(seed)
    teams = teams or make_teams(16)

    games = []
    for _ in range(num_games):
        team_a, team_b = rng.sample(teams, 2)
        seed_a, seed_b = rng.sample(range(1, 17), 2)
        while abs(seed_a - seed_b) < min_gap:
            seed_a, seed_b = rng.sample(range(1, 17), 2)
        winner_score = rng.randint(60, 90)
        if seed_a < seed_b:
            score_a, score_b = winner_score, winner_score - margin
        else:
            score_a, score_b = winner_score - margin, winner_score

        game = GameRecord(
            date=datetime.date(rng.randint(1985, 2024), 3, rng.randint(14, 31)),
            round=rng.choice([r for r in Round if r != Round.UNKNOWN]),
            region=rng.choice([r for r in Region if r != Region.UNKNOWN]),
            team_a=team_a, seed_a=seed_a, score_a=score_a,
            team_b=team_b, seed_b=seed_b, score_b=score_b,
        )
        games.append(game)
        if mirror:
            games.append(game.mirrored())
    return games
