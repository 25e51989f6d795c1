import datetime
import re
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import List

import pandas as pd


class Round(IntEnum):
    OPENING = 0
    R64 = 1
    R32 = 2
    SWEET16 = 3
    ELITE8 = 4
    SEMIS = 5
    CHAMPIONSHIP = 6
    UNKNOWN = 7

    @classmethod
    def parse(cls, text) -> "Round":
        key = _normalize(text)
        if key in ROUND_NAMES:
            return ROUND_NAMES[key]
        if key.upper() in cls.__members__:
            return cls[key.upper()]
        return cls.UNKNOWN


class Region(IntEnum):
    WEST = 0
    EAST = 1
    MIDWEST = 2
    SOUTH = 3
    SOUTHEAST = 4
    SOUTHWEST = 5
    UNKNOWN = 6

    @classmethod
    def parse(cls, text) -> "Region":
        key = _normalize(text).upper()
        return cls[key] if key in cls.__members__ else cls.UNKNOWN


def _normalize(text) -> str:
    if text is None or (isinstance(text, float) and pd.isna(text)):
        return ""
    return " ".join(str(text).split()).lower()


ROUND_LABELS = {
    Round.OPENING: "Opening Round",
    Round.R64: "Round of 64",
    Round.R32: "Round of 32",
    Round.SWEET16: "Sweet Sixteen",
    Round.ELITE8: "Elite Eight",
    Round.SEMIS: "National Semifinals",
    Round.CHAMPIONSHIP: "National Championship",
}

ROUND_NAMES = {label.lower(): r for r, label in ROUND_LABELS.items()}
ROUND_NAMES.update({
    "first four": Round.OPENING,
    "sweet 16": Round.SWEET16,
    "elite 8": Round.ELITE8,
    "final four": Round.SEMIS,
    "championship": Round.CHAMPIONSHIP,
})

# Canonical CSV header -> GameRecord field
COLUMNS = {
    "date": "date",
    "round": "round",
    "region": "region",
    "winning seed": "seed_a",
    "winner": "team_a",
    "winning score": "score_a",
    "losing seed": "seed_b",
    "loser": "team_b",
    "losing score": "score_b",
    "overtime": "overtime",
}


@dataclass(frozen=True)
class GameRecord:
    """One historical game seen from team A's side."""
    date: datetime.date
    round: Round
    region: Region
    team_a: str
    seed_a: int
    score_a: int
    team_b: str
    seed_b: int
    score_b: int
    overtime: int = 0

    @property
    def margin(self) -> int:
        return self.score_a - self.score_b

    def mirrored(self) -> "GameRecord":
        return replace(
            self,
            team_a=self.team_b, seed_a=self.seed_b, score_a=self.score_b,
            team_b=self.team_a, seed_b=self.seed_a, score_b=self.score_a,
        )


def parse_overtime(text) -> int:
    """'' -> 0, 'OT' -> 1, '2 OT' -> 2"""
    key = _normalize(text)
    if not key:
        return 0
    match = re.match(r"^(\d+)\s*ot$", key)
    if match:
        return int(match.group(1))
    if key == "ot":
        return 1
    raise ValueError(f"Cannot parse overtime value '{text}'")


def load_games(csv_file: str, mirror: bool = True) -> List[GameRecord]:
    """
    Loads the historical results table.
    With mirror=True every game is added twice (winner first, then loser first) so the
    network does not learn that team A always wins.
    """
    df = pd.read_csv(csv_file, dtype=str, keep_default_na=False)
    df.columns = [_normalize(c).replace("_", " ") for c in df.columns]

    missing = [c for c in COLUMNS if c != "overtime" and c not in df.columns]
    if missing:
        raise ValueError(f"{csv_file} is missing columns: {missing}")

    df = df.rename(columns=COLUMNS)
    if "overtime" not in df.columns:
        df["overtime"] = ""
    df = df[list(COLUMNS.values())]
    dates = pd.to_datetime(df["date"], format="mixed")

    games = []
    for row, date in zip(df.itertuples(index=False), dates):
        game = GameRecord(
            date=date.date(),
            round=Round.parse(row.round),
            region=Region.parse(row.region),
            team_a=row.team_a.strip(),
            seed_a=int(row.seed_a),
            score_a=int(row.score_a),
            team_b=row.team_b.strip(),
            seed_b=int(row.seed_b),
            score_b=int(row.score_b),
            overtime=parse_overtime(row.overtime),
        )
        games.append(game)
        if mirror:
            games.append(game.mirrored())
    return games


def save_games(games: List[GameRecord], csv_file: str):
    """Writes records in the same winner/loser layout load_games() reads."""
    rows = []
    for g in games:
        if g.margin < 0:
            g = g.mirrored()
        rows.append({
            "Date": g.date.strftime("%m/%d/%Y"),
            "Round": ROUND_LABELS.get(g.round, ""),
            "Region": g.region.name.title() if g.region != Region.UNKNOWN else "",
            "Winning Seed": g.seed_a,
            "Winner": g.team_a,
            "Winning Score": g.score_a,
            "Losing Seed": g.seed_b,
            "Loser": g.team_b,
            "Losing Score": g.score_b,
            "Overtime": f"{g.overtime} OT" if g.overtime else "",
        })
    pd.DataFrame(rows).to_csv(csv_file, index=False)
