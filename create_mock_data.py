import argparse

from madness.data.games import save_games
from madness.data.synthetic import make_teams, synthetic_games

# Synthetic tournament history: the better seed always wins by a fixed margin.
# Handy for trying `mmp train` without the real results file.

parser = argparse.ArgumentParser()
parser.add_argument("--games", type=int, default=500)
parser.add_argument("--teams", type=int, default=32)
parser.add_argument("--margin", type=int, default=10)
parser.add_argument("--seed", type=int, default=0)
parser.add_argument("--output", default="mock_results.csv")
args = parser.parse_args()

games = synthetic_games(args.games, make_teams(args.teams), margin=args.margin, seed=args.seed, mirror=False)
save_games(games, args.output)

print(f"Wrote {len(games)} synthetic games to {args.output}.")
