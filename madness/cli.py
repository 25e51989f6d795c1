import argparse
import sys

import pandas as pd

import madness.config as config
from madness.ai.model import NetworkTopology
from madness.ai.predictor import PredictionRequest, Predictor
from madness.data.games import Region, Round
from madness.errors import MadnessError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mmp", description="March Madness Game Predictor")
    sub = parser.add_subparsers(dest="command", required=True)

    train_p = sub.add_parser("train", help="Train on the historical results .csv")
    train_p.add_argument("--data", default=config.DATA_FILE)
    train_p.add_argument("--model", default=config.MODEL_FILE)
    train_p.add_argument("--generations", type=int, default=config.GENERATIONS)
    train_p.add_argument("--pop-size", type=int, default=config.POP_SIZE)
    train_p.add_argument("--elitism", type=int, default=None, help="Default: 10%% of the population, at least 2")
    train_p.add_argument("--tournament-size", type=int, default=config.TOURNAMENT_SIZE)
    train_p.add_argument("--crossover", choices=config.CROSSOVER_KINDS, default="uniform")
    train_p.add_argument("--crossover-rate", type=float, default=config.CROSSOVER_RATE)
    train_p.add_argument("--mutation-rate", type=float, default=config.MUTATION_RATE)
    train_p.add_argument("--mutation-strength", type=float, default=config.MUTATION_STRENGTH)
    train_p.add_argument("--target-fitness", type=float, default=None)
    train_p.add_argument("--hidden", type=int, nargs="+", default=config.HIDDEN_SIZES)
    train_p.add_argument("--activation", default=config.ACTIVATION)
    train_p.add_argument("--seed", type=int, default=None)
    train_p.add_argument("--workers", type=int, default=None)
    train_p.add_argument("--log", default=config.LOG_FILE)
    train_p.add_argument("--checkpoint-every", type=int, default=10)
    train_p.add_argument("--quiet", action="store_true")

    predict_p = sub.add_parser("predict", help="Use a model to predict a game")
    predict_p.add_argument("team_a")
    predict_p.add_argument("seed_a", type=int)
    predict_p.add_argument("team_b")
    predict_p.add_argument("seed_b", type=int)
    predict_p.add_argument("date", help="Game date, e.g. 3/18/2021")
    predict_p.add_argument("round", help="e.g. 'Round of 64' or R64")
    predict_p.add_argument("region", nargs="?", default="", help="e.g. East (optional)")
    predict_p.add_argument("--model", default=config.MODEL_FILE)

    plot_p = sub.add_parser("plot", help="Plot the training log")
    plot_p.add_argument("--log", default=config.LOG_FILE)
    plot_p.add_argument("--output", default="training_curve.png")

    return parser


def run_train(args):
    # Heavy imports only when training
    from madness.trainer.train import train

    ga = config.GAConfig(
        pop_size=args.pop_size,
        generations=args.generations,
        elitism=args.elitism,
        tournament_size=args.tournament_size,
        crossover_rate=args.crossover_rate,
        crossover_kind=args.crossover,
        mutation_rate=args.mutation_rate,
        mutation_strength=args.mutation_strength,
        target_fitness=args.target_fitness,
        seed=args.seed,
        workers=args.workers,
    )
    topology = NetworkTopology(hidden_sizes=tuple(args.hidden), activation=args.activation)
    train(data_file=args.data, model_file=args.model, ga=ga, topology=topology, log_path=args.log,
          checkpoint_every=args.checkpoint_every, verbose=not args.quiet)


def run_predict(args):
    round_ = Round.parse(args.round)
    if round_ == Round.UNKNOWN:
        print(f"Warning: unknown round '{args.round}', predicting without round information", file=sys.stderr)

    request = PredictionRequest(
        team_a=args.team_a,
        seed_a=args.seed_a,
        team_b=args.team_b,
        seed_b=args.seed_b,
        date=pd.to_datetime(args.date, format="mixed").date(),
        round=round_,
        region=Region.parse(args.region),
    )

    print("Predicting!")
    result = Predictor.from_file(args.model).predict(request)

    print(f"Predicted margin for {result.team_a}: {result.margin:+.1f}")
    print(f"Win probability for {result.team_a}: {result.win_probability:.2f}")
    print(f"Predicted winner: {result.winner}")


def run_plot(args):
    from madness.trainer.plot_results import plot_training_log
    if plot_training_log(args.log, args.output) is None:
        raise FileNotFoundError(f"Training log {args.log} not found")


COMMANDS = {
    "train": run_train,
    "predict": run_predict,
    "plot": run_plot,
}


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        COMMANDS[args.command](args)
    except (MadnessError, ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
