import json
import os
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import madness.config as config
from madness.ai.genetics import reproduce
from madness.ai.genome import Genome, make_generator
from madness.ai.model import NetworkTopology
from madness.ai.persistence import save_model
from madness.ai.population import Population
from madness.data.encoding import FeatureEncoder
from madness.data.games import load_games
from madness.errors import ConfigurationError
from madness.trainer.evaluator import FitnessEvaluator


@dataclass
class TrainingResult:
    best: Genome
    best_generation: int
    population: Population
    history: List[Dict[str, float]] = field(default_factory=list)


class TrainingLoop:
    """
    Initialize -> (Evaluate -> Reproduce)* -> Evaluate -> Done.

    Generation 0 is the random population; `generations` reproduction steps follow, so
    generations + 1 populations get evaluated unless the target fitness is hit first.
    The best-ever genome is tracked separately from the populations.
    """

    def __init__(self, topology: NetworkTopology, evaluator: FitnessEvaluator, ga: config.GAConfig = None,
                 encoder: Optional[FeatureEncoder] = None, log_path: Optional[str] = None,
                 checkpoint_dir: Optional[str] = None, checkpoint_every: int = 0,
                 stop_flag: Optional[threading.Event] = None, verbose: bool = True):
        self.ga = (ga or config.GAConfig()).validate()
        if evaluator.topology != topology:
            raise ConfigurationError(
                f"Evaluator topology {evaluator.topology.layer_sizes} differs from {topology.layer_sizes}"
            )
        if checkpoint_every < 0:
            raise ConfigurationError("checkpoint_every cannot be negative")

        self.topology = topology
        self.evaluator = evaluator
        self.encoder = encoder
        self.log_path = log_path
        self.checkpoint_dir = checkpoint_dir
        self.checkpoint_every = checkpoint_every
        self.stop_flag = stop_flag
        self.verbose = verbose

        self.generator = make_generator(self.ga.seed)
        self.history: List[Dict[str, float]] = []

    def _done(self, population: Population, best: Genome) -> bool:
        if population.generation >= self.ga.generations:
            return True
        target = self.ga.target_fitness
        return target is not None and best.fitness >= target

    def run(self) -> TrainingResult:
        if self.verbose:
            print(f"Starting Training: Gens={self.ga.generations}, Pop={self.ga.pop_size}, "
                  f"Params={self.topology.param_count}, Workers={self.evaluator.workers}")

        population = Population.random(self.topology, self.ga.pop_size, self.generator, self.ga.init_range)
        best: Optional[Genome] = None
        best_generation = 0

        while True:
            if self.stop_flag is not None and self.stop_flag.is_set() and best is not None:
                if self.verbose:
                    print(f"Stop requested, ending at generation {population.generation}")
                break

            self.evaluator.evaluate_population(population)

            gen_best = population.best()
            if best is None or gen_best.fitness > best.fitness:
                best = gen_best.clone()
                best_generation = population.generation

            stats = population.stats()
            stats["best_ever"] = best.fitness
            self.history.append(stats)
            self._log(stats)
            self._checkpoint(population.generation, best)

            if self._done(population, best):
                break

            population = reproduce(population, self.ga, self.generator)

        return TrainingResult(best, best_generation, population, list(self.history))

    def _log(self, stats: Dict[str, float]):
        if self.verbose:
            print(f"Gen {stats['generation']}: Best={stats['best']:.4f}, Avg={stats['average']:.4f}, "
                  f"Min={stats['worst']:.4f}, Best Ever={stats['best_ever']:.4f}")

        # Save Log to File (Overwrite each time for safety)
        if self.log_path:
            with open(self.log_path, "w") as f:
                json.dump(self.history, f, indent=4)

    def _checkpoint(self, generation: int, best: Genome):
        if not self.checkpoint_dir or not self.checkpoint_every:
            return
        if generation % self.checkpoint_every != 0:
            return
        save_path = os.path.join(self.checkpoint_dir, f"gen_{generation}_fitness_{best.fitness:.4f}.mmp")
        save_model(save_path, best, self.topology, self.encoder, generation)
        if self.verbose:
            print(f"Saved checkpoint to {save_path}")


def train(data_file=config.DATA_FILE, model_file=config.MODEL_FILE, ga: config.GAConfig = None,
          topology: NetworkTopology = None, log_path=config.LOG_FILE, checkpoint_dir=config.CHECKPOINT_DIR,
          checkpoint_every=10, verbose=True) -> TrainingResult:
    """Loads the historical results, evolves a network and saves the best one to `model_file`."""
    ga = (ga or config.GAConfig()).validate()
    topology = topology or NetworkTopology()

    if verbose:
        print(f"Loading training data from {data_file}")
    games = load_games(data_file)
    encoder = FeatureEncoder.from_games(games)
    encoder.check_topology(topology)
    if verbose:
        print(f"Loaded {len(games) // 2} games ({len(games)} records with mirroring) across {len(encoder.teams)} teams.")

    evaluator = FitnessEvaluator.from_games(topology, encoder, games, workers=ga.workers)
    loop = TrainingLoop(topology, evaluator, ga, encoder=encoder, log_path=log_path,
                        checkpoint_dir=checkpoint_dir, checkpoint_every=checkpoint_every, verbose=verbose)
    result = loop.run()

    if verbose:
        accuracy = evaluator.winner_accuracy(result.best)
        print(f"Best fitness {result.best.fitness:.4f} (generation {result.best_generation}), "
              f"winner accuracy {accuracy:.1%}")
        print(f"Saving model to {model_file}")
    save_model(model_file, result.best, topology, encoder, result.best_generation)
    return result


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser()
    parser.add_argument("--generations", type=int, default=config.GENERATIONS)
    parser.add_argument("--pop-size", type=int, default=config.POP_SIZE)
    args = parser.parse_args()
    train(ga=config.GAConfig(pop_size=args.pop_size, generations=args.generations))
