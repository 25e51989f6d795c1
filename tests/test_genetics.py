"""
Tests for selection, crossover, mutation and generation replacement.
"""

import unittest

import torch

from madness.ai.genetics import (
    crossover,
    mutate,
    reproduce,
    select_elites,
    single_point_crossover,
    tournament_select,
    uniform_crossover,
)
from madness.ai.genome import Genome, make_generator
from madness.ai.model import NetworkTopology
from madness.ai.population import Population
from madness.config import GAConfig


def _population(fitnesses, length=8):
    genomes = [Genome(torch.full((length,), float(i), dtype=torch.float64), f) for i, f in enumerate(fitnesses)]
    return Population(genomes)


class TestCrossover(unittest.TestCase):

    def setUp(self):
        self.gen = make_generator(0)
        self.a = torch.zeros(33, dtype=torch.float64)
        self.b = torch.ones(33, dtype=torch.float64)

    def test_single_point_preserves_length(self):
        for length in (2, 3, 33, 100):
            a = torch.zeros(length, dtype=torch.float64)
            b = torch.ones(length, dtype=torch.float64)
            for _ in range(20):
                child_a, child_b = single_point_crossover(a, b, self.gen)
                self.assertEqual(child_a.numel(), length)
                self.assertEqual(child_b.numel(), length)

    def test_single_point_segments(self):
        for _ in range(20):
            child_a, child_b = single_point_crossover(self.a, self.b, self.gen)
            point = int((child_a == 0).sum().item())
            self.assertTrue(1 <= point <= 32)
            # First segment from parent A, second from parent B
            self.assertTrue(torch.equal(child_a[:point], self.a[:point]))
            self.assertTrue(torch.equal(child_a[point:], self.b[point:]))
            self.assertTrue(torch.equal(child_a + child_b, torch.ones(33, dtype=torch.float64)))

    def test_uniform_takes_genes_from_parents(self):
        child = uniform_crossover(self.a, self.b, self.gen)
        self.assertEqual(child.shape, self.a.shape)
        self.assertTrue(bool(((child == 0) | (child == 1)).all()))

    def test_rate_zero_clones_first_parent(self):
        for kind in ("uniform", "single_point"):
            children = crossover(self.a, self.b, self.gen, rate=0.0, kind=kind)
            self.assertEqual(len(children), 1)
            child = children[0]
            self.assertTrue(torch.equal(child, self.a))
            self.assertIsNot(child, self.a)

    def test_single_point_returns_both_children(self):
        children = crossover(self.a, self.b, self.gen, rate=1.0, kind="single_point")
        self.assertEqual(len(children), 2)
        self.assertTrue(torch.equal(children[0] + children[1], torch.ones(33, dtype=torch.float64)))

    def test_uniform_returns_one_child(self):
        self.assertEqual(len(crossover(self.a, self.b, self.gen, rate=1.0, kind="uniform")), 1)

    def test_mismatched_parents(self):
        with self.assertRaises(ValueError):
            crossover(self.a, torch.zeros(10, dtype=torch.float64), self.gen)


class TestMutation(unittest.TestCase):

    def setUp(self):
        self.gen = make_generator(1)
        self.vec = torch.linspace(-1, 1, 50, dtype=torch.float64)

    def test_probability_zero_is_identity(self):
        out = mutate(self.vec, self.gen, mutation_rate=0.0, mutation_strength=1.0)
        self.assertTrue(torch.equal(out, self.vec))

    def test_probability_one_changes_every_gene(self):
        out = mutate(self.vec, self.gen, mutation_rate=1.0, mutation_strength=0.5)
        self.assertTrue(bool((out != self.vec).all()))

    def test_input_not_modified(self):
        before = self.vec.clone()
        mutate(self.vec, self.gen, mutation_rate=1.0, mutation_strength=0.5)
        self.assertTrue(torch.equal(self.vec, before))

    def test_bounds(self):
        out = mutate(self.vec, self.gen, mutation_rate=1.0, mutation_strength=10.0, bounds=(-2.0, 2.0))
        self.assertLessEqual(out.max().item(), 2.0)
        self.assertGreaterEqual(out.min().item(), -2.0)


class TestSelection(unittest.TestCase):

    def test_tournament_picks_fittest_candidate(self):
        gen = make_generator(2)
        fitnesses = [0.1, 0.9, 0.3, 0.5]
        # With k equal to a large number every index is almost surely sampled
        for _ in range(10):
            self.assertEqual(tournament_select(fitnesses, gen, k=64), 1)

    def test_tournament_tie_goes_to_lowest_index(self):
        gen = make_generator(3)
        fitnesses = [0.2, 0.7, 0.7, 0.7]
        for _ in range(10):
            self.assertEqual(tournament_select(fitnesses, gen, k=64), 1)

    def test_k_one_is_uniform_pick(self):
        gen = make_generator(4)
        picks = {tournament_select([0.5] * 5, gen, k=1) for _ in range(200)}
        self.assertEqual(picks, set(range(5)))

    def test_unevaluated_population_refused(self):
        pop = _population([0.5, None, 0.2])
        with self.assertRaises(RuntimeError):
            reproduce(pop, GAConfig(pop_size=3, elitism=1), make_generator(0))

    def test_elites_sorted_and_copied(self):
        pop = _population([0.1, 0.8, 0.8, 0.4])
        elites = select_elites(pop, 3)
        self.assertEqual([e.fitness for e in elites], [0.8, 0.8, 0.4])
        # Stable: index 1 before index 2
        self.assertEqual(elites[0].params[0].item(), 1.0)
        self.assertEqual(elites[1].params[0].item(), 2.0)
        self.assertIsNot(elites[0].params, pop[1].params)


class TestReproduce(unittest.TestCase):

    def setUp(self):
        self.topology = NetworkTopology(6, (4,), 1)
        self.config = GAConfig(pop_size=12, elitism=3, mutation_rate=0.5, mutation_strength=0.3).validate()

    def _evaluated(self, seed):
        gen = make_generator(seed)
        pop = Population.random(self.topology, self.config.pop_size, gen)
        for i, g in enumerate(pop):
            g.fitness = float(i % 5)
        return pop, gen

    def test_size_and_length_invariant(self):
        pop, gen = self._evaluated(0)
        for _ in range(5):
            nxt = reproduce(pop, self.config, gen)
            self.assertEqual(len(nxt), len(pop))
            self.assertEqual(nxt.generation, pop.generation + 1)
            for g in nxt:
                self.assertEqual(len(g), self.topology.param_count)
            for i, g in enumerate(nxt):
                g.fitness = float(i)
            pop = nxt

    def test_elites_survive_unchanged(self):
        pop, gen = self._evaluated(1)
        best = pop.best()
        nxt = reproduce(pop, self.config, gen)
        self.assertTrue(torch.equal(nxt[0].params, best.params))
        self.assertEqual(nxt[0].fitness, best.fitness)
        self.assertIsNone(nxt[-1].fitness)

    def test_old_population_untouched(self):
        pop, gen = self._evaluated(2)
        snapshot = [g.params.clone() for g in pop]
        reproduce(pop, self.config, gen)
        for before, g in zip(snapshot, pop):
            self.assertTrue(torch.equal(before, g.params))

    def test_single_point_keeps_both_children(self):
        # 9 free slots: four full pairs, then the second child of the last pair is dropped
        config = GAConfig(pop_size=12, elitism=3, crossover_rate=1.0, crossover_kind="single_point",
                          mutation_rate=0.0).validate()
        length = self.topology.param_count
        pop = Population([Genome(torch.full((length,), float(i), dtype=torch.float64), float(i % 5))
                          for i in range(config.pop_size)])
        nxt = reproduce(pop, config, make_generator(6))
        self.assertEqual(len(nxt), config.pop_size)
        for first in range(config.elitism, config.pop_size - 1, 2):
            pair_sum = nxt[first].params + nxt[first + 1].params
            # Complementary children: every gene position sums to the same two parents
            self.assertTrue(torch.equal(pair_sum, torch.full((length,), pair_sum[0].item(), dtype=torch.float64)))

    def test_seeded_runs_are_reproducible(self):
        pop_a, gen_a = self._evaluated(5)
        pop_b, gen_b = self._evaluated(5)
        next_a = reproduce(pop_a, self.config, gen_a)
        next_b = reproduce(pop_b, self.config, gen_b)
        for a, b in zip(next_a, next_b):
            self.assertTrue(torch.equal(a.params, b.params))


if __name__ == '__main__':
    unittest.main(verbosity=2)
