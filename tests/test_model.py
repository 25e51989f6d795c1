"""
Tests for the flat-vector network decoder.
"""

import unittest

import torch

from madness.ai.model import NetworkTopology, decode, forward, unpack
from madness.errors import ConfigurationError, DimensionMismatchError


class TestTopology(unittest.TestCase):

    def test_param_count(self):
        # 6*4 + 4 + 4*1 + 1
        self.assertEqual(NetworkTopology(6, (4,), 1).param_count, 33)
        # 6*5 + 5 + 5*1 + 1
        self.assertEqual(NetworkTopology(6, (5,), 1).param_count, 41)
        self.assertEqual(NetworkTopology(5, (6,), 2).param_count, 50)
        self.assertEqual(NetworkTopology(3, (4, 2), 1).param_count, 12 + 4 + 8 + 2 + 2 + 1)

    def test_lists_are_accepted_and_hashable(self):
        topology = NetworkTopology(6, [4, 3], 1)
        self.assertEqual(topology.hidden_sizes, (4, 3))
        self.assertEqual(hash(topology), hash(NetworkTopology(6, (4, 3), 1)))

    def test_dict_round_trip(self):
        topology = NetworkTopology(6, (8, 4), 1, activation="tanh", output_activation="linear")
        self.assertEqual(NetworkTopology.from_dict(topology.to_dict()), topology)

    def test_invalid_topology(self):
        with self.assertRaises(ConfigurationError):
            NetworkTopology(0, (4,), 1)
        with self.assertRaises(ConfigurationError):
            NetworkTopology(6, (4, 0), 1)
        with self.assertRaises(ConfigurationError):
            NetworkTopology(6, (4,), 1, activation="softplus")


class TestDecode(unittest.TestCase):

    def setUp(self):
        self.topologies = [
            NetworkTopology(6, (4,), 1),
            NetworkTopology(2, (3, 3), 2, activation="tanh"),
            NetworkTopology(4, (), 1, output_activation="linear"),
        ]

    def test_valid_length_never_raises(self):
        for topology in self.topologies:
            with self.subTest(topology=topology.layer_sizes):
                for seed in range(5):
                    gen = torch.Generator().manual_seed(seed)
                    params = torch.randn(topology.param_count, generator=gen, dtype=torch.float64)
                    out = forward(topology, params, torch.zeros(topology.input_size, dtype=torch.float64))
                    self.assertEqual(out.shape, (topology.output_size,))

    def test_wrong_length_always_raises(self):
        for topology in self.topologies:
            for delta in (-topology.param_count, -1, 1, 17):
                with self.subTest(topology=topology.layer_sizes, delta=delta):
                    params = torch.zeros(topology.param_count + delta, dtype=torch.float64)
                    with self.assertRaises(DimensionMismatchError):
                        forward(topology, params, torch.zeros(topology.input_size))

    def test_wrong_input_length_raises(self):
        topology = self.topologies[0]
        params = torch.zeros(topology.param_count, dtype=torch.float64)
        with self.assertRaises(DimensionMismatchError):
            forward(topology, params, torch.zeros(topology.input_size + 1))
        with self.assertRaises(DimensionMismatchError):
            decode(topology, params.tolist(), [0.0] * (topology.input_size - 1))

    def test_scalar_input_raises_dimension_mismatch(self):
        topology = NetworkTopology(1, (2,), 1)
        params = torch.zeros(topology.param_count, dtype=torch.float64)
        with self.assertRaises(DimensionMismatchError):
            forward(topology, params, torch.tensor(0.5))

    def test_weights_before_biases_layer_order(self):
        topology = NetworkTopology(2, (1,), 1, activation="linear", output_activation="linear")
        # W1 = [1, 2], b1 = [3], W2 = [4], b2 = [5]
        params = [1.0, 2.0, 3.0, 4.0, 5.0]
        # h = 1 + 2 + 3 = 6, out = 4 * 6 + 5
        self.assertEqual(decode(topology, params, [1.0, 1.0]), [29.0])

        (w1, b1), (w2, b2) = unpack(topology, torch.tensor(params, dtype=torch.float64))
        self.assertEqual(w1.tolist(), [[1.0, 2.0]])
        self.assertEqual(b1.tolist(), [3.0])
        self.assertEqual(w2.tolist(), [[4.0]])
        self.assertEqual(b2.tolist(), [5.0])

    def test_zero_params_sigmoid_is_half(self):
        topology = NetworkTopology(6, (4,), 1)
        out = decode(topology, [0.0] * topology.param_count, [0.3] * 6)
        self.assertEqual(out, [0.5])

    def test_deterministic(self):
        topology = NetworkTopology(6, (4,), 1)
        gen = torch.Generator().manual_seed(3)
        params = torch.randn(topology.param_count, generator=gen, dtype=torch.float64)
        x = torch.rand(6, generator=gen, dtype=torch.float64)
        first = forward(topology, params, x)
        second = forward(topology, params, x)
        self.assertTrue(torch.equal(first, second))

    def test_batch_matches_single(self):
        topology = NetworkTopology(6, (4,), 1)
        gen = torch.Generator().manual_seed(4)
        params = torch.randn(topology.param_count, generator=gen, dtype=torch.float64)
        batch = torch.rand(5, 6, generator=gen, dtype=torch.float64)
        batched = forward(topology, params, batch)
        for i in range(5):
            self.assertTrue(torch.allclose(batched[i], forward(topology, params, batch[i])))

    def test_params_untouched(self):
        topology = NetworkTopology(6, (4,), 1)
        params = torch.linspace(-1, 1, topology.param_count, dtype=torch.float64)
        before = params.clone()
        forward(topology, params, torch.ones(6))
        self.assertTrue(torch.equal(params, before))


if __name__ == '__main__':
    unittest.main(verbosity=2)
