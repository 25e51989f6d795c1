from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

import torch
import torch.nn.functional as F

import madness.config as config
from madness.errors import ConfigurationError, DimensionMismatchError

ACTIVATIONS = {
    "sigmoid": torch.sigmoid,
    "tanh": torch.tanh,
    "relu": F.relu,
    "linear": lambda x: x,
}


@dataclass(frozen=True)
class NetworkTopology:
    """
    Fixed layer layout shared by every genome of a run.
    Parameters are laid out layer by layer, weights (out x in, row-major) then biases,
    which is the same order torch.nn.Linear.parameters() yields them.
    """
    input_size: int = config.INPUT_SIZE
    hidden_sizes: Tuple[int, ...] = tuple(config.HIDDEN_SIZES)
    output_size: int = config.OUTPUT_SIZE
    activation: str = config.ACTIVATION
    output_activation: str = config.OUTPUT_ACTIVATION

    def __post_init__(self):
        # Allow lists from JSON / CLI while keeping the dataclass hashable
        object.__setattr__(self, "hidden_sizes", tuple(int(h) for h in self.hidden_sizes))
        for size in self.layer_sizes:
            if size <= 0:
                raise ConfigurationError(f"Layer sizes must be positive, got {self.layer_sizes}")
        for name in (self.activation, self.output_activation):
            if name not in ACTIVATIONS:
                raise ConfigurationError(f"Unknown activation '{name}', expected one of {sorted(ACTIVATIONS)}")

    @property
    def layer_sizes(self) -> List[int]:
        return [self.input_size, *self.hidden_sizes, self.output_size]

    @property
    def layer_shapes(self) -> List[Tuple[int, int]]:
        """(out_features, in_features) for every weight matrix."""
        sizes = self.layer_sizes
        return [(sizes[i + 1], sizes[i]) for i in range(len(sizes) - 1)]

    @property
    def param_count(self) -> int:
        return sum(out * inp + out for out, inp in self.layer_shapes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_size": self.input_size,
            "hidden_sizes": list(self.hidden_sizes),
            "output_size": self.output_size,
            "activation": self.activation,
            "output_activation": self.output_activation,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "NetworkTopology":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


def unpack(topology: NetworkTopology, params: torch.Tensor) -> List[Tuple[torch.Tensor, torch.Tensor]]:
    """Slices a flat parameter vector into (weight, bias) views per layer."""
    if params.dim() != 1 or params.numel() != topology.param_count:
        raise DimensionMismatchError("parameter vector", topology.param_count, params.numel())

    layers = []
    pointer = 0
    for out_features, in_features in topology.layer_shapes:
        n_weights = out_features * in_features
        weight = params[pointer:pointer + n_weights].view(out_features, in_features)
        pointer += n_weights
        bias = params[pointer:pointer + out_features]
        pointer += out_features
        layers.append((weight, bias))
    return layers


def forward(topology: NetworkTopology, params: torch.Tensor, inputs: torch.Tensor) -> torch.Tensor:
    """
    Feed-forward pass of the network encoded by `params`.
    :param inputs: (input_size,) for a single matchup or (batch, input_size).
    :return: (output_size,) or (batch, output_size), matching the input rank.
    """
    if inputs.dim() == 0:
        raise DimensionMismatchError("input vector", topology.input_size, 1)
    if inputs.shape[-1] != topology.input_size:
        raise DimensionMismatchError("input vector", topology.input_size, inputs.shape[-1])

    layers = unpack(topology, params)
    hidden_fn = ACTIVATIONS[topology.activation]
    output_fn = ACTIVATIONS[topology.output_activation]

    x = inputs.to(params.dtype)
    with torch.no_grad():
        for i, (weight, bias) in enumerate(layers):
            x = F.linear(x, weight, bias)
            x = output_fn(x) if i == len(layers) - 1 else hidden_fn(x)
    return x


def decode(topology: NetworkTopology, params: Sequence[float], inputs: Sequence[float]) -> List[float]:
    """Plain-list convenience wrapper around forward() for a single input vector."""
    params_t = torch.as_tensor(params, dtype=torch.float64)
    inputs_t = torch.as_tensor(inputs, dtype=torch.float64)
    if inputs_t.dim() != 1:
        raise DimensionMismatchError("input vector", topology.input_size, inputs_t.numel())
    return forward(topology, params_t, inputs_t).tolist()
