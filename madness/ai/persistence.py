import io
import os
import pickle
from typing import NamedTuple, Optional

import torch

import madness.config as config
from madness.ai.genome import Genome
from madness.ai.model import NetworkTopology
from madness.data.encoding import FeatureEncoder
from madness.errors import ConfigurationError, StaleStateError

FORMAT_VERSION = 1


class SavedModel(NamedTuple):
    genome: Genome
    topology: NetworkTopology
    encoder: Optional[FeatureEncoder]  # None when saved without a team vocabulary
    generation: int


def _to_state(genome: Genome, topology: NetworkTopology, encoder: Optional[FeatureEncoder], generation: int) -> dict:
    return {
        "format": FORMAT_VERSION,
        "topology": topology.to_dict(),
        "params": genome.params.detach().to(torch.float64).clone(),
        "fitness": genome.fitness,
        "generation": generation,
        "teams": list(encoder.teams) if encoder else [],
        "margin_scale": encoder.margin_scale if encoder else None,
    }


def _from_state(state, topology: Optional[NetworkTopology]) -> SavedModel:
    if not isinstance(state, dict) or state.get("format") != FORMAT_VERSION:
        raise StaleStateError("Unrecognized model format")
    try:
        stored_topology = NetworkTopology.from_dict(state["topology"])
        params = state["params"]
    except (KeyError, TypeError, ConfigurationError) as e:
        raise StaleStateError(f"Model file is incomplete or corrupt: {e}") from e

    if not isinstance(params, torch.Tensor):
        raise StaleStateError("Model file does not hold a parameter tensor")
    if params.dim() != 1 or params.numel() != stored_topology.param_count:
        raise StaleStateError(
            f"Saved genome has {params.numel()} parameters but its topology "
            f"{stored_topology.layer_sizes} expects {stored_topology.param_count}"
        )
    if topology is not None and topology != stored_topology:
        raise StaleStateError(
            f"Saved model was trained for topology {stored_topology.layer_sizes} "
            f"({stored_topology.param_count} parameters), current topology is "
            f"{topology.layer_sizes} ({topology.param_count} parameters)"
        )

    encoder = None
    if state.get("teams"):
        encoder = FeatureEncoder(state["teams"], margin_scale=state.get("margin_scale") or config.MARGIN_SCALE)

    genome = Genome(params.to(torch.float64), state.get("fitness"))
    return SavedModel(genome, stored_topology, encoder, int(state.get("generation", 0)))


def dumps(genome: Genome, topology: NetworkTopology, encoder: Optional[FeatureEncoder] = None,
          generation: int = 0) -> bytes:
    genome.check(topology)
    buffer = io.BytesIO()
    torch.save(_to_state(genome, topology, encoder, generation), buffer)
    return buffer.getvalue()


def loads(blob: bytes, topology: Optional[NetworkTopology] = None) -> SavedModel:
    """
    :param topology: When given, the saved model must have been trained for exactly this topology.
    :raises StaleStateError: parameter count and topology disagree.
    """
    try:
        state = torch.load(io.BytesIO(blob), weights_only=True)
    except (RuntimeError, EOFError, ValueError, pickle.UnpicklingError) as e:
        raise StaleStateError(f"Cannot read model: {e}") from e
    return _from_state(state, topology)


def save_model(path: str, genome: Genome, topology: NetworkTopology, encoder: Optional[FeatureEncoder] = None,
               generation: int = 0):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "wb") as f:
        f.write(dumps(genome, topology, encoder, generation))


def load_model(path: str, topology: Optional[NetworkTopology] = None) -> SavedModel:
    with open(path, "rb") as f:
        return loads(f.read(), topology)
