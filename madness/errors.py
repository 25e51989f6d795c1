class MadnessError(Exception):
    """Base class for every predictor failure."""


class ConfigurationError(MadnessError, ValueError):
    """Invalid topology or GA hyperparameters. Raised before any generation runs."""


class DimensionMismatchError(MadnessError, ValueError):
    """Parameter or input vector length disagrees with the topology."""

    def __init__(self, what: str, expected: int, actual: int):
        self.what = what
        self.expected = expected
        self.actual = actual
        super().__init__(f"{what}: expected length {expected}, got {actual}")


class UnrecognizedEntityError(MadnessError, ValueError):
    """A team name the feature encoder has never seen."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unrecognized team '{name}'")


class StaleStateError(MadnessError):
    """Persisted model cannot be used with the current topology."""
