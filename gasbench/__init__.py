"""
Deterministic differential gas benchmarks for keyed collections.

A seeded byte stream is decoded into weighted action sequences (map, set and
ordered-map flavors over three mock value shapes), the same encoded sequence
is submitted to a candidate and a baseline deployment, and the gas each side
burns is accumulated for comparison or regression pinning.
"""

from .accumulator import GasTotals, TrialResult  # noqa: F401
from .config import BenchConfig  # noqa: F401
from .errors import (  # noqa: F401
    BenchError,
    CodecError,
    ConfigError,
    DeploymentError,
    GasExceeded,
    GasMismatch,
    SubmissionError,
)
from .harness import DifferentialRunner, run_benchmark  # noqa: F401
from .mocks import HeavyMock, LightDenseMock, LightSparseMock  # noqa: F401

__all__ = [
    "BenchConfig",
    "BenchError",
    "CodecError",
    "ConfigError",
    "DeploymentError",
    "DifferentialRunner",
    "GasExceeded",
    "GasMismatch",
    "GasTotals",
    "HeavyMock",
    "LightDenseMock",
    "LightSparseMock",
    "SubmissionError",
    "TrialResult",
    "run_benchmark",
]
