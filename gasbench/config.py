"""Benchmark configuration."""

from __future__ import annotations

import dataclasses
import json
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from .decoding.actions import DEFAULT_BUFFER_SIZE
from .errors import ConfigError
from .runtime.gas import DEFAULT_GAS_LIMIT
from .runtime.program import BUILTIN_ARTIFACT

DEFAULT_TRIALS = 24

# Environment variable -> field name. Values are parsed as integers.
ENV_OVERRIDES = {
    "GASBENCH_TRIALS": "trials",
    "GASBENCH_SEED": "seed",
    "GASBENCH_ACTIONS": "actions_per_trial",
    "GASBENCH_BUFFER_SIZE": "buffer_size",
}


@dataclass(frozen=True)
class BenchConfig:
    """What to compare and how to generate the workload."""

    candidate_entry: str = "fuzz_map_heavy"
    baseline_entry: str = "fuzz_map_heavy_old"
    candidate_artifact: str = BUILTIN_ARTIFACT
    baseline_artifact: Optional[str] = None  # defaults to the candidate artifact
    trials: int = DEFAULT_TRIALS
    seed: int = 0
    actions_per_trial: Optional[int] = None  # None consumes a random-length buffer
    buffer_size: int = DEFAULT_BUFFER_SIZE
    gas_limit: int = DEFAULT_GAS_LIMIT
    expected: Optional[Tuple[int, int]] = None
    tolerance: Optional[float] = None
    trace_file: Optional[str] = None

    def __post_init__(self) -> None:
        if self.expected is not None:
            try:
                pair = tuple(self.expected)
            except TypeError:
                raise ConfigError(
                    f"expected must be a (candidate, baseline) pair: {self.expected!r}"
                ) from None
            object.__setattr__(self, "expected", pair)
        self.validate()

    def _check_int(self, name: str, *, optional: bool = False) -> None:
        value = getattr(self, name)
        if value is None and optional:
            return
        # bool is an int subclass but never a valid count.
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"{name} must be an integer, got {value!r}")

    def validate(self) -> None:
        for name in ("trials", "seed", "buffer_size", "gas_limit"):
            self._check_int(name)
        self._check_int("actions_per_trial", optional=True)
        if self.tolerance is not None and (
            isinstance(self.tolerance, bool) or not isinstance(self.tolerance, (int, float))
        ):
            raise ConfigError(f"tolerance must be a number, got {self.tolerance!r}")
        if self.expected is not None:
            if len(self.expected) != 2:
                raise ConfigError(
                    f"expected must be a (candidate, baseline) pair: {self.expected}"
                )
            for value in self.expected:
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ConfigError(f"expected totals must be integers, got {value!r}")

        if self.trials < 0:
            raise ConfigError(f"trials must be non-negative, got {self.trials}")
        if self.seed < 0:
            raise ConfigError(f"seed must be non-negative, got {self.seed}")
        if self.actions_per_trial is not None and self.actions_per_trial < 0:
            raise ConfigError(
                f"actions_per_trial must be non-negative, got {self.actions_per_trial}"
            )
        if self.buffer_size <= 0:
            raise ConfigError(f"buffer_size must be positive, got {self.buffer_size}")
        if self.gas_limit <= 0:
            raise ConfigError(f"gas_limit must be positive, got {self.gas_limit}")
        if self.tolerance is not None and self.tolerance < 0:
            raise ConfigError(f"tolerance must be non-negative, got {self.tolerance}")

    @property
    def resolved_baseline_artifact(self) -> str:
        return self.baseline_artifact or self.candidate_artifact

    def scenario_key(self) -> str:
        """Stable name for the workload, used to pin regression totals."""

        actions = "rest" if self.actions_per_trial is None else str(self.actions_per_trial)
        return (
            f"{self.candidate_artifact}:{self.candidate_entry}"
            f"|{self.resolved_baseline_artifact}:{self.baseline_entry}"
            f"|seed={self.seed}|trials={self.trials}|actions={actions}"
            f"|buffer={self.buffer_size}"
        )

    def replace(self, **changes) -> "BenchConfig":
        return dataclasses.replace(self, **changes)

    def with_env(self, environ: Optional[Mapping[str, str]] = None) -> "BenchConfig":
        env = os.environ if environ is None else environ
        changes = {}
        for var, name in ENV_OVERRIDES.items():
            raw = env.get(var)
            if raw is None or raw == "":
                continue
            try:
                changes[name] = int(raw, 0)
            except ValueError:
                raise ConfigError(f"{var} must be an integer, got {raw!r}") from None
        return self.replace(**changes) if changes else self

    def to_dict(self) -> dict:
        data = dataclasses.asdict(self)
        if self.expected is not None:
            data["expected"] = list(self.expected)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "BenchConfig":
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown config keys: {sorted(unknown)}")
        return cls(**data)

    def save(self, path: str) -> None:
        """Save configuration to JSON file."""
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: str) -> "BenchConfig":
        """Load configuration from JSON file."""
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Cannot load config {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Config {path} must hold a JSON object")
        return cls.from_dict(data)
