"""Per-run gas accumulation for the candidate/baseline pair."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import numpy as np

from .errors import GasMismatch


@dataclass(frozen=True)
class TrialResult:
    """One generated action sequence and the gas each side burnt on it."""

    index: int
    action_count: int
    payload_size: int
    candidate_gas: int
    baseline_gas: int

    @property
    def delta(self) -> int:
        return self.candidate_gas - self.baseline_gas


@dataclass
class GasTotals:
    candidate: int = 0
    baseline: int = 0
    trials: List[TrialResult] = field(default_factory=list)

    def record(self, trial: TrialResult) -> None:
        if trial.candidate_gas < 0 or trial.baseline_gas < 0:
            raise ValueError(
                f"Trial {trial.index} reported negative gas: "
                f"{trial.candidate_gas}/{trial.baseline_gas}"
            )
        self.candidate += trial.candidate_gas
        self.baseline += trial.baseline_gas
        self.trials.append(trial)

    def as_pair(self) -> Tuple[int, int]:
        return self.candidate, self.baseline

    @property
    def delta(self) -> int:
        return self.candidate - self.baseline

    @property
    def ratio(self) -> float:
        if self.baseline == 0:
            return float("inf") if self.candidate else 1.0
        return self.candidate / self.baseline

    def assert_matches(self, expected: Tuple[int, int]) -> None:
        """Bit-for-bit equality with a pinned ``(candidate, baseline)`` pair."""

        if self.as_pair() != tuple(expected):
            raise GasMismatch(
                "Gas totals differ from the pinned values",
                candidate=self.candidate,
                baseline=self.baseline,
                expected=(expected[0], expected[1]),
            )

    def assert_within(self, rel_tolerance: float) -> None:
        """Candidate within ``rel_tolerance`` of baseline, relative to baseline."""

        if rel_tolerance < 0:
            raise ValueError(f"Tolerance must be non-negative, got {rel_tolerance}")
        allowed = rel_tolerance * self.baseline
        if abs(self.delta) > allowed:
            raise GasMismatch(
                f"Candidate diverges from baseline by {self.delta} "
                f"(allowed {allowed:.0f}, ratio {self.ratio:.4f})",
                candidate=self.candidate,
                baseline=self.baseline,
            )

    def summary(self) -> Dict[str, Dict[str, float]]:
        out: Dict[str, Dict[str, float]] = {}
        for side in ("candidate", "baseline"):
            samples = np.array(
                [getattr(t, f"{side}_gas") for t in self.trials], dtype=np.float64
            )
            if samples.size == 0:
                out[side] = {"mean": 0.0, "std": 0.0, "min": 0.0, "max": 0.0}
                continue
            out[side] = {
                "mean": float(samples.mean()),
                "std": float(samples.std()),
                "min": float(samples.min()),
                "max": float(samples.max()),
            }
        return out

    def to_dict(self) -> dict:
        return {
            "candidate": self.candidate,
            "baseline": self.baseline,
            "delta": self.delta,
            "ratio": self.ratio,
            "trials": [
                {
                    "index": t.index,
                    "actions": t.action_count,
                    "payload_size": t.payload_size,
                    "candidate": t.candidate_gas,
                    "baseline": t.baseline_gas,
                }
                for t in self.trials
            ],
            "summary": self.summary(),
        }
