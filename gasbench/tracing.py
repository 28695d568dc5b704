"""Perfetto trace of a benchmark run.

One slice per trial on a "Candidate" and a "Baseline" track, plus gas counter
tracks. Timestamps come from a manual clock (one tick per trial) so two runs
of the same workload produce identical traces.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict

from retrobus_perfetto import PerfettoTraceBuilder

from .accumulator import TrialResult

logger = logging.getLogger(__name__)


class TrialTracer:
    TICK_NS = 1_000_000  # one trial per millisecond of trace time

    def __init__(self, path: str | Path, title: str = "gasbench") -> None:
        self.path = Path(path)
        self._builder = PerfettoTraceBuilder(title)
        self._tracks: Dict[str, int] = {
            side: self._builder.add_thread(side) for side in ("Candidate", "Baseline")
        }
        self._counters: Dict[str, int] = {
            side: self._builder.add_counter_track(f"{side} gas", "gas")
            for side in ("Candidate", "Baseline")
        }
        self.trials = 0

    def record(self, trial: TrialResult, candidate: str, baseline: str) -> None:
        start = trial.index * self.TICK_NS
        for side, entry_point, gas in (
            ("Candidate", candidate, trial.candidate_gas),
            ("Baseline", baseline, trial.baseline_gas),
        ):
            track = self._tracks[side]
            event = self._builder.begin_slice(track, entry_point, start)
            event.add_annotations(
                {
                    "trial": trial.index,
                    "actions": trial.action_count,
                    "payload_size": trial.payload_size,
                    "gas": gas,
                }
            )
            self._builder.end_slice(track, start + self.TICK_NS - 1)
            self._builder.update_counter(self._counters[side], gas, start)
        self.trials += 1

    def save(self) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._builder.save(str(self.path))
        logger.info("saved trace with %d trials to %s", self.trials, self.path)
        return self.path
