"""Pinned regression totals, keyed by workload."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

from .accumulator import GasTotals
from .errors import ConfigError, GasMismatch

logger = logging.getLogger(__name__)


class BaselineStore:
    """JSON file mapping a scenario key to a recorded (candidate, baseline) pair."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._pins: Dict[str, Tuple[int, int]] = {}
        if self.path.exists():
            self._load()

    def _load(self) -> None:
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
            self._pins = {
                key: (int(pair[0]), int(pair[1])) for key, pair in data.items()
            }
        except (
            OSError,
            json.JSONDecodeError,
            AttributeError,
            TypeError,
            IndexError,
            ValueError,
        ) as exc:
            raise ConfigError(f"Malformed baseline file {self.path}: {exc}") from exc

    def get(self, key: str) -> Optional[Tuple[int, int]]:
        return self._pins.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._pins

    def __len__(self) -> int:
        return len(self._pins)

    def record(self, key: str, totals: GasTotals) -> None:
        self._pins[key] = totals.as_pair()
        self.save()
        logger.info("pinned %s -> %d/%d", key, totals.candidate, totals.baseline)

    def check(self, key: str, totals: GasTotals) -> None:
        expected = self.get(key)
        if expected is None:
            raise GasMismatch(
                f"No pinned totals for '{key}' in {self.path}",
                candidate=totals.candidate,
                baseline=totals.baseline,
            )
        totals.assert_matches(expected)

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(
                {key: list(pair) for key, pair in sorted(self._pins.items())},
                f,
                indent=2,
            )
