"""Shared pytest fixtures for the gas harness tests."""

from __future__ import annotations

import asyncio
from typing import List, Optional

import pytest

from gasbench.config import BenchConfig
from gasbench.runtime.base import InstanceState, SubmissionOutcome
from gasbench.runtime.local import LocalSandbox


class RecordingInstance:
    """Instance double that records payloads and returns a fixed gas."""

    def __init__(self, name: str, gas: int = 1_000, fail_on: Optional[int] = None) -> None:
        self.name = name
        self.gas = gas
        self.fail_on = fail_on
        self.payloads: List[bytes] = []
        self.completed = 0
        self._state = InstanceState.DEPLOYED

    @property
    def instance_id(self) -> str:
        return self.name

    @property
    def state(self) -> InstanceState:
        return self._state

    async def submit(self, entry_point: str, payload: bytes, gas_limit: int) -> SubmissionOutcome:
        self.payloads.append(payload)
        await asyncio.sleep(0)
        if self.fail_on is not None and len(self.payloads) == self.fail_on:
            raise RuntimeError(f"{self.name} crashed")
        self._state = InstanceState.ACTIVE
        self.completed += 1
        return SubmissionOutcome(entry_point, self.gas)

    async def close(self) -> None:
        self._state = InstanceState.TERMINATED


class RecordingRuntime:
    """Hands out prepared instances in deployment order."""

    def __init__(self, *instances, fail_deploy: bool = False) -> None:
        self._pending = list(instances)
        self.fail_deploy = fail_deploy
        self.deployed: List[object] = []

    async def deploy(self, artifact):
        if self.fail_deploy:
            raise RuntimeError("sandbox unavailable")
        instance = self._pending.pop(0)
        self.deployed.append(instance)
        return instance


@pytest.fixture
def sandbox() -> LocalSandbox:
    return LocalSandbox()


@pytest.fixture
def small_config() -> BenchConfig:
    return BenchConfig(
        candidate_entry="fuzz_map_light_sparse",
        baseline_entry="fuzz_map_light_sparse_old",
        trials=4,
        actions_per_trial=16,
    )


@pytest.fixture
def heavy_config() -> BenchConfig:
    """Seed 0, 24 trials of 64 heavy map actions."""

    return BenchConfig(
        candidate_entry="fuzz_map_heavy",
        baseline_entry="fuzz_map_heavy_old",
        trials=24,
        seed=0,
        actions_per_trial=64,
    )
