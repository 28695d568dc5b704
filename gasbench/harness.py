"""Differential runner: one workload, two isolated deployments.

For every trial the runner generates one action sequence, encodes it once
and submits the same bytes to the candidate and the baseline instance
concurrently. Both submissions are awaited to completion; if either fails the
run aborts, since a crashed submission invalidates the comparison.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .accumulator import GasTotals, TrialResult
from .codec import encode_actions
from .config import BenchConfig
from .decoding.actions import Action, ActionGenerator
from .errors import BenchError, ConfigError, DeploymentError, SubmissionError
from .runtime.base import Instance, Runtime
from .runtime.local import LocalSandbox
from .runtime.program import EntryPointSpec, ProgramArtifact, resolve_artifact
from .stream import SeedStream

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Target:
    role: str
    artifact: ProgramArtifact
    entry_point: EntryPointSpec


def resolve_targets(config: BenchConfig) -> Tuple[Target, Target]:
    """Look up both entry points and check they accept the same workload."""

    candidate_artifact = resolve_artifact(config.candidate_artifact)
    if config.resolved_baseline_artifact == config.candidate_artifact:
        baseline_artifact = candidate_artifact
    else:
        baseline_artifact = resolve_artifact(config.resolved_baseline_artifact)

    candidate = Target(
        "candidate", candidate_artifact, candidate_artifact.entry_point(config.candidate_entry)
    )
    baseline = Target(
        "baseline", baseline_artifact, baseline_artifact.entry_point(config.baseline_entry)
    )
    a, b = candidate.entry_point, baseline.entry_point
    if (a.kind, a.shape) != (b.kind, b.shape):
        raise ConfigError(
            f"Cannot compare {a.name} ({a.kind}/{a.shape}) with "
            f"{b.name} ({b.kind}/{b.shape}): workloads differ"
        )
    return candidate, baseline


def _open_tracer(path: str):
    # retrobus-perfetto is an optional dependency (the "trace" extra).
    try:
        from .tracing import TrialTracer
    except ImportError as exc:
        raise ConfigError(
            f"Tracing to {path} needs retrobus-perfetto (install gasbench[trace]): {exc}"
        ) from exc
    return TrialTracer(path)


class DifferentialRunner:
    def __init__(
        self,
        config: BenchConfig,
        runtime: Optional[Runtime] = None,
    ) -> None:
        self.config = config
        self.runtime: Runtime = runtime or LocalSandbox()
        self.candidate, self.baseline = resolve_targets(config)
        spec = self.candidate.entry_point
        # Owned by this runner only; generation is strictly sequential.
        self.generator = ActionGenerator(
            SeedStream(config.seed),
            spec.family,
            spec.value_shape,
            buffer_size=config.buffer_size,
            count=config.actions_per_trial,
        )
        self.tracer = _open_tracer(config.trace_file) if config.trace_file else None

    async def _deploy(self, target: Target) -> Instance:
        try:
            instance = await self.runtime.deploy(target.artifact)
        except DeploymentError:
            raise
        except Exception as exc:
            raise DeploymentError(
                f"Failed to deploy {target.artifact.name} for the {target.role}: {exc}"
            ) from exc
        logger.info(
            "%s: %s on %s", target.role, target.entry_point.name, instance.instance_id
        )
        return instance

    async def _submit(self, instance: Instance, target: Target, payload: bytes) -> int:
        entry = target.entry_point.name
        try:
            outcome = await instance.submit(entry, payload, self.config.gas_limit)
        except SubmissionError:
            raise
        except Exception as exc:
            raise SubmissionError(
                f"{target.role} submission to {entry} failed: {exc}", entry_point=entry
            ) from exc
        return outcome.total_gas_burnt

    async def run_trial(
        self,
        index: int,
        actions: Sequence[Action],
        instances: Tuple[Instance, Instance],
    ) -> TrialResult:
        payload = encode_actions(actions)
        results = await asyncio.gather(
            self._submit(instances[0], self.candidate, payload),
            self._submit(instances[1], self.baseline, payload),
            return_exceptions=True,
        )
        failures: List[BaseException] = [r for r in results if isinstance(r, BaseException)]
        if failures:
            for extra in failures[1:]:
                logger.error("trial %d: additional failure: %s", index, extra)
            raise failures[0]
        candidate_gas, baseline_gas = results
        return TrialResult(
            index=index,
            action_count=len(actions),
            payload_size=len(payload),
            candidate_gas=int(candidate_gas),
            baseline_gas=int(baseline_gas),
        )

    async def run(self) -> GasTotals:
        candidate_instance = await self._deploy(self.candidate)
        try:
            baseline_instance = await self._deploy(self.baseline)
        except BenchError:
            await candidate_instance.close()
            raise
        instances = (candidate_instance, baseline_instance)

        totals = GasTotals()
        try:
            for index in range(self.config.trials):
                actions = self.generator.next_trial()
                trial = await self.run_trial(index, actions, instances)
                totals.record(trial)
                logger.info(
                    "trial %d: %d actions, candidate=%d baseline=%d",
                    index,
                    trial.action_count,
                    trial.candidate_gas,
                    trial.baseline_gas,
                )
                if self.tracer is not None:
                    self.tracer.record(
                        trial, self.candidate.entry_point.name, self.baseline.entry_point.name
                    )
        finally:
            for instance in instances:
                await instance.close()

        if self.tracer is not None:
            self.tracer.save()
        logger.info(
            "totals: candidate=%d baseline=%d (ratio %.4f)",
            totals.candidate,
            totals.baseline,
            totals.ratio,
        )
        return totals


def verify(config: BenchConfig, totals: GasTotals) -> None:
    """Apply the pinned pair and/or tolerance the config asks for."""

    if config.expected is not None:
        totals.assert_matches(config.expected)
    if config.tolerance is not None:
        totals.assert_within(config.tolerance)


def run_benchmark(
    config: BenchConfig,
    runtime: Optional[Runtime] = None,
    *,
    check: bool = True,
) -> GasTotals:
    """Synchronous entry point: run every trial, then verify if asked."""

    totals = asyncio.run(DifferentialRunner(config, runtime).run())
    if check:
        verify(config, totals)
    return totals
