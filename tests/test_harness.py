"""End-to-end differential runs."""

import asyncio
from pathlib import Path

import pytest
from conftest import RecordingInstance, RecordingRuntime

from gasbench.baseline import BaselineStore
from gasbench.config import BenchConfig
from gasbench.errors import ConfigError, DeploymentError, GasMismatch, SubmissionError
from gasbench.harness import DifferentialRunner, resolve_targets, run_benchmark
from gasbench.runtime.base import InstanceState

# Seed 0, 24 trials, 64 heavy map actions: fuzz_map_heavy vs fuzz_map_heavy_old.
HEAVY_MAP_TOTALS = (242289916171279, 211596335683039)
BASELINE_FILE = Path(__file__).parent / "data" / "gas_baseline.json"


def test_heavy_map_run_is_deterministic(heavy_config):
    first = run_benchmark(heavy_config)
    second = run_benchmark(heavy_config)
    assert first.as_pair() == second.as_pair()
    assert [t.candidate_gas for t in first.trials] == [t.candidate_gas for t in second.trials]
    assert len(first.trials) == 24
    assert all(t.action_count == 64 for t in first.trials)


def test_totals_are_sums_of_trials(heavy_config):
    totals = run_benchmark(heavy_config)
    assert totals.candidate == sum(t.candidate_gas for t in totals.trials)
    assert totals.baseline == sum(t.baseline_gas for t in totals.trials)
    assert totals.candidate > 0
    assert totals.baseline > 0


def test_heavy_map_matches_pinned_literal(heavy_config):
    totals = run_benchmark(heavy_config.replace(expected=HEAVY_MAP_TOTALS))
    assert totals.as_pair() == HEAVY_MAP_TOTALS


def test_committed_baseline_file_matches(heavy_config):
    store = BaselineStore(BASELINE_FILE)
    assert store.get(heavy_config.scenario_key()) == HEAVY_MAP_TOTALS
    store.check(heavy_config.scenario_key(), run_benchmark(heavy_config))


def test_pinned_totals_regression(tmp_path, heavy_config):
    store = BaselineStore(tmp_path / "gas.json")
    key = heavy_config.scenario_key()
    store.record(key, run_benchmark(heavy_config))

    pinned = BaselineStore(tmp_path / "gas.json").get(key)
    assert pinned == HEAVY_MAP_TOTALS
    BaselineStore(tmp_path / "gas.json").check(key, run_benchmark(heavy_config))

    drifted = (pinned[0] + 1, pinned[1])
    with pytest.raises(GasMismatch):
        run_benchmark(heavy_config.replace(expected=drifted))
    # check=False only accumulates.
    assert run_benchmark(heavy_config.replace(expected=drifted), check=False).as_pair() == pinned


def test_seed_changes_workload(small_config):
    a = run_benchmark(small_config)
    b = run_benchmark(small_config.replace(seed=1))
    assert a.as_pair() != b.as_pair()


def test_identical_engines_burn_identical_gas():
    config = BenchConfig(
        candidate_entry="fuzz_tree_light_dense",
        baseline_entry="fuzz_tree_light_dense",
        trials=5,
        actions_per_trial=32,
    )
    totals = run_benchmark(config.replace(tolerance=0.0))
    assert totals.candidate == totals.baseline


@pytest.mark.parametrize("kind", ["map", "set", "tree"])
@pytest.mark.parametrize("shape", ["heavy", "light_sparse", "light_dense"])
def test_every_entry_point_pair_runs(kind, shape):
    config = BenchConfig(
        candidate_entry=f"fuzz_{kind}_{shape}",
        baseline_entry=f"fuzz_{kind}_{shape}_old",
        trials=3,
    )
    totals = run_benchmark(config)
    assert len(totals.trials) == 3


def test_take_rest_mode_varies_action_counts(small_config):
    totals = run_benchmark(small_config.replace(actions_per_trial=None, trials=6))
    counts = {t.action_count for t in totals.trials}
    assert len(counts) > 1


def test_zero_trials(small_config):
    assert run_benchmark(small_config.replace(trials=0)).as_pair() == (0, 0)


def test_mismatched_workloads_rejected():
    config = BenchConfig(candidate_entry="fuzz_map_heavy", baseline_entry="fuzz_set_heavy_old")
    with pytest.raises(ConfigError, match="workloads differ"):
        resolve_targets(config)
    with pytest.raises(ConfigError):
        DifferentialRunner(config)


def test_unknown_entry_point_rejected():
    with pytest.raises(DeploymentError):
        DifferentialRunner(BenchConfig(candidate_entry="fuzz_map_huge"))


def test_same_payload_reaches_both_instances(small_config):
    candidate = RecordingInstance("cand", gas=7)
    baseline = RecordingInstance("base", gas=5)
    runtime = RecordingRuntime(candidate, baseline)
    totals = run_benchmark(small_config, runtime)
    assert totals.as_pair() == (7 * 4, 5 * 4)
    assert len(candidate.payloads) == 4
    assert candidate.payloads == baseline.payloads
    assert candidate.state is InstanceState.TERMINATED
    assert baseline.state is InstanceState.TERMINATED


def test_submissions_run_concurrently(small_config):
    # Each side blocks until the other has started; sequential
    # submission would time out.
    both_arrived = asyncio.Event()
    arrived = []

    class Rendezvous(RecordingInstance):
        async def submit(self, entry_point, payload, gas_limit):
            arrived.append(self.name)
            if len(arrived) == 2:
                both_arrived.set()
            await asyncio.wait_for(both_arrived.wait(), timeout=5)
            return await super().submit(entry_point, payload, gas_limit)

    runtime = RecordingRuntime(Rendezvous("cand"), Rendezvous("base"))
    totals = run_benchmark(small_config.replace(trials=1), runtime)
    assert totals.as_pair() == (1_000, 1_000)
    assert arrived == ["cand", "base"]


def test_failed_submission_aborts_after_both_complete(small_config):
    candidate = RecordingInstance("cand", fail_on=3)
    baseline = RecordingInstance("base")
    runtime = RecordingRuntime(candidate, baseline)
    with pytest.raises(SubmissionError, match="cand crashed") as exc:
        run_benchmark(small_config, runtime)
    assert exc.value.entry_point == small_config.candidate_entry
    # The baseline's third submission still ran to completion.
    assert baseline.completed == 3
    assert len(candidate.payloads) == 3
    assert candidate.state is InstanceState.TERMINATED
    assert baseline.state is InstanceState.TERMINATED


def test_both_failures_surface_the_candidate(small_config):
    runtime = RecordingRuntime(
        RecordingInstance("cand", fail_on=1), RecordingInstance("base", fail_on=1)
    )
    with pytest.raises(SubmissionError, match="candidate"):
        run_benchmark(small_config, runtime)


def test_deployment_failure_is_fatal(small_config):
    runtime = RecordingRuntime(fail_deploy=True)
    with pytest.raises(DeploymentError, match="sandbox unavailable"):
        run_benchmark(small_config, runtime)


def test_runner_owns_its_stream(small_config):
    runner = DifferentialRunner(small_config)
    asyncio.run(runner.run())
    assert runner.generator.stream.bytes_drawn > 0
    fresh = DifferentialRunner(small_config)
    assert fresh.generator.stream.bytes_drawn == 0
