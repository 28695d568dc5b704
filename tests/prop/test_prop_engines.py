"""Store and legacy engines must leave the same logical contents."""

from __future__ import annotations

import os

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from gasbench.decoding.actions import decode_take_rest
from gasbench.runtime.adapter import CollectionAdapter
from gasbench.runtime.collections import MeteredStorage
from gasbench.runtime.gas import DEFAULT_GAS_LIMIT, GasMeter
from gasbench.runtime.program import EntryPointSpec, entry_point_name

from .strategies import generator_inputs

MAX_EXAMPLES = int(os.getenv("GASBENCH_PROP_EXAMPLES", "200"))


def _contents(adapter: CollectionAdapter, data: dict) -> dict:
    n = len(adapter.prefix)
    return {key[n:]: value for key, value in data.items()}


@given(case=generator_inputs(max_size=2048), batches=st.integers(min_value=1, max_value=3))
@settings(
    max_examples=MAX_EXAMPLES,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
def test_prop_engines_agree(case, batches) -> None:
    family, shape, raw = case
    actions = decode_take_rest(raw, family, shape)
    step = max(1, len(actions) // batches)

    snapshots = []
    for engine in ("store", "legacy"):
        spec = EntryPointSpec(
            entry_point_name(family.name, shape.shape, engine), family.name, shape.shape, engine
        )
        adapter = CollectionAdapter(spec)
        data: dict = {}
        # Split across submissions so state is reloaded between batches.
        for start in range(0, len(actions), step):
            storage = MeteredStorage(data, GasMeter(DEFAULT_GAS_LIMIT))
            adapter.apply(actions[start : start + step], storage)
        snapshots.append(_contents(adapter, data))

    assert snapshots[0] == snapshots[1]
