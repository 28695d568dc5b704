import json

import pytest

from gasbench.accumulator import GasTotals, TrialResult
from gasbench.baseline import BaselineStore
from gasbench.errors import ConfigError, GasMismatch


def _totals(candidate, baseline):
    totals = GasTotals()
    totals.record(TrialResult(0, 1, 5, candidate, baseline))
    return totals


def test_record_then_check(tmp_path):
    path = tmp_path / "pins" / "gas.json"
    store = BaselineStore(path)
    assert len(store) == 0
    store.record("scenario", _totals(10, 20))
    assert json.loads(path.read_text()) == {"scenario": [10, 20]}

    reloaded = BaselineStore(path)
    assert "scenario" in reloaded
    assert reloaded.get("scenario") == (10, 20)
    reloaded.check("scenario", _totals(10, 20))
    with pytest.raises(GasMismatch):
        reloaded.check("scenario", _totals(10, 21))


def test_missing_pin_fails(tmp_path):
    store = BaselineStore(tmp_path / "gas.json")
    with pytest.raises(GasMismatch, match="No pinned totals"):
        store.check("other", _totals(1, 1))


@pytest.mark.parametrize("content", ["{", '{"a": 5}', '{"a": [1]}'])
def test_malformed_file(tmp_path, content):
    path = tmp_path / "gas.json"
    path.write_text(content)
    with pytest.raises(ConfigError):
        BaselineStore(path)
