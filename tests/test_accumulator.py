import math

import pytest

from gasbench.accumulator import GasTotals, TrialResult
from gasbench.errors import GasMismatch


def _trial(index, candidate, baseline):
    return TrialResult(
        index=index,
        action_count=1,
        payload_size=5,
        candidate_gas=candidate,
        baseline_gas=baseline,
    )


def _totals(*pairs):
    totals = GasTotals()
    for i, (c, b) in enumerate(pairs):
        totals.record(_trial(i, c, b))
    return totals


def test_record_accumulates_both_sides():
    totals = _totals((10, 20), (30, 5))
    assert totals.as_pair() == (40, 25)
    assert totals.delta == 15
    assert [t.delta for t in totals.trials] == [-10, 25]


def test_empty_totals():
    totals = GasTotals()
    assert totals.as_pair() == (0, 0)
    assert totals.ratio == 1.0
    assert totals.summary()["candidate"] == {"mean": 0.0, "std": 0.0, "min": 0.0, "max": 0.0}


def test_ratio():
    assert _totals((30, 20)).ratio == pytest.approx(1.5)
    assert math.isinf(_totals((1, 0)).ratio)


def test_negative_gas_rejected():
    with pytest.raises(ValueError):
        GasTotals().record(_trial(0, -1, 0))


def test_assert_matches():
    totals = _totals((10, 20))
    totals.assert_matches((10, 20))
    with pytest.raises(GasMismatch) as exc:
        totals.assert_matches((10, 21))
    assert exc.value.expected == (10, 21)
    assert "expected=10/21" in str(exc.value)
    # Still an AssertionError for plain pytest reporting.
    assert isinstance(exc.value, AssertionError)


def test_assert_within():
    totals = _totals((105, 100))
    totals.assert_within(0.05)
    with pytest.raises(GasMismatch):
        totals.assert_within(0.04)
    with pytest.raises(ValueError):
        totals.assert_within(-0.1)


def test_summary_statistics():
    stats = _totals((1, 10), (3, 10)).summary()
    assert stats["candidate"] == {"mean": 2.0, "std": 1.0, "min": 1.0, "max": 3.0}
    assert stats["baseline"]["std"] == 0.0


def test_to_dict():
    data = _totals((1, 2)).to_dict()
    assert data["candidate"] == 1
    assert data["baseline"] == 2
    assert data["delta"] == -1
    assert data["trials"] == [
        {"index": 0, "actions": 1, "payload_size": 5, "candidate": 1, "baseline": 2}
    ]
