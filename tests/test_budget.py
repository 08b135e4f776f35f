import pytest

from dermdir.http import BudgetExceededError, RequestBudget, RequestMetrics, RequestPacer


def test_budget_raises_once_ceiling_reached():
    seen = []
    budget = RequestBudget(max_requests=2, on_consume=seen.append)

    budget.consume()
    budget.consume()
    with pytest.raises(BudgetExceededError):
        budget.consume()

    assert seen == [1, 2]
    assert budget.requests_count == 2
    assert budget.remaining == 0


def test_budget_counts_through_metrics():
    metrics = RequestMetrics()
    budget = RequestBudget(max_requests=5, metrics=metrics)

    for _ in range(3):
        budget.consume()

    assert metrics.network_requests == 3
    assert metrics.requests_count == 3
    assert budget.remaining == 2


def test_zero_budget_allows_nothing():
    with pytest.raises(BudgetExceededError):
        RequestBudget(max_requests=0).consume()


def test_pacer_delay_rounds_up_to_whole_milliseconds():
    sleeps = []
    pacer = RequestPacer(3, sleep=sleeps.append)

    pacer.wait()
    pacer.wait()

    assert pacer.delay_seconds == pytest.approx(0.334)
    assert sleeps == [pacer.delay_seconds, pacer.delay_seconds]


def test_pacer_rejects_non_positive_qps():
    with pytest.raises(ValueError):
        RequestPacer(0)
