import pytest

from freshguard.services.freshness import STATUS_ORDER, Status, classify, progress, status_for


@pytest.mark.parametrize(
    ("days", "expected"),
    [
        (-30, Status.EXPIRED),
        (-1, Status.EXPIRED),
        (0, Status.DUE_TODAY),
        (1, Status.URGENT),
        (2, Status.URGENT),
        (3, Status.SOON),
        (5, Status.SOON),
        (6, Status.FRESH),
        (120, Status.FRESH),
    ],
)
def test_classify_boundaries(days: int, expected: Status) -> None:
    assert classify(days) == expected


def test_classify_threshold_overrides() -> None:
    assert classify(3, urgent_max_days=3) == Status.URGENT
    assert classify(6, soon_max_days=7) == Status.SOON


def test_status_order_is_increasing_urgency() -> None:
    assert list(STATUS_ORDER) == sorted(STATUS_ORDER)
    assert Status.FRESH < Status.SOON < Status.DUE_TODAY < Status.URGENT < Status.EXPIRED
    assert Status.EXPIRED >= Status.DUE_TODAY
    assert not Status.SOON >= Status.DUE_TODAY


def test_unknown_days_use_explicit_status_or_fresh() -> None:
    assert status_for(None) == Status.FRESH
    assert status_for(None, Status.URGENT) == Status.URGENT
    assert status_for(-2, Status.FRESH) == Status.EXPIRED


def test_progress_is_linear_and_clamped() -> None:
    assert progress(7, 14) == pytest.approx(0.5)
    assert progress(30, 7) == 1.0
    assert progress(-3, 7) == 0.0
    assert progress(0, 7) == 0.0


def test_progress_with_empty_window_is_total() -> None:
    assert progress(3, 0) == 1.0
    assert progress(0, 0) == 0.0
