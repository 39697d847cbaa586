import math

import pytest

from fatura.preview.scaler import AutoFitScaler, compute_scale


@pytest.mark.parametrize("content,viewport,expected", [
    ((800, 1200), (400, 1200), 0.5),
    ((400, 600), (800, 1200), 1.0),
    ((800, 1200), (800, 300), 0.25),
    ((0, 1200), (400, 600), 1.0),
    ((800, 1200), (0, 600), 1.0),
    ((800, 1200), (-5, 600), 1.0),
    ((math.nan, 1200), (400, 600), 1.0),
    ((800, math.inf), (400, 600), 1.0),
])
def test_compute_scale(content, viewport, expected) -> None:
    assert compute_scale(*content, *viewport) == pytest.approx(expected)


def test_scale_never_exceeds_one() -> None:
    for vw in (1, 50, 800, 5000):
        s = compute_scale(793, 1122, vw, 900)
        assert 0 < s <= 1.0


def test_publishes_on_change() -> None:
    seen = []
    scaler = AutoFitScaler(seen.append)
    scaler.content_resized(800, 1200)
    assert seen == []  # viewport still unknown, scale stays 1.0
    assert scaler.viewport_resized(400, 1200) is True
    assert seen == [0.5]
    assert scaler.scale == 0.5


def test_small_changes_are_suppressed() -> None:
    seen = []
    scaler = AutoFitScaler(seen.append, epsilon=0.01)
    scaler.observe(1000, 1000, 500, 500)
    assert scaler.observe(1000, 1000, 504, 504) is False
    assert seen == [0.5]
    assert scaler.observe(1000, 1000, 520, 520) is True
    assert seen == [0.5, 0.52]


def test_zero_viewport_recovers_to_one() -> None:
    scaler = AutoFitScaler()
    scaler.observe(800, 1200, 400, 1200)
    assert scaler.scale == 0.5
    scaler.viewport_resized(0, 0)
    assert scaler.scale == 1.0


def test_subscribe_adds_listener() -> None:
    first, second = [], []
    scaler = AutoFitScaler(first.append)
    scaler.subscribe(second.append)
    scaler.observe(800, 1200, 400, 1200)
    assert first == second == [0.5]


def test_close_stops_updates() -> None:
    seen = []
    scaler = AutoFitScaler(seen.append)
    scaler.observe(800, 1200, 400, 1200)
    scaler.close()
    assert scaler.viewport_resized(200, 1200) is False
    assert scaler.content_resized(100, 100) is False
    assert scaler.refresh() is False
    assert seen == [0.5]
    assert scaler.scale == 0.5
