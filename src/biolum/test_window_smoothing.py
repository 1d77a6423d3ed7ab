# noqa: INP001
import logging

import numpy as np
import pytest
from window_smoothing import Reducer, window_smoothing


def test_output_length_and_order():
    serie = np.arange(50, dtype=float)
    for reducer in Reducer:
        smoothed = window_smoothing(serie, None, 7, reducer)
        assert len(smoothed) == len(serie)  # noqa: S101
    # A monotonic series stays monotonic with a mean
    assert np.all(np.diff(window_smoothing(serie, None, 7, "mean")) >= 0)  # noqa: S101


def test_window_larger_than_time_span(caplog):
    serie = np.arange(100, dtype=float)
    with caplog.at_level(logging.WARNING):
        smoothed = window_smoothing(serie, None, 1000, Reducer.MEAN)
    assert len(smoothed) == len(serie)  # noqa: S101
    assert np.all(np.isnan(smoothed))  # noqa: S101
    assert "larger than the time span" in caplog.text  # noqa: S101


def test_unknown_reducer():
    with pytest.raises(ValueError):  # noqa: PT011
        window_smoothing(np.arange(10.0), None, 3, "mode")


def test_shrinking_window_at_boundaries():
    rng = np.random.default_rng(42)
    serie = rng.normal(size=40)
    time = np.arange(40) * 0.5  # 2 points per time unit
    window = 5.0  # 5 / 2 / 0.5 = 5 points per half window
    nb_halfwindow = 5
    funcs = {"mean": np.mean, "median": np.median, "min": np.min, "max": np.max}
    for reducer, func in funcs.items():
        smoothed = window_smoothing(serie, time, window, reducer)
        expected = [
            func(serie[max(0, i - nb_halfwindow) : min(len(serie), i + nb_halfwindow + 1)])
            for i in range(len(serie))
        ]
        np.testing.assert_allclose(smoothed, expected, rtol=1e-10, atol=1e-12)


def test_median_time_interval_with_gap():
    # A single gap in the time vector does not change the number of points
    time = np.concatenate((np.arange(20.0), np.arange(30.0, 50.0)))
    serie = np.arange(40, dtype=float)
    smoothed = window_smoothing(serie, time, 2, "max")
    np.testing.assert_array_equal(smoothed, np.minimum(serie + 1, 39))


def test_missing_values():
    serie = np.array([1.0, np.nan, 3.0, np.nan, np.nan, np.nan, np.nan, 8.0])
    mean = window_smoothing(serie, None, 2, "mean")
    # NaNs are ignored, not counted as zeros
    np.testing.assert_allclose(mean[:3], [1.0, 2.0, 3.0])
    # Only NaNs within the window
    assert np.isnan(mean[4])  # noqa: S101
    assert np.isnan(window_smoothing(serie, None, 2, "median")[4])  # noqa: S101
    assert np.isnan(window_smoothing(serie, None, 2, "min")[5])  # noqa: S101
    np.testing.assert_allclose(window_smoothing(serie, None, 2, "min")[1:3], [1.0, 3.0])


def test_mean_smoothing_idempotent_on_constant():
    serie = np.full(100, 3.5e10)
    once = window_smoothing(serie, None, 20, "mean")
    twice = window_smoothing(once, None, 20, "mean")
    np.testing.assert_allclose(once, serie)
    np.testing.assert_allclose(twice, once)


def test_single_point():
    for reducer in Reducer:
        np.testing.assert_array_equal(
            window_smoothing(np.array([2.0e10]), np.array([5.0]), 0, reducer), [2.0e10]
        )
    assert np.isnan(window_smoothing([np.nan], None, 0, "median")).all()  # noqa: S101
