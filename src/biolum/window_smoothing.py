# noqa: INP001
"""
Window smoothing: replace each point by the mean, median, min, or max of
the data within a window centered on that point.

The number of points in the window is computed from the median time step,
so the data are assumed to be equally spaced.  When they are not, the
result is an approximation.  The window shrinks at the beginning and end
of the series rather than being padded.
"""

__copyright__ = "Copyright 2024, Monterey Bay Aquarium Research Institute"

import logging
from enum import Enum

import numpy as np
import pandas as pd

logger = logging.getLogger(f"biolum.{__name__}")


class Reducer(str, Enum):
    MEAN = "mean"
    MEDIAN = "median"
    MIN = "min"
    MAX = "max"


def window_smoothing(
    serie: np.ndarray,
    time: np.ndarray | None,
    window: float,
    reducer: Reducer | str,
) -> np.ndarray:
    """Apply `reducer` within a window around each point of `serie`.

    Args:
        serie: Time series to be processed
        time: Corresponding time vector, in any unit (e.g. seconds, or depth
            for a vertical profile).  If None, regular unit intervals are
            assumed and `window` is a number of points.
        window: Window width, in the same unit as `time`
        reducer: One of Reducer.MEAN, MEDIAN, MIN, MAX (or their names).
            NaNs are ignored; a window with only NaNs gives NaN.

    Returns:
        New array with the same length as `serie`
    """
    reducer = Reducer(reducer)
    serie = np.asarray(serie, dtype=float)
    nb_pts = len(serie)
    time = np.arange(nb_pts, dtype=float) if time is None else np.asarray(time, dtype=float)

    if nb_pts == 0 or time.max() - time.min() < window:
        logger.warning("The chosen window (%s) is larger than the time span, no data!", window)
        return np.full(nb_pts, np.nan)
    if nb_pts == 1:
        # No time step, the window holds the single point
        return serie.copy()

    # A median time step so that a few jumps in the time series don't matter
    time_interval = np.median(np.diff(time))
    nb_halfwindow = int(np.floor(window / 2 / time_interval))
    logger.debug(
        "Applying rolling %s with %d points per half window", reducer.value, nb_halfwindow
    )

    # Centered window of 2 * nb_halfwindow + 1 points, truncated at the ends
    rolling = pd.Series(serie).rolling(2 * nb_halfwindow + 1, min_periods=1, center=True)
    return getattr(rolling, reducer.value)().to_numpy()
