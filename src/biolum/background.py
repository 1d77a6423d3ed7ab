# noqa: INP001
"""
Background bioluminescence and envelope, following Appendix B of
"Using fluorescence and bioluminescence sensors to characterize auto- and
heterotrophic plankton communities" by Messié et al. (2019)
https://www.sciencedirect.com/science/article/pii/S0079661118300478
"""

__copyright__ = "Copyright 2024, Monterey Bay Aquarium Research Institute"

import logging
from typing import NamedTuple

import numpy as np

from window_smoothing import Reducer, window_smoothing

logger = logging.getLogger(f"biolum.{__name__}")

WINDOW = 5  # seconds
ENVELOPE_MINI = 1.5e10  # photons/s


class BackgroundEnvelope(NamedTuple):
    med_bg: np.ndarray
    min_bg: np.ndarray
    max_bg: np.ndarray


def estimate_background(
    biolum: np.ndarray,
    time: np.ndarray,
    window: float = WINDOW,
    envelope_mini: float = ENVELOPE_MINI,
) -> BackgroundEnvelope:
    """Compute med-background, min-background and the upper envelope bound.

    Args:
        biolum: 60 Hz bioluminescence (photons/s)
        time: Time in seconds
        window: Window width (s) for the window smoothing
        envelope_mini: Minimum value for max_bg - med_bg, to avoid very dim
            flashes when the background is low (photons/s)

    Returns:
        BackgroundEnvelope(med_bg, min_bg, max_bg)
    """
    # 1- med-background: median window smoothing removes the flashes, the
    # following mean smoothing removes the blocky look of the median filter
    logger.debug("Applying rolling median then mean filter")
    med_bg = window_smoothing(biolum, time, window, Reducer.MEDIAN)
    med_bg = window_smoothing(med_bg, time, window, Reducer.MEAN)

    # 2- min-background, smoothed to avoid a box-like time series
    logger.debug("Applying rolling min then mean filter")
    min_bg = window_smoothing(biolum, time, window, Reducer.MIN)
    min_bg = window_smoothing(min_bg, time, window, Reducer.MEAN)

    # 3- Envelope delimited by min_bg and symmetrical across med_bg
    max_bg = 2.0 * med_bg - min_bg
    ilow = max_bg - med_bg < envelope_mini
    max_bg[ilow] = med_bg[ilow] + envelope_mini
    logger.debug("Envelope set to envelope_mini = %.2e for %d points", envelope_mini, ilow.sum())

    return BackgroundEnvelope(med_bg, min_bg, max_bg)
