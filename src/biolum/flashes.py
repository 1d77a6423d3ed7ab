# noqa: INP001
"""
Identify bioluminescence flashes above the background envelope and split
them into low-intensity (larvaceans) and high-intensity (copepods) flashes.

The peak detection is done by a `peak_finder` callable with the signature
peak_finder(values, min_height) -> indices, so that other algorithms can
be substituted for the scipy based ones defined here.
"""

__copyright__ = "Copyright 2024, Monterey Bay Aquarium Research Institute"

import logging
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
from scipy import signal

logger = logging.getLogger(f"biolum.{__name__}")

FLASH_THRESHOLD = 1.0e11  # photons/s
MIN_PEAK_HEIGHT = 1.0e8  # photons/s

PeakFinder = Callable[[np.ndarray, float], np.ndarray]


def find_peaks(values: np.ndarray, min_height: float) -> np.ndarray:
    """Indices of local maxima higher than min_height"""
    peaks, _ = signal.find_peaks(values, height=min_height)
    return peaks


def find_prominent_peaks(values: np.ndarray, min_height: float) -> np.ndarray:
    """Indices of local maxima standing at least min_height above their
    surroundings, the selectivity criterion of Matlab's peakfinder.m"""
    peaks, _ = signal.find_peaks(values, prominence=min_height)
    return peaks


@dataclass(frozen=True)
class FlashSet:
    iflash: np.ndarray
    low: np.ndarray
    high: np.ndarray

    @property
    def nbflash_low(self) -> int:
        return int(self.low.sum())

    @property
    def nbflash_high(self) -> int:
        return int(self.high.sum())


def classify_flashes(  # noqa: PLR0913
    biolum: np.ndarray,
    med_bg: np.ndarray,
    max_bg: np.ndarray,
    flash_threshold: float = FLASH_THRESHOLD,
    min_peak_height: float = MIN_PEAK_HEIGHT,
    peak_finder: PeakFinder = find_peaks,
) -> FlashSet:
    """Flag the peaks of biolum that are strictly above the envelope (max_bg).

    Flashes with biolum - med_bg <= flash_threshold are low-intensity,
    the others high-intensity.
    """
    biolum = np.asarray(biolum, dtype=float)
    med_bg = np.asarray(med_bg, dtype=float)
    max_bg = np.asarray(max_bg, dtype=float)

    # Only work on data points, then get the indices in the original series
    indices = np.flatnonzero(~np.isnan(biolum))
    logger.debug("Finding peaks in %d data points", len(indices))
    ipeaks = indices[np.asarray(peak_finder(biolum[indices], min_peak_height), dtype=int)]

    iflash = np.zeros(len(biolum), dtype=bool)
    iflash[ipeaks] = True
    # Remove peaks within the envelope, expected to be generated by dinoflagellates
    with np.errstate(invalid="ignore"):
        iflash &= biolum > max_bg
        intensity = biolum - med_bg
        low = iflash & (intensity <= flash_threshold)
        high = iflash & (intensity > flash_threshold)
    logger.info(
        "Found %d peaks, %d flashes above the envelope: %d low and %d high intensity"
        " (flash_threshold = %.4e)",
        len(ipeaks),
        iflash.sum(),
        low.sum(),
        high.sum(),
        flash_threshold,
    )
    return FlashSet(iflash, low, high)
