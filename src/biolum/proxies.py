# noqa: INP001
"""
Generate 1 Hz zooplankton and dinoflagellate proxies from the classified
60 Hz bioluminescence:

    dinoflagellates  min-background per liter, averaged over each second (photons/L)
    larvaceans       low-intensity flashes within window_proxies (flashes/L)
    copepods         high-intensity flashes within window_proxies (flashes/L)
    jellies          maximum biolum above med-background within window_proxies (photons/s)
"""

__copyright__ = "Copyright 2024, Monterey Bay Aquarium Research Institute"

import logging

import numpy as np
import pandas as pd

from flashes import FlashSet
from records import SAMPLE_RATE, from_seconds, to_seconds

logger = logging.getLogger(f"biolum.{__name__}")

WINDOW_PROXIES = 15  # seconds


def one_hz_grid(seconds: np.ndarray) -> np.ndarray:
    """1 Hz time steps from the first to the last whole second of `seconds`"""
    return np.arange(np.floor(seconds.min()), np.floor(seconds.max()) + 1, 1.0)


def bin_to_seconds(seconds: np.ndarray, values: np.ndarray, grid: np.ndarray) -> np.ndarray:
    """Mean of `values` for each whole second of `grid`, NaN where there are none"""
    s_values = pd.Series(np.asarray(values, dtype=float))
    return s_values.groupby(np.floor(seconds)).mean().reindex(grid).to_numpy()


def _window_sums(flags: np.ndarray, lo: np.ndarray, hi: np.ndarray) -> np.ndarray:
    cumsum = np.concatenate(([0.0], np.cumsum(flags, dtype=float)))
    return cumsum[hi] - cumsum[lo]


def aggregate_proxies(  # noqa: PLR0913
    time: np.ndarray,
    biolum: np.ndarray,
    flashes: FlashSet,
    med_bg: np.ndarray,
    min_bg: np.ndarray,
    flow: np.ndarray,
    window_proxies: float = WINDOW_PROXIES,
) -> pd.DataFrame:
    """Return a 1 Hz DataFrame with the dinoflagellates, larvaceans, copepods,
    and jellies proxies.  `time` must be strictly increasing; the index of the
    returned DataFrame has the same type (seconds or datetime64) as `time`.
    """
    seconds = to_seconds(time)
    biolum = np.asarray(biolum, dtype=float)
    flow = np.asarray(flow, dtype=float)
    grid = one_hz_grid(seconds)
    logger.info("Generating %d 1 Hz proxies with a %s s window", len(grid), window_proxies)

    # Dinoflagellates: simple average of min_bg per liter over 1 Hz time steps
    with np.errstate(divide="ignore", invalid="ignore"):
        dinoflagellates = bin_to_seconds(seconds, np.asarray(min_bg, dtype=float) / flow, grid)

    # Samples within [t - window_proxies/2, t + window_proxies/2] for each time step
    lo = np.searchsorted(seconds, grid - window_proxies / 2, side="left")
    hi = np.searchsorted(seconds, grid + window_proxies / 2, side="right")
    nb_samples = hi - lo

    valid_flow = ~np.isnan(flow)
    mean_flow = _window_sums(np.where(valid_flow, flow, 0.0), lo, hi)
    with np.errstate(invalid="ignore", divide="ignore"):
        mean_flow /= _window_sums(valid_flow, lo, hi)
        # Volume of water sampled during the window (assumes 60 Hz data)
        volume_sampled = mean_flow * nb_samples / SAMPLE_RATE
        undefined = (nb_samples == 0) | ~(volume_sampled > 0)
        larvaceans = _window_sums(flashes.low, lo, hi) / volume_sampled
        copepods = _window_sums(flashes.high, lo, hi) / volume_sampled
    larvaceans[undefined] = np.nan
    copepods[undefined] = np.nan
    if undefined.any():
        logger.debug("No volume sampled for %d of %d time steps", undefined.sum(), len(grid))

    # Jellies: max flash intensity within the window, relative to med_bg
    intensity = biolum - np.asarray(med_bg, dtype=float)
    jellies = np.full(len(grid), np.nan)
    for itime, (start, end) in enumerate(zip(lo, hi, strict=True)):
        in_window = intensity[start:end]
        if np.any(~np.isnan(in_window)):
            jellies[itime] = np.nanmax(in_window)

    proxies = pd.DataFrame(
        {
            "dinoflagellates": dinoflagellates,
            "larvaceans": larvaceans,
            "copepods": copepods,
            "jellies": jellies,
        },
        index=pd.Index(from_seconds(grid, like=time), name="time"),
    )
    return proxies
