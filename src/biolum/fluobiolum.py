# noqa: INP001
"""
Autotrophic dinoflagellates (adinos), heterotrophic dinoflagellates (hdinos),
and other phytoplankton (aother) proxies from fluorescence and background
bioluminescence.

The proxies assume that the phytoplankton community is dominated by
dinoflagellates and other unrelated phytoplankton (often diatoms in the
coastal ocean) and that dinoflagellates have a constant background
bioluminescence to fluorescence ratio, ratio_adinos.
"""

__copyright__ = "Copyright 2024, Monterey Bay Aquarium Research Institute"

import logging
from datetime import datetime, timedelta
from typing import NamedTuple

import numpy as np

logger = logging.getLogger(f"biolum.{__name__}")


class FluoBiolumProxies(NamedTuple):
    adinos: np.ndarray
    hdinos: np.ndarray
    aother: np.ndarray


def unmix_fluobiolum(
    fluo: np.ndarray,
    bgrd_biolum: np.ndarray,
    ratio_adinos: float,
    cal_factor: float = 1.0,
) -> FluoBiolumProxies:
    """Split fluorescence into adinos + aother, and fluo_dinos into adinos + hdinos.

    Args:
        fluo: Fluorescence (proxy for phytoplankton = adinos + aother)
        bgrd_biolum: Background bioluminescence (proxy for dinoflagellates)
        ratio_adinos: Typical bgrd_biolum / fluo ratio for dinoflagellate populations
        cal_factor: Calibration to normalize the proxies, 1 gives fluorescence units

    Returns:
        FluoBiolumProxies(adinos, hdinos, aother), each divided by cal_factor
    """
    fluo = np.asarray(fluo, dtype=float)
    bgrd_biolum = np.asarray(bgrd_biolum, dtype=float)
    if fluo.shape != bgrd_biolum.shape:
        raise ValueError(
            f"fluo {fluo.shape} and bgrd_biolum {bgrd_biolum.shape} must have the same shape"
        )
    logger.info("Using ratio_adinos = %.4e and cal_factor = %.6f", ratio_adinos, cal_factor)

    # bgrd_biolum in fluorescence units
    fluo_dinos = bgrd_biolum / ratio_adinos
    adinos = np.minimum(fluo, fluo_dinos)
    # Remaining fluo_dinos after removing adinos, 0 if fluo_dinos <= fluo
    hdinos = fluo_dinos - adinos
    # Remaining fluo after removing adinos, 0 if fluo <= fluo_dinos
    aother = fluo - adinos

    missing = np.isnan(fluo) | np.isnan(bgrd_biolum)
    return FluoBiolumProxies(
        *(np.where(missing, np.nan, proxy) / cal_factor for proxy in (adinos, hdinos, aother))
    )


def calibration_factor(fluo: np.ndarray, percentile: float = 99) -> float:
    """Fluorescence percentile over a dataset, used as cal_factor"""
    return float(np.nanpercentile(np.asarray(fluo, dtype=float), percentile))


def estimate_ratio_adinos(fluo: np.ndarray, bgrd_biolum: np.ndarray, bins: int = 100) -> float:
    """Most frequent bgrd_biolum / fluo ratio over a dataset.

    The histogram is built on log10 ratios of samples where both values are
    positive; the center of the most populated bin is returned.
    """
    fluo = np.asarray(fluo, dtype=float)
    bgrd_biolum = np.asarray(bgrd_biolum, dtype=float)
    with np.errstate(invalid="ignore"):
        ok = (fluo > 0) & (bgrd_biolum > 0)
    if not ok.any():
        raise ValueError("No samples with positive fluo and bgrd_biolum to estimate ratio_adinos")
    counts, edges = np.histogram(np.log10(bgrd_biolum[ok] / fluo[ok]), bins=bins)
    imode = np.argmax(counts)
    return float(10 ** ((edges[imode] + edges[imode + 1]) / 2))


def proxy_parameters(mission_start: datetime) -> tuple[float, float]:
    """Return (cal_factor, ratio_adinos) for Dorado missions starting at mission_start.

    The parameters depend on the HS2/bioluminescence configuration in use:

    period1: 2003.225 beginning of UBAT surveys
    period2: 2007.344 bathyphotometer mounted in the nose instead of side-mounted
    period3: 2009.055 new HS2 sensor (new bbp channels)
    period4: 2010.277 new UBAT installed, to present
    """
    period1_start = datetime(2003, 1, 1) + timedelta(days=225)  # noqa: DTZ001
    period2_start = datetime(2007, 1, 1) + timedelta(days=343)  # noqa: DTZ001
    period3_start = datetime(2009, 1, 1) + timedelta(days=54)  # noqa: DTZ001
    period4_start = datetime(2010, 1, 1) + timedelta(days=276)  # noqa: DTZ001
    if period1_start <= mission_start < period2_start:
        logger.info("Setting biolume proxy parameters for period1")
        return 0.0016691, 5.0119e13
    if period2_start <= mission_start < period3_start:
        logger.info("Setting biolume proxy parameters for period2")
        return 0.0016691, 2.5119e13
    if period3_start <= mission_start < period4_start:
        logger.info("Setting biolume proxy parameters for period3")
        return 0.0047101, 1.0000e14
    if mission_start >= period4_start:
        logger.info("Setting biolume proxy parameters for period4")
        return 0.0049859, 3.8019e13
    logger.warning(
        "Mission start %s is before period1_start %s - Setting 2010-2020 parameters",
        mission_start,
        period1_start,
    )
    return 0.0047118, 3.9811e13
