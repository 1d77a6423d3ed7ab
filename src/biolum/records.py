# noqa: INP001
"""
Bioluminescence record container and sampling checks.

The 60 Hz bathyphotometer data (time, biolum, flow) are held in a
BioluminescenceRecord.  Time may be given as float seconds or as
numpy datetime64 values (as read from netCDF files with xarray); the
processing is done on float seconds.
"""

__copyright__ = "Copyright 2024, Monterey Bay Aquarium Research Institute"

import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(f"biolum.{__name__}")

SAMPLE_RATE = 60  # Hz, the bathyphotometer sampling rate the method assumes
DEFAULT_FLOW = 0.35  # L/s, assumed when the flow rate is not recorded
# Factors converting a flow rate to L/s
FLOW_UNITS = {"L/s": 1.0, "mL/s": 1.0e-3}
EPOCH = np.datetime64("1970-01-01T00:00:00", "ns")


class InvalidRecord(Exception):
    pass


def to_seconds(time: np.ndarray) -> np.ndarray:
    """Return time as float seconds, converting datetime64 from the epoch"""
    time = np.asarray(time)
    if np.issubdtype(time.dtype, np.datetime64):
        return (time.astype("datetime64[ns]") - EPOCH) / np.timedelta64(1, "s")
    return time.astype(float)


def from_seconds(seconds: np.ndarray, like: np.ndarray) -> np.ndarray:
    """Inverse of to_seconds(), returning datetime64 if `like` is datetime64"""
    if np.issubdtype(np.asarray(like).dtype, np.datetime64):
        return EPOCH + (np.asarray(seconds) * 1e9).astype("timedelta64[ns]")
    return np.asarray(seconds, dtype=float)


@dataclass(frozen=True)
class BioluminescenceRecord:
    time: np.ndarray
    biolum: np.ndarray
    flow: np.ndarray = None

    def __post_init__(self):
        if self.time is None or self.biolum is None:
            raise InvalidRecord("Both time and biolum are required")
        time = np.asarray(self.time)
        biolum = np.asarray(self.biolum, dtype=float)
        if self.flow is None:
            flow = np.full(len(time), DEFAULT_FLOW)
        else:
            flow = np.asarray(self.flow, dtype=float)
        if not len(time) == len(biolum) == len(flow):
            raise InvalidRecord(
                f"time ({len(time)}), biolum ({len(biolum)}) and flow ({len(flow)})"
                " must have the same length"
            )
        # Frozen dataclass: replace the caller's sequences with array copies
        object.__setattr__(self, "time", time.copy())
        object.__setattr__(self, "biolum", biolum.copy())
        object.__setattr__(self, "flow", flow.copy())

    def __len__(self):
        return len(self.biolum)

    @property
    def seconds(self) -> np.ndarray:
        return to_seconds(self.time)

    def check_sampling(self, sample_rate: int = SAMPLE_RATE) -> list[str]:
        """Log warnings if time steps are not regular or not at sample_rate.

        Both checks use a 1% tolerance.  The window smoothing assumes regular
        time steps, so irregular data are processed anyway and the result is
        an approximation.  Returns the warning messages that were logged.
        """
        warnings = []
        time_diff = np.diff(self.seconds)
        if len(time_diff) == 0:
            return warnings
        if abs(time_diff.max() - time_diff.min()) / time_diff.max() > 0.01:  # noqa: PLR2004
            warnings.append("The window smoothing method will assume that time steps are regular")
        time_interval = np.median(time_diff)
        expected = 1.0 / sample_rate
        if abs(time_interval - expected) / time_interval > 0.01:  # noqa: PLR2004
            warnings.append(
                f"Time resolution is {1.0 / time_interval:.2f} Hz,"
                f" processing assumes {sample_rate} Hz data"
            )
        for message in warnings:
            logger.warning(message)
        return warnings
