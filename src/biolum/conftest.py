# noqa: INP001
import numpy as np
import pytest
import xarray as xr
from records import BioluminescenceRecord

SAMPLE_RATE = 60
DURATION = 120  # seconds
START_SECONDS = 1000.0
BACKGROUND = 1.0e10  # photons/s
LOW_FLASH = 5.0e10  # height above background, below FLASH_THRESHOLD
HIGH_FLASH = 2.0e11  # height above background, above FLASH_THRESHOLD
# Sample indices of the flashes, i.e. at 10, 20, and 50 seconds from the start
LOW_FLASH_INDICES = (600, 1200)
HIGH_FLASH_INDICES = (3000,)
FLUO = 0.002
# A negative fluorescence value, 30 seconds from the start
NEGATIVE_FLUO_INDEX = 30


def synthetic_biolum() -> np.ndarray:
    """Constant background with single sample flashes"""
    biolum = np.full(DURATION * SAMPLE_RATE, BACKGROUND)
    biolum[list(LOW_FLASH_INDICES)] += LOW_FLASH
    biolum[list(HIGH_FLASH_INDICES)] += HIGH_FLASH
    return biolum


@pytest.fixture
def seconds():
    return START_SECONDS + np.arange(DURATION * SAMPLE_RATE) / SAMPLE_RATE


@pytest.fixture
def flash_record(seconds):
    """120 seconds of 60 Hz data with two low and one high intensity flash"""
    return BioluminescenceRecord(seconds, synthetic_biolum())


@pytest.fixture
def noisy_record(seconds):
    """Slowly varying background with lognormal noise, no flow variable"""
    rng = np.random.default_rng(20180101)
    background = BACKGROUND * (2 + np.sin(2 * np.pi * (seconds - START_SECONDS) / 60))
    return BioluminescenceRecord(seconds, background * rng.lognormal(0, 0.3, len(seconds)))


@pytest.fixture
def biolum_nc(tmp_path):
    """netCDF file laid out like a Dorado _align.nc file: biolume_raw and
    biolume_flow (mL/s) on a 60 Hz time coordinate, hs2_fl700 at 1 Hz"""
    time60hz = np.datetime64("2011-09-13T00:00:00", "ns") + (
        np.arange(DURATION * SAMPLE_RATE) * 1e9 / SAMPLE_RATE
    ).astype("timedelta64[ns]")
    time = np.datetime64("2011-09-13T00:00:00", "ns") + (np.arange(DURATION) * 1e9).astype(
        "timedelta64[ns]"
    )
    fluo = np.full(len(time), FLUO)
    fluo[NEGATIVE_FLUO_INDEX] = -0.001
    ds = xr.Dataset(
        {
            "biolume_raw": (["time60hz"], synthetic_biolum()),
            "biolume_flow": (["time60hz"], np.full(len(time60hz), 350.0)),  # mL/s
            "hs2_fl700": (["time"], fluo),
        },
        coords={"time60hz": time60hz, "time": time},
    )
    nc_file = tmp_path / "dorado_2011.256.02_align.nc"
    ds.to_netcdf(nc_file)
    return nc_file
