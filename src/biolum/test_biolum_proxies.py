# noqa: INP001
import logging

import numpy as np
import pytest
import xarray as xr
from background import ENVELOPE_MINI
from biolum_proxies import BiolumProxies
from conftest import (
    BACKGROUND,
    FLUO,
    HIGH_FLASH_INDICES,
    LOW_FLASH_INDICES,
    NEGATIVE_FLUO_INDEX,
)
from fluobiolum import unmix_fluobiolum
from proxies import WINDOW_PROXIES
from records import InvalidRecord


def test_process_biolum(flash_record):
    bl_proxies = BiolumProxies()
    background, flashes, proxies = bl_proxies.process_biolum(flash_record)
    assert len(background.med_bg) == len(flash_record)  # noqa: S101
    np.testing.assert_array_equal(
        np.flatnonzero(flashes.iflash), sorted(LOW_FLASH_INDICES + HIGH_FLASH_INDICES)
    )
    assert len(proxies) == 120  # noqa: PLR2004, S101
    assert bl_proxies.zero_note == ""  # noqa: S101


def test_zero_flow_is_replaced(flash_record):
    flow = flash_record.flow.copy()
    flow[:60] = 0.0
    record = type(flash_record)(flash_record.time, flash_record.biolum, flow)
    bl_proxies = BiolumProxies()
    _, _, proxies = bl_proxies.process_biolum(record)
    assert "60 of 7200" in bl_proxies.zero_note  # noqa: S101
    assert np.isfinite(proxies["dinoflagellates"]).all()  # noqa: S101


def test_flash_threshold(flash_record):
    # All flashes are high intensity with a low flash_threshold
    _, flashes, _ = BiolumProxies(flash_threshold=1.0e10).process_biolum(flash_record)
    assert flashes.nbflash_low == 0  # noqa: S101
    assert flashes.nbflash_high == 3  # noqa: PLR2004, S101


def test_bgrd_biolum_1hz(flash_record):
    bl_proxies = BiolumProxies()
    background, _, proxies = bl_proxies.process_biolum(flash_record)
    bgrd_biolum = bl_proxies.bgrd_biolum_1hz(flash_record, background, proxies)
    assert bgrd_biolum.shape == (len(proxies),)  # noqa: S101
    np.testing.assert_allclose(bgrd_biolum, 1.0e10)


def test_read_record(biolum_nc):
    record = BiolumProxies().read_record(biolum_nc)
    assert len(record) == 7200  # noqa: PLR2004, S101
    assert np.issubdtype(record.time.dtype, np.datetime64)  # noqa: S101
    # biolume_flow is in mL/s
    np.testing.assert_allclose(record.flow, 0.35)
    with pytest.raises(InvalidRecord):
        BiolumProxies().read_record(biolum_nc, biolum_variable="not_a_variable")


def test_read_record_flow_units(biolum_nc):
    record = BiolumProxies().read_record(biolum_nc, flow_units="L/s")
    np.testing.assert_allclose(record.flow, 350.0)
    with pytest.raises(InvalidRecord, match="flow_units"):
        BiolumProxies().read_record(biolum_nc, flow_units="gal/min")


def test_read_record_without_flow(biolum_nc):
    record = BiolumProxies().read_record(biolum_nc, flow_variable="not_a_variable")
    np.testing.assert_allclose(record.flow, 0.35)


def test_read_fluo(biolum_nc):
    bl_proxies = BiolumProxies()
    record = bl_proxies.read_record(biolum_nc)
    grid = np.unique(np.floor(record.seconds))
    fluo = bl_proxies.read_fluo(biolum_nc, "hs2_fl700", grid)
    assert fluo.shape == (120,)  # noqa: S101
    # Negative fluorescence is set to NaN
    assert np.flatnonzero(np.isnan(fluo)).tolist() == [NEGATIVE_FLUO_INDEX]  # noqa: S101
    np.testing.assert_allclose(np.delete(fluo, NEGATIVE_FLUO_INDEX), FLUO)
    with pytest.raises(InvalidRecord):
        bl_proxies.read_fluo(biolum_nc, "not_a_variable", grid)


def expected_fluo() -> np.ndarray:
    fluo = np.full(120, FLUO)
    fluo[NEGATIVE_FLUO_INDEX] = np.nan
    return fluo


def test_process_file(biolum_nc, tmp_path):
    out_fn = tmp_path / "proxies.nc"
    bl_proxies = BiolumProxies()
    bl_proxies.process_file(
        biolum_nc, out_fn=out_fn, fluo_variable="hs2_fl700", ratio_adinos=1.0e13
    )
    with xr.open_dataset(out_fn) as ds:
        for var in ("med_bg", "min_bg", "max_bg", "iflash"):
            assert ds[var].dims == ("time60hz",)  # noqa: S101
        assert np.issubdtype(ds["time60hz"].dtype, np.datetime64)  # noqa: S101
        for var in ("dinoflagellates", "larvaceans", "copepods", "jellies"):
            assert ds[var].dims == ("time",)  # noqa: S101
            assert "long_name" in ds[var].attrs  # noqa: S101
        assert ds["iflash"].sum() == 3  # noqa: PLR2004, S101
        assert ds.sizes["time"] == 120  # noqa: PLR2004, S101
        # Flow converted from mL/s to L/s
        np.testing.assert_allclose(ds["dinoflagellates"], BACKGROUND / 0.35)
        adinos, hdinos, aother = unmix_fluobiolum(
            expected_fluo(), np.full(120, BACKGROUND), 1.0e13
        )
        np.testing.assert_allclose(ds["adinos"], adinos)
        np.testing.assert_allclose(ds["hdinos"], hdinos)
        np.testing.assert_allclose(ds["aother"], aother, atol=1e-12)
        assert "ratio_adinos = 1.0000e+13" in ds["adinos"].attrs["comment"]  # noqa: S101


def test_process_file_dorado_parameters(biolum_nc, tmp_path):
    ds = BiolumProxies().process_file(
        biolum_nc,
        out_fn=tmp_path / "proxies.nc",
        fluo_variable="hs2_fl700",
        dorado_parameters=True,
    )
    # 2011 data: period4 parameters, applied to min_bg in photons/liter
    assert "3.8019e+13" in ds["hdinos"].attrs["comment"]  # noqa: S101
    adinos, hdinos, aother = unmix_fluobiolum(
        expected_fluo(), np.full(120, BACKGROUND / 0.35), 3.8019e13, 0.0049859
    )
    np.testing.assert_allclose(ds["adinos"], adinos)
    np.testing.assert_allclose(ds["hdinos"], hdinos, atol=1e-12)
    np.testing.assert_allclose(ds["aother"], aother)


def test_process_file_requires_ratio_adinos(biolum_nc, tmp_path):
    with pytest.raises(InvalidRecord, match="ratio_adinos"):
        BiolumProxies().process_file(
            biolum_nc, out_fn=tmp_path / "proxies.nc", fluo_variable="hs2_fl700"
        )


def test_process_command_line(monkeypatch, biolum_nc):
    monkeypatch.setattr(
        "sys.argv",
        [
            "biolum_proxies.py",
            "--input",
            str(biolum_nc),
            "--flash_threshold",
            "2e10",
            "--prominence",
            "--verbose",
            "1",
        ],
    )
    bl_proxies = BiolumProxies()
    bl_proxies.process_command_line()
    assert bl_proxies.flash_threshold == 2.0e10  # noqa: PLR2004, S101
    assert bl_proxies.window == 5  # noqa: PLR2004, S101
    assert bl_proxies.envelope_mini == ENVELOPE_MINI  # noqa: S101
    assert bl_proxies.window_proxies == WINDOW_PROXIES  # noqa: S101
    assert bl_proxies.args.flow_units == "mL/s"  # noqa: S101
    assert bl_proxies.peak_finder.__name__ == "find_prominent_peaks"  # noqa: S101


def test_command_line_fluo_requires_ratio(monkeypatch, biolum_nc):
    monkeypatch.setattr(
        "sys.argv",
        ["biolum_proxies.py", "--input", str(biolum_nc), "--fluo_variable", "hs2_fl700"],
    )
    with pytest.raises(SystemExit):
        BiolumProxies().process_command_line()


def test_verbose_sets_module_log_levels(flash_record, caplog):
    BiolumProxies(verbose=1).process_biolum(flash_record)
    # INFO messages from flashes.py and proxies.py
    assert "Found" in caplog.text  # noqa: S101
    assert "Generating" in caplog.text  # noqa: S101
    assert logging.getLogger("biolum.flashes").getEffectiveLevel() == logging.INFO  # noqa: S101

    caplog.clear()
    BiolumProxies(verbose=0).process_biolum(flash_record)
    assert "Found" not in caplog.text  # noqa: S101
