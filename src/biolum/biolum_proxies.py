#!/usr/bin/env python
"""
Compute plankton proxies from 60 Hz bioluminescence and fluorescence data.

Bioluminescence proxies (1 Hz): dinoflagellates, larvaceans, copepods, and
small jellies, from the background and flashes of the 60 Hz bioluminescence.
Phytoplankton proxies (1 Hz, if a fluorescence variable is given): autotrophic
dinoflagellates (adinos), heterotrophic dinoflagellates (hdinos), and other
phytoplankton (aother).

Reference: Messié, M., I. Shulman, S. Martini and S.D.H. Haddock (2019).
Using fluorescence and bioluminescence sensors to characterize auto- and
heterotrophic plankton communities. Progress in Oceanography, 171, 76-92,
doi:10.1016/j.pocean.2018.12.010.
"""

__copyright__ = "Copyright 2024, Monterey Bay Aquarium Research Institute"

import logging
import sys
import time
from datetime import UTC, datetime
from pathlib import Path
from socket import gethostname

import git
import numpy as np
import pandas as pd
import xarray as xr

from background import BackgroundEnvelope, estimate_background
from common_args import (
    DEFAULT_ENVELOPE_MINI,
    DEFAULT_FLASH_THRESHOLD,
    DEFAULT_FLOW_UNITS,
    DEFAULT_MIN_PEAK_HEIGHT,
    DEFAULT_WINDOW,
    DEFAULT_WINDOW_PROXIES,
    get_standard_proxies_parser,
)
from flashes import FlashSet, PeakFinder, classify_flashes, find_peaks, find_prominent_peaks
from fluobiolum import FluoBiolumProxies, proxy_parameters, unmix_fluobiolum
from proxies import aggregate_proxies, bin_to_seconds
from records import DEFAULT_FLOW, FLOW_UNITS, BioluminescenceRecord, InvalidRecord, to_seconds

TIME60HZ = "time60hz"
TIME = "time"


class BiolumProxies:
    # Parent of the loggers of the processing modules
    logger = logging.getLogger("biolum")
    _handler = logging.StreamHandler()
    _formatter = logging.Formatter(
        "%(levelname)s %(asctime)s %(filename)s "
        "%(funcName)s():%(lineno)d [%(process)d] %(message)s",
    )
    _handler.setFormatter(_formatter)
    logger.addHandler(_handler)
    _log_levels = (logging.WARN, logging.INFO, logging.DEBUG)

    def __init__(  # noqa: PLR0913
        self,
        window: float = DEFAULT_WINDOW,
        flash_threshold: float = DEFAULT_FLASH_THRESHOLD,
        envelope_mini: float = DEFAULT_ENVELOPE_MINI,
        window_proxies: float = DEFAULT_WINDOW_PROXIES,
        min_peak_height: float = DEFAULT_MIN_PEAK_HEIGHT,
        peak_finder: PeakFinder = find_peaks,
        verbose: int = 0,
        commandline: str = "",
    ) -> None:
        """Initialize BiolumProxies with explicit parameters.

        Args:
            window: Window (s) for the background window smoothing
            flash_threshold: Threshold separating low and high intensity flashes (ph/s)
            envelope_mini: Minimum value for the envelope max_bg - med_bg (ph/s)
            window_proxies: Window (s) over which the zooplankton proxies are computed
            min_peak_height: Passed to peak_finder
            peak_finder: Callable (values, min_height) -> indices of peaks
            verbose: Verbosity level (0-2)
            commandline: Command line string for tracking
        """
        self.window = window
        self.flash_threshold = flash_threshold
        self.envelope_mini = envelope_mini
        self.window_proxies = window_proxies
        self.min_peak_height = min_peak_height
        self.peak_finder = peak_finder
        self.verbose = verbose
        self.commandline = commandline
        self.zero_note = ""
        self.logger.setLevel(self._log_levels[verbose])

    def process_biolum(
        self, record: BioluminescenceRecord
    ) -> tuple[BackgroundEnvelope, FlashSet, pd.DataFrame]:
        """Background, flashes and 1 Hz proxies from a 60 Hz record"""
        self.logger.info("Computing bioluminescence proxies from %d data points", len(record))
        record.check_sampling()
        seconds = record.seconds

        # Flow sensor is not always on, so fill in 0.0 values with the default flow
        flow = record.flow.copy()
        num_zero_flow = np.count_nonzero(flow == 0)
        self.zero_note = ""
        if num_zero_flow > 0:
            self.zero_note = (
                f"Zero flow values found: {num_zero_flow} of {len(flow)}"
                f" - replaced with {DEFAULT_FLOW} L/s"
            )
            self.logger.info(self.zero_note)
            flow[flow == 0] = DEFAULT_FLOW

        background = estimate_background(
            record.biolum, seconds, window=self.window, envelope_mini=self.envelope_mini
        )
        flashes = classify_flashes(
            record.biolum,
            background.med_bg,
            background.max_bg,
            flash_threshold=self.flash_threshold,
            min_peak_height=self.min_peak_height,
            peak_finder=self.peak_finder,
        )
        proxies = aggregate_proxies(
            record.time,
            record.biolum,
            flashes,
            background.med_bg,
            background.min_bg,
            flow,
            window_proxies=self.window_proxies,
        )
        return background, flashes, proxies

    def bgrd_biolum_1hz(
        self,
        record: BioluminescenceRecord,
        background: BackgroundEnvelope,
        proxies: pd.DataFrame,
    ) -> np.ndarray:
        """med-background averaged on the 1 Hz time steps of proxies"""
        return bin_to_seconds(record.seconds, background.med_bg, to_seconds(proxies.index))

    def process_fluobiolum(
        self,
        fluo: np.ndarray,
        bgrd_biolum: np.ndarray,
        ratio_adinos: float,
        cal_factor: float = 1.0,
    ) -> FluoBiolumProxies:
        self.logger.info("Computing adinos, hdinos, and aother proxies")
        return unmix_fluobiolum(fluo, bgrd_biolum, ratio_adinos, cal_factor)

    def read_record(
        self,
        nc_file: str,
        biolum_variable: str = "biolume_raw",
        flow_variable: str = "biolume_flow",
        flow_units: str = DEFAULT_FLOW_UNITS,
    ) -> BioluminescenceRecord:
        """Read the bioluminescence (and flow, if present) from nc_file.

        The time coordinate of the bioluminescence variable is used.  A flow
        variable on a different time coordinate is interpolated onto it and
        converted from flow_units to L/s.
        """
        if flow_units not in FLOW_UNITS:
            raise InvalidRecord(
                f"Unknown flow_units {flow_units}, must be one of {list(FLOW_UNITS)}"
            )
        self.logger.info("Reading %s from %s", biolum_variable, nc_file)
        with xr.open_dataset(nc_file) as ds:
            if biolum_variable not in ds:
                raise InvalidRecord(f"Variable {biolum_variable} not found in {nc_file}")
            biolum = ds[biolum_variable]
            biolum_time = biolum[biolum.dims[0]].to_numpy()
            flow = None
            if flow_variable in ds:
                da_flow = ds[flow_variable]
                flow_time = da_flow[da_flow.dims[0]].to_numpy()
                flow = np.interp(
                    to_seconds(biolum_time), to_seconds(flow_time), da_flow.to_numpy()
                )
                if flow_units != "L/s":
                    self.logger.info("Converting %s from %s to L/s", flow_variable, flow_units)
                    flow = flow * FLOW_UNITS[flow_units]
            else:
                self.logger.info(
                    "No %s variable, assuming a constant flow of %s L/s",
                    flow_variable,
                    DEFAULT_FLOW,
                )
            return BioluminescenceRecord(biolum_time, biolum.to_numpy(), flow)

    def read_fluo(self, nc_file: str, fluo_variable: str, grid: np.ndarray) -> np.ndarray:
        """Read fluo_variable from nc_file and average it on the 1 Hz grid (seconds)"""
        self.logger.info("Reading %s from %s", fluo_variable, nc_file)
        with xr.open_dataset(nc_file) as ds:
            if fluo_variable not in ds:
                raise InvalidRecord(f"Variable {fluo_variable} not found in {nc_file}")
            fluo = ds[fluo_variable]
            fluo_time = fluo[fluo.dims[0]].to_numpy()
            fluo_values = fluo.to_numpy().astype(float)
        # Negative fluorescence values are not physical
        num_negative = np.count_nonzero(fluo_values < 0)
        if num_negative > 0:
            self.logger.info(
                "Setting %d negative %s values to NaN", num_negative, fluo_variable
            )
            fluo_values[fluo_values < 0] = np.nan
        return bin_to_seconds(to_seconds(fluo_time), fluo_values, grid)

    def to_dataset(  # noqa: PLR0913
        self,
        record: BioluminescenceRecord,
        background: BackgroundEnvelope,
        flashes: FlashSet,
        proxies: pd.DataFrame,
        fluobiolum: FluoBiolumProxies = None,
        fluobiolum_note: str = "",
    ) -> xr.Dataset:
        """Collect the 60 Hz and 1 Hz products in a CF style Dataset"""
        ds = xr.Dataset(coords={TIME60HZ: record.time, TIME: proxies.index.to_numpy()})
        flash_threshold_note = f"Computed with flash_threshold = {self.flash_threshold:.0e}"
        variables_60hz = {
            "med_bg": (
                background.med_bg,
                "Median background bioluminescence",
                "photons/s",
                f"Median then mean window smoothing with a {self.window} s window",
            ),
            "min_bg": (
                background.min_bg,
                "Minimum background bioluminescence",
                "photons/s",
                f"Min then mean window smoothing with a {self.window} s window",
            ),
            "max_bg": (
                background.max_bg,
                "Upper bound of the background envelope",
                "photons/s",
                f"2 * med_bg - min_bg, at least med_bg + {self.envelope_mini:.1e}",
            ),
            "iflash": (
                flashes.iflash.astype("int8"),
                "Flashes above the background envelope",
                "1",
                flash_threshold_note,
            ),
        }
        for name, (data, long_name, units, comment) in variables_60hz.items():
            ds[name] = xr.DataArray(data, dims=[TIME60HZ])
            ds[name].attrs = {"long_name": long_name, "units": units, "comment": comment}

        window_note = f"Within a {self.window_proxies} s window"
        variables_1hz = {
            "dinoflagellates": (
                "Background bioluminescence (dinoflagellates proxy)",
                "photons/liter",
                self.zero_note,
            ),
            "larvaceans": (
                "Low intensity flashes (larvaceans proxy)",
                "flashes/liter",
                f"{window_note} - {flash_threshold_note}",
            ),
            "copepods": (
                "High intensity flashes (copepods proxy)",
                "flashes/liter",
                f"{window_note} - {flash_threshold_note}",
            ),
            "jellies": (
                "Flashes intensity (small jellies proxy)",
                "photons/s",
                f"{window_note}, maximum bioluminescence above med_bg",
            ),
        }
        for name, (long_name, units, comment) in variables_1hz.items():
            ds[name] = xr.DataArray(proxies[name].to_numpy(), dims=[TIME])
            ds[name].attrs = {"long_name": long_name, "units": units, "comment": comment}

        if fluobiolum is not None:
            long_names = {
                "adinos": "Autotrophic dinoflagellates proxy",
                "hdinos": "Heterotrophic dinoflagellates proxy",
                "aother": "Other phytoplankton proxy",
            }
            for name, long_name in long_names.items():
                ds[name] = xr.DataArray(getattr(fluobiolum, name), dims=[TIME])
                ds[name].attrs = {"long_name": long_name, "comment": fluobiolum_note}

        ds[TIME].attrs = {"standard_name": "time", "long_name": "Time (UTC)"}
        ds.attrs = self._build_global_metadata(proxies)
        return ds

    def _build_global_metadata(self, proxies: pd.DataFrame) -> dict:
        metadata = {
            "netcdf_version": "4",
            "Conventions": "CF-1.6",
            "featureType": "trajectory",
            "time_coverage_start": str(proxies.index.min()),
            "time_coverage_end": str(proxies.index.max()),
        }
        # Skip dynamic metadata during testing to ensure reproducible results
        if "pytest" in sys.modules:
            return metadata
        try:
            gitcommit = git.Repo(search_parent_directories=True).head.object.hexsha
        except (git.InvalidGitRepositoryError, ValueError) as e:
            self.logger.warning("could not get head commit sha: %s", e)
            gitcommit = "<failed to get git commit>"
        iso_now = datetime.now(tz=UTC).isoformat().split(".")[0] + "Z"
        metadata["date_created"] = iso_now
        metadata["history"] = f"Created by {self.commandline} on {iso_now}"
        metadata["source"] = (
            f"Bioluminescence proxies produced with execution of '{self.commandline}'"
            f" at {iso_now} on host {gethostname()} using git commit {gitcommit}"
        )
        metadata["references"] = "Messié et al. (2019), doi:10.1016/j.pocean.2018.12.010"
        return metadata

    def process_file(  # noqa: PLR0913
        self,
        nc_file: str,
        out_fn: str = None,
        biolum_variable: str = "biolume_raw",
        flow_variable: str = "biolume_flow",
        flow_units: str = DEFAULT_FLOW_UNITS,
        fluo_variable: str = None,
        ratio_adinos: float = None,
        cal_factor: float = 1.0,
        dorado_parameters: bool = False,  # noqa: FBT001, FBT002
    ) -> xr.Dataset:
        record = self.read_record(nc_file, biolum_variable, flow_variable, flow_units)
        background, flashes, proxies = self.process_biolum(record)

        fluobiolum = None
        fluobiolum_note = ""
        if fluo_variable:
            grid = to_seconds(proxies.index)
            fluo = self.read_fluo(nc_file, fluo_variable, grid)
            if dorado_parameters:
                # The Dorado ratio_adinos values were fit against min_bg in photons/liter
                data_start = pd.to_datetime(record.seconds[0], unit="s").to_pydatetime()
                cal_factor, ratio_adinos = proxy_parameters(data_start)
                bgrd_biolum = proxies["dinoflagellates"].to_numpy()
                bgrd_note = "dinoflagellates (min_bg / flow)"
            else:
                if ratio_adinos is None:
                    raise InvalidRecord(f"ratio_adinos is required to unmix {fluo_variable}")
                bgrd_biolum = self.bgrd_biolum_1hz(record, background, proxies)
                bgrd_note = "med_bg"
            fluobiolum = self.process_fluobiolum(fluo, bgrd_biolum, ratio_adinos, cal_factor)
            fluobiolum_note = (
                f"From {fluo_variable} and {bgrd_note} using ratio_adinos = {ratio_adinos:.4e}"
                f" and cal_factor = {cal_factor:.6f}"
            )

        ds = self.to_dataset(record, background, flashes, proxies, fluobiolum, fluobiolum_note)
        out_fn = out_fn or str(Path(nc_file).with_suffix("")) + "_proxies.nc"
        ds.to_netcdf(path=out_fn)
        self.logger.info("Saved proxies to %s", out_fn)
        return ds

    def process_command_line(self):
        """Process command line arguments using shared parser infrastructure."""
        parser = get_standard_proxies_parser(description=__doc__)
        self.args = parser.parse_args()
        if (
            self.args.fluo_variable
            and self.args.ratio_adinos is None
            and not self.args.dorado_parameters
        ):
            parser.error("--ratio_adinos or --dorado_parameters is required with --fluo_variable")

        # Set instance attributes from parsed arguments
        self.window = self.args.window
        self.flash_threshold = self.args.flash_threshold
        self.envelope_mini = self.args.envelope_mini
        self.window_proxies = self.args.window_proxies
        self.min_peak_height = self.args.min_peak_height
        self.peak_finder = find_prominent_peaks if self.args.prominence else find_peaks
        self.verbose = self.args.verbose
        self.commandline = " ".join(sys.argv)
        self.logger.setLevel(self._log_levels[self.verbose])


if __name__ == "__main__":
    bl_proxies = BiolumProxies()
    bl_proxies.process_command_line()
    p_start = time.time()
    bl_proxies.process_file(
        bl_proxies.args.input,
        out_fn=bl_proxies.args.output,
        biolum_variable=bl_proxies.args.biolum_variable,
        flow_variable=bl_proxies.args.flow_variable,
        flow_units=bl_proxies.args.flow_units,
        fluo_variable=bl_proxies.args.fluo_variable,
        ratio_adinos=bl_proxies.args.ratio_adinos,
        cal_factor=bl_proxies.args.cal_factor,
        dorado_parameters=bl_proxies.args.dorado_parameters,
    )
    bl_proxies.logger.info("Time to process: %.2f seconds", (time.time() - p_start))
