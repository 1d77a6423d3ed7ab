# noqa: INP001
"""
Shared argument parser infrastructure for the bioluminescence proxies modules.

Provides common argument parsers so that the command-line interfaces stay
consistent.
"""

import argparse

from background import ENVELOPE_MINI as DEFAULT_ENVELOPE_MINI
from background import WINDOW as DEFAULT_WINDOW
from flashes import FLASH_THRESHOLD as DEFAULT_FLASH_THRESHOLD
from flashes import MIN_PEAK_HEIGHT as DEFAULT_MIN_PEAK_HEIGHT
from proxies import WINDOW_PROXIES as DEFAULT_WINDOW_PROXIES
from records import FLOW_UNITS

DEFAULT_FLOW_UNITS = "mL/s"  # biolume_flow in Dorado _align.nc files


class CommonArgumentParser:
    """Shared argument parser factory for the proxies processing modules."""

    @staticmethod
    def get_core_parser():
        """Get parser with core arguments used across all modules.

        Returns:
            argparse.ArgumentParser: Parser configured with add_help=False for parent use
        """
        parser = argparse.ArgumentParser(add_help=False)

        parser.add_argument(
            "--input",
            action="store",
            required=True,
            help="netCDF file with 60 Hz bioluminescence data, e.g.: dorado_2011.256.02_align.nc",
        )
        parser.add_argument(
            "--output",
            action="store",
            help="Output netCDF file, default: input file name ending with _proxies.nc",
        )
        parser.add_argument(
            "--verbose",
            type=int,
            choices=range(3),
            default=0,
            help="Verbosity level: 0=WARN (default), 1=INFO, 2=DEBUG",
        )

        return parser

    @staticmethod
    def get_variables_parser():
        """Get parser with the names of the variables to read from the input file.

        Returns:
            argparse.ArgumentParser: Parser configured with add_help=False for parent use
        """
        parser = argparse.ArgumentParser(add_help=False)

        parser.add_argument(
            "--biolum_variable",
            action="store",
            default="biolume_raw",
            help="Name of the 60 Hz bioluminescence variable, default: biolume_raw",
        )
        parser.add_argument(
            "--flow_variable",
            action="store",
            default="biolume_flow",
            help=(
                "Name of the flow rate variable, default: biolume_flow."
                " A constant flow is assumed if it is not in the input file"
            ),
        )
        parser.add_argument(
            "--flow_units",
            choices=sorted(FLOW_UNITS),
            default=DEFAULT_FLOW_UNITS,
            help=f"Units of the flow rate variable, default: {DEFAULT_FLOW_UNITS}",
        )
        parser.add_argument(
            "--fluo_variable",
            action="store",
            help="Name of the fluorescence variable, e.g. hs2_fl700, for the phytoplankton proxies",
        )

        return parser

    @staticmethod
    def get_biolum_parser():
        """Get parser with bioluminescence proxies parameters.

        Returns:
            argparse.ArgumentParser: Parser configured with add_help=False for parent use
        """
        parser = argparse.ArgumentParser(add_help=False)

        parser.add_argument(
            "--window",
            type=float,
            default=DEFAULT_WINDOW,
            help=f"Window (s) for the background window smoothing, default: {DEFAULT_WINDOW}",
        )
        parser.add_argument(
            "--flash_threshold",
            type=float,
            default=DEFAULT_FLASH_THRESHOLD,
            help=(
                "Threshold separating low and high intensity flashes (ph/s),"
                f" default: {DEFAULT_FLASH_THRESHOLD:.0E}"
            ),
        )
        parser.add_argument(
            "--envelope_mini",
            type=float,
            default=DEFAULT_ENVELOPE_MINI,
            help=(
                "Minimum value for the envelope (max_bg - med_bg) (ph/s),"
                f" default: {DEFAULT_ENVELOPE_MINI:.1E}"
            ),
        )
        parser.add_argument(
            "--window_proxies",
            type=float,
            default=DEFAULT_WINDOW_PROXIES,
            help=(
                "Window (s) over which the zooplankton proxies are computed,"
                f" default: {DEFAULT_WINDOW_PROXIES}"
            ),
        )
        parser.add_argument(
            "--min_peak_height",
            type=float,
            default=DEFAULT_MIN_PEAK_HEIGHT,
            help=f"Minimum peak height for flash detection, default: {DEFAULT_MIN_PEAK_HEIGHT:.0E}",
        )
        parser.add_argument(
            "--prominence",
            action="store_true",
            help="Use min_peak_height as a peak prominence instead of a peak height",
        )

        return parser

    @staticmethod
    def get_fluobiolum_parser():
        """Get parser with fluorescence/bioluminescence unmixing parameters.

        Returns:
            argparse.ArgumentParser: Parser configured with add_help=False for parent use
        """
        parser = argparse.ArgumentParser(add_help=False)

        parser.add_argument(
            "--ratio_adinos",
            type=float,
            help="Background bioluminescence / fluorescence ratio for dinoflagellates",
        )
        parser.add_argument(
            "--cal_factor",
            type=float,
            default=1.0,
            help="Calibration factor to normalize the proxies, default: 1 (fluorescence units)",
        )
        parser.add_argument(
            "--dorado_parameters",
            action="store_true",
            help="Use the Dorado cal_factor and ratio_adinos for the period of the data",
        )

        return parser

    @classmethod
    def create_parser(cls, module_name, parents=None, **kwargs):
        """Create a parser with standard formatting and common parents.

        Args:
            module_name: Name of the module (for help text)
            parents: List of parent parsers to include
            **kwargs: Additional arguments for ArgumentParser

        Returns:
            argparse.ArgumentParser: Configured parser
        """
        default_kwargs = {
            "formatter_class": argparse.RawTextHelpFormatter,
            "parents": parents or [],
        }
        default_kwargs.update(kwargs)

        return argparse.ArgumentParser(**default_kwargs)


def get_standard_proxies_parser(**kwargs):
    """Get parser with all proxies arguments (core + variables + biolum + fluobiolum)."""
    parents = [
        CommonArgumentParser.get_core_parser(),
        CommonArgumentParser.get_variables_parser(),
        CommonArgumentParser.get_biolum_parser(),
        CommonArgumentParser.get_fluobiolum_parser(),
    ]
    return CommonArgumentParser.create_parser("proxies", parents=parents, **kwargs)
