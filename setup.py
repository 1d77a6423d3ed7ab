from setuptools import setup

setup(
    name="biolum-proxies",
    package_dir={"": "src/biolum"},
    py_modules=[
        "background",
        "biolum_proxies",
        "common_args",
        "flashes",
        "fluobiolum",
        "proxies",
        "records",
        "window_smoothing",
    ],
    version="0.1.0",
    description=(
        "Python code for computing plankton proxies from bioluminescence"
        " and fluorescence data"
    ),
    author="Monterey Bay Aquarium Research Institute",
    license="BSD-3",
    python_requires=">=3.11",
    install_requires=[
        "GitPython",
        "netCDF4",
        "numpy",
        "pandas",
        "scipy",
        "xarray",
    ],
    extras_require={"test": ["pytest"]},
)
