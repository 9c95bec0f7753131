[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sphfluids"
version = "0.1.0"
description = "CPU smoothed-particle hydrodynamics fluid simulator with a uniform acceleration grid, point and brick recording, and timing utilities"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["sph", "fluid", "simulation", "particles", "hydrodynamics"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Physics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
sphfluids = "sphfluids.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["sphfluids"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
