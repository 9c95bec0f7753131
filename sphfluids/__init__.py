"""CPU smoothed-particle hydrodynamics fluid simulation with grid acceleration, recording and timing utilities."""

__version__ = "0.1.0"