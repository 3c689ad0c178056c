"""PrintTracker - 3D print job tracking."""

__version__ = "1.0.0"
