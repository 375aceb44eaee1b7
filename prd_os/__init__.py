"""Product story workspace scaffolder and dashboard."""

__version__ = "1.0.0"
