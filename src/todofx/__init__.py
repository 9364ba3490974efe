"""todofx — capability-scoped effect pipeline with a Todo service."""

__version__ = "0.1.0"
