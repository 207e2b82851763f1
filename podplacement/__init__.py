"""Pod Placement Analyzer: reconstructs pod displacement chains per owning controller."""

__version__ = "0.1.0"
