"""filing-desk: correspondence normalization pipeline."""

__version__ = "0.1.0"
