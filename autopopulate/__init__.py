"""Default values for data-entry fields, resolved from action tags."""

__version__ = "0.3.0"
