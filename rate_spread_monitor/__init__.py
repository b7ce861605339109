"""US/Japan rate spread monitor."""

__version__ = "0.1.0"
