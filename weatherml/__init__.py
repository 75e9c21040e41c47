"""Next-day regression and recursive multi-day weather forecasting."""

__version__ = "0.1.0"
