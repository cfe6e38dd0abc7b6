"""Home affordability and refinance planning with live benchmark mortgage rates."""

__version__ = "0.1.0"
