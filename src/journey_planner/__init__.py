"""Direct and one-transfer journey planning over a static GTFS schedule."""

__version__ = "0.1.0"
