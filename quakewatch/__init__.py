"""quakewatch - poll a seismic event feed and stream newly seen events."""

__version__ = "0.1.0"
