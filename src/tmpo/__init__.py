"""Command-line time tracking with milestones and exports."""

__version__ = "0.6.0"
