"""Statistics collection planner for a cost-based optimizer."""

__version__ = "0.1.0"
