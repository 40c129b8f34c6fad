"""Fixed-point engine (Datalog-style bottom-up evaluation)."""

from .engine import DatalogEngine, FixedPointMatches
from .fixed_point import FactIndex, compute

__all__ = ["DatalogEngine", "FixedPointMatches", "FactIndex", "compute"]
