"""Resolution engine (Prolog-style backward chaining)."""

from .engine import PrologEngine
from .resolution import SLDResolver

__all__ = ["PrologEngine", "SLDResolver"]
