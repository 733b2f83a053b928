"""On-disk stores under .auracoil/."""

from .review_cache import ReviewCache
from .state import StateManager

__all__ = ["ReviewCache", "StateManager"]
