"""safeclean data models."""

from safeclean.models.category import Category
from safeclean.models.found_entry import FoundEntry
from safeclean.models.clean_result import CleanResult

__all__ = [
    "Category",
    "CleanResult",
    "FoundEntry",
]
