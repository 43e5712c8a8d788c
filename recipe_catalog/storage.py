from __future__ import annotations

from typing import AbstractSet, List, Protocol

from .models import Recipe, RemovalResult


class RecipeRepository(Protocol):
    """Protocol describing the behaviour required by the web layer."""

    def load(self) -> List[Recipe]:
        """Return the catalog in stored order, or an empty list if unreadable."""

    def append(self, entry: Recipe) -> Recipe:
        """Persist ``entry`` at the end of the catalog and return it."""

    def remove_by_indices(self, indices: AbstractSet[int]) -> RemovalResult:
        """Drop the entries at ``indices``; unknown positions are ignored."""


__all__ = ["RecipeRepository"]
