from __future__ import annotations

import re
from typing import Any, Callable, Optional, Set

from .errors import ValidationError
from .models import CREATION_DATE_KEY, Recipe, coerce_lines, today_utc

CREATION_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)


def parse_recipe_payload(data: Any, *, today: Optional[Callable[[], str]] = None) -> Recipe:
    """Validate a decoded POST body and build the recipe to store.

    ``name`` is trimmed, list elements are coerced to strings and a missing
    ``creation-date`` defaults to ``today()`` (the current UTC date).
    """

    if not isinstance(data, dict):
        raise ValidationError("Invalid recipe payload. Expected a JSON object.")

    name = data.get("name")
    ingredients = data.get("ingredients")
    instructions = data.get("instructions")
    if not isinstance(name, str) or not isinstance(ingredients, list) or not isinstance(instructions, list):
        raise ValidationError(
            "Invalid recipe payload. Required: name (string), ingredients (array), "
            "instructions (array)."
        )

    name = name.strip()
    if not name:
        raise ValidationError("Invalid recipe payload. name must not be empty.")

    notes = data.get("notes")
    if notes is None:
        notes = []
    elif not isinstance(notes, list):
        raise ValidationError("Invalid recipe payload. notes must be an array when provided.")

    if CREATION_DATE_KEY in data:
        creation_date = _parse_creation_date(data[CREATION_DATE_KEY])
    else:
        creation_date = (today or today_utc)()

    return Recipe(
        name=name,
        creation_date=creation_date,
        ingredients=coerce_lines(ingredients),
        instructions=coerce_lines(instructions),
        notes=coerce_lines(notes),
    )


def _parse_creation_date(value: Any) -> str:
    if not isinstance(value, str) or not CREATION_DATE_PATTERN.fullmatch(value):
        raise ValidationError("Invalid creation-date. Expected format YYYY-MM-DD.")
    return value


def parse_indices_payload(data: Any) -> Set[int]:
    """Validate a decoded DELETE body and return the positions to remove."""

    indices = data.get("indices") if isinstance(data, dict) else None
    if not isinstance(indices, list) or not indices:
        raise ValidationError('Invalid payload: provide "indices" array of integers.')

    positions: Set[int] = set()
    for value in indices:
        if isinstance(value, bool):
            raise ValidationError('Invalid payload: provide "indices" array of integers.')
        if isinstance(value, int):
            positions.add(value)
        elif isinstance(value, float) and value.is_integer():
            positions.add(int(value))
        else:
            raise ValidationError('Invalid payload: provide "indices" array of integers.')
    return positions


__all__ = ["CREATION_DATE_PATTERN", "parse_indices_payload", "parse_recipe_payload"]
