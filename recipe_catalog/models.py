from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List


CREATION_DATE_KEY = "creation-date"


def today_utc() -> str:
    """Return the current UTC date as ``YYYY-MM-DD``."""

    return datetime.now(timezone.utc).date().isoformat()


def coerce_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or value is None:
        return json.dumps(value)
    if isinstance(value, (int, float)):
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)
    return json.dumps(value, ensure_ascii=False)


def coerce_lines(values: Iterable[Any]) -> List[str]:
    return [coerce_text(value) for value in values]


@dataclass
class Recipe:
    """Domain object representing one catalog entry."""

    name: str
    creation_date: str
    ingredients: List[str]
    instructions: List[str]
    notes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            CREATION_DATE_KEY: self.creation_date,
            "ingredients": list(self.ingredients),
            "instructions": list(self.instructions),
            "notes": list(self.notes),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Recipe":
        """Build a recipe from a stored JSON object.

        Stored entries are trusted less than validated payloads: missing or
        mistyped fields fall back to empty values instead of raising.
        """

        def _lines(key: str) -> List[str]:
            value = data.get(key)
            return coerce_lines(value) if isinstance(value, list) else []

        name = data.get("name")
        creation_date = data.get(CREATION_DATE_KEY)
        return cls(
            name=name if isinstance(name, str) else "",
            creation_date=creation_date if isinstance(creation_date, str) else "",
            ingredients=_lines("ingredients"),
            instructions=_lines("instructions"),
            notes=_lines("notes"),
        )


@dataclass(frozen=True)
class RemovalResult:
    removed: int
    remaining: int

    def to_dict(self) -> Dict[str, int]:
        return {"removed": self.removed, "remaining": self.remaining}


__all__ = [
    "CREATION_DATE_KEY",
    "Recipe",
    "RemovalResult",
    "coerce_lines",
    "coerce_text",
    "today_utc",
]
