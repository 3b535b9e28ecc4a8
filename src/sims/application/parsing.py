"""Turn raw user input into domain enums and value objects."""

from __future__ import annotations

from enum import Enum
from typing import TypeVar

from sims.domain.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def parse_choice(enum_cls: type[E], raw: str, label: str) -> E:
    """Look up *raw* among the values of *enum_cls* (case-insensitive)."""
    value = (raw or "").strip().lower()
    for member in enum_cls:
        if member.value == value:
            return member
    allowed = ", ".join(m.value for m in enum_cls)
    raise ValidationError(f"Invalid {label} '{raw}'. Expected one of: {allowed}")
