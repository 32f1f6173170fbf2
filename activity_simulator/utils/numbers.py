"""Numeric helper functions shared across the application."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any


def to_decimal(value: Any) -> Decimal:
    """Convert a raw input value to ``Decimal`` via its decimal text form.

    Floats go through ``repr`` so ``0.15`` becomes ``Decimal("0.15")`` rather
    than its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Boolean is not a numeric value: {value!r}")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value))
    text = str(value).strip()
    try:
        result = Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"Not a decimal number: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def format_decimal(value: Decimal, places: int = 8) -> str:
    """Render with at most ``places`` decimals and no trailing zeros."""
    quantum = Decimal(1).scaleb(-places)
    text = f"{value.quantize(quantum):f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in {"-0", ""}:
        text = "0"
    return text


__all__ = ["format_decimal", "to_decimal"]
