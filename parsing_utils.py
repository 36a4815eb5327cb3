"""Utility functions for parsing quantities and material types from flow payloads."""

import re

_LEADING_NUMBER = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _extract_leading_number(text: str) -> str | None:
    """Find the numeric prefix of a string.

    Precondition:
        text is a non-None string

    Postcondition:
        returns the leading decimal number (sign and exponent included)
        returns None if text does not start with a number after whitespace

    Args:
        text: string such as "180", " 12.5 kg" or "tons"

    Returns:
        numeric prefix string or None
    """
    match = _LEADING_NUMBER.match(text.strip())
    return match.group(0) if match else None


def parse_quantity(value) -> float:
    """Parse a relationship quantity leniently.

    Precondition:
        value is None, a number, or a string

    Postcondition:
        numbers are returned as float
        strings yield their leading number, so "180kg" is 180.0
        None, empty, or non-numeric text yields 0.0
        booleans are not treated as numbers and yield 0.0

    Args:
        value: raw quantity from a payload or statement property

    Returns:
        quantity as a float
    """
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    number = _extract_leading_number(str(value))
    if number is None:
        return 0.0
    return float(number)



def parse_material_type(text: str):
    """Parse a material type name case-insensitively.

    Precondition:
        text is a string

    Postcondition:
        returns the MaterialType whose value equals the lower-cased text
        raises ValueError naming the allowed values otherwise

    Args:
        text: type name such as "input" or "Intermediate"

    Returns:
        MaterialType member

    Raises:
        ValueError: if text is not a known material type
    """
    from materials import MaterialType

    try:
        return MaterialType(str(text).lower())
    except ValueError as exc:
        allowed = ", ".join(member.value for member in MaterialType)
        raise ValueError(f"Invalid material type '{text}'. Must be one of: {allowed}") from exc
