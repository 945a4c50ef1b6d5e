"""
Parsing and validation of user-entered threshold values.

Accepted formats are a plain decimal (``0.7``) or a percentage (``70%``).
Parsing and range validation are separate steps: ``parse_threshold_value``
never clamps, ``validate_threshold_value`` rejects anything outside [0, 1].
"""

from __future__ import annotations

import math
import re

from sightguard.exceptions import ParseError, RangeError

# Optional sign, ASCII digits and an optional fraction
DECIMAL_PATTERN = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")


def parse_threshold_value(text: str) -> float:
    """Parse a decimal or ``NN%`` string into a float.

    Raises:
        ParseError: If the text (without its ``%`` suffix) is not a plain decimal.
    """
    raw = (text or "").strip()
    divisor = 1.0
    if raw.endswith("%"):
        raw = raw[:-1].strip()
        divisor = 100.0

    if not DECIMAL_PATTERN.fullmatch(raw):
        raise ParseError(text)
    return float(raw) / divisor


def validate_threshold_value(value: float) -> float:
    """Return ``value`` unchanged when it lies in [0, 1].

    Raises:
        RangeError: If the value is below 0 or above 1.
    """
    if value < 0 or value > 1:
        raise RangeError(value)
    return value


def parse_and_validate(text: "str | float") -> float:
    """Parse a string (or pass a number through) and validate its range."""
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        if not math.isfinite(text):
            raise ParseError(str(text))
        return validate_threshold_value(float(text))
    return validate_threshold_value(parse_threshold_value(str(text)))
