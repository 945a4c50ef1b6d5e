"""
Exception types raised by the SightGuard core.

Score extraction and verdict computation never raise; only operations that
touch user input, persistent storage or the external APIs do. Cogs catch
these at the command boundary, log the full error and answer the user with
a short message.
"""

from __future__ import annotations

from typing import Sequence


class SightGuardError(Exception):
    """Base class for every error raised by SightGuard."""


class UnknownThresholdError(SightGuardError):
    """An unrecognized threshold name was supplied."""

    def __init__(self, name: str, valid_names: Sequence[str]) -> None:
        self.name = name
        self.valid_names = tuple(valid_names)
        super().__init__(
            f"Unknown threshold name '{name}'. Use {', '.join(self.valid_names[:-1])}, or {self.valid_names[-1]}"
        )


class ParseError(SightGuardError):
    """A user-entered threshold value could not be parsed as a number."""

    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(
            f"Could not parse '{text}' as a threshold value. Use a decimal like 0.70 or a percentage like 70%"
        )


class RangeError(SightGuardError):
    """A parsed threshold value lies outside [0, 1]."""

    def __init__(self, value: float) -> None:
        self.value = value
        super().__init__(f"Value {value:g} is out of range. Thresholds must be between 0.00 and 1.00 (0% to 100%)")


class StoreUnavailableError(SightGuardError):
    """A configured persistence backend failed to read or write."""


class UpstreamAnalysisError(SightGuardError):
    """The moderation or reverse-image API call failed."""
