# -*- coding: utf-8 -*-
"""
errors.py

Error kinds raised by the Steam games pipeline.

- LoadError / SchemaError / TypeCoercionError / EmptyTableError abort the run.
- DegenerateInputError is scoped to one statistic; the driver records it and
  carries on with the remaining analyses.
- InvalidDomainError means the caller skipped the positive-only filter that
  must precede a log transform.
"""


class SteamEDAError(Exception):
    """Base class for all pipeline errors."""


class LoadError(SteamEDAError):
    """Input file missing, unreadable, or without data rows."""


class SchemaError(SteamEDAError):
    """A studied column is absent from the input header."""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(f"Missing required column(s): {', '.join(self.missing)}")


class TypeCoercionError(SteamEDAError):
    """A value could not be coerced to its column type (policy 'raise')."""

    def __init__(self, column: str, bad_values):
        self.column = column
        self.bad_values = list(bad_values)
        preview = ", ".join(repr(v) for v in self.bad_values[:5])
        super().__init__(
            f"{len(self.bad_values)} unparsable value(s) in '{column}': {preview}"
        )


class DegenerateInputError(SteamEDAError):
    """Preconditions of a regression or chi-square test are not met."""


class InvalidDomainError(SteamEDAError):
    """Log transform of a non-positive (or missing) value."""

    def __init__(self, position, value):
        self.position = position
        self.value = value
        super().__init__(
            f"log transform needs strictly positive values; got {value!r} at position {position}"
        )


class EmptyTableError(SteamEDAError):
    """Cleaning removed every row; there is nothing to aggregate."""
