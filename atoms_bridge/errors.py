"""Exceptions raised by the conversion routines."""

from typing import Any, Optional


class ConversionError(Exception):
    """Base class for failures while converting between system models."""


class UnknownElementError(ConversionError):
    """An atomic number or symbol has no known element."""

    def __init__(self, atomic_number: Optional[int] = None, symbol: Optional[str] = None):
        self.atomic_number = atomic_number
        self.symbol = symbol
        if symbol is not None:
            message = f"Unknown element symbol: {symbol!r}"
        else:
            message = f"No element with atomic number {atomic_number!r}"
        super().__init__(message)


class DimensionalityMismatchError(ConversionError):
    """The system does not have exactly three spatial axes."""

    def __init__(self, dimension: int, expected: int = 3):
        self.dimension = dimension
        self.expected = expected
        super().__init__(
            f"System has {dimension} boundary axes, "
            f"ASE Atoms require exactly {expected}."
        )


class InvalidMetadataKeyError(ConversionError):
    """A metadata key names a species not present in the system."""

    def __init__(self, key: Any, present=()):
        self.key = key
        self.present = tuple(present)
        super().__init__(
            f"Metadata key {key!r} matches no species in the system "
            f"(present: {', '.join(self.present) or 'none'})."
        )
