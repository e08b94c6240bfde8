"""Exceptions raised by the tax engine."""


class TaxEngineError(Exception):
    """Base class for all engine errors."""


class InvalidInputError(TaxEngineError, ValueError):
    """An input value was rejected before any computation ran.

    ``field`` names the offending input so form layers can point at it.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class RateTableError(TaxEngineError, RuntimeError):
    """The rate table is malformed (e.g. no PAYE band covers an amount)."""
