"""Error taxonomy for the use-case portfolio engine.

ConfigurationError is fatal and surfaces when configuration is loaded.
ValidationError rejects bad input at the boundary, before any scoring.
"Not applicable" outcomes are not errors; engine functions return None.
"""


class PortfolioEngineError(Exception):
    """Base class for all portfolio engine errors."""


class ConfigurationError(PortfolioEngineError):
    """Raised when weights, rules or the KPI library violate an invariant."""


class ValidationError(PortfolioEngineError):
    """Raised when a use-case input is missing or out of range.

    Attributes:
        errors: One human-readable message per offending field.
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors: list[str] = errors or [message]
