"""
Custom Exceptions for the Appraisal Valuation Core

Provides a hierarchy of exceptions for standardized error handling across all modules.

Exception Hierarchy:
    AppraisalCoreError (base)
    ├── ConfigurationError
    ├── ValidationError
    └── ValuationError
        └── InsufficientEvidenceError
"""


class AppraisalCoreError(Exception):
    """Base exception for all appraisal core errors."""

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


# Configuration Errors
class ConfigurationError(AppraisalCoreError):
    """Raised when there's a configuration problem."""

    pass


# Validation Errors
class ValidationError(AppraisalCoreError):
    """Raised when an input record cannot be parsed."""

    def __init__(self, message: str, field: str = None, value=None):
        self.field = field
        self.value = value
        super().__init__(message)


# Valuation Errors
class ValuationError(AppraisalCoreError):
    """Base exception for valuation failures."""

    pass


class InsufficientEvidenceError(ValuationError):
    """Raised when there are no priced comparables and no usable AVM."""

    def __init__(self, message: str, required: int = None, available: int = None):
        self.required = required
        self.available = available
        super().__init__(message)
