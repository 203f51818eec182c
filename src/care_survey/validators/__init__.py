"""Cross-field consistency checks for monthly survey submissions."""

from .consistency import RULES, ValidationResult, validate_batch, validate_submission

__all__ = [
    "RULES",
    "ValidationResult",
    "validate_batch",
    "validate_submission",
]
