from .errors import ValidationError, ValidationIssue

__all__ = ["ValidationError", "ValidationIssue"]
