"""Utility modules."""

from internconnect.utils.filters import InternshipFilter
from internconnect.utils.validators import ValidationResult

__all__ = ["InternshipFilter", "ValidationResult"]
