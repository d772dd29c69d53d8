from .base import ValidationContext, Violation
from .main import check, duplicate_primary_alignments, validate, validate_all

__all__ = ['ValidationContext', 'Violation', 'check', 'duplicate_primary_alignments', 'validate', 'validate_all']
