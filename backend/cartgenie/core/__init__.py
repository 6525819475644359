"""Core module - logging, domain exceptions and body metrics."""

from .exceptions import (
    CartGenieError,
    DuplicateDocumentError,
    DocumentAnalysisError,
    LLMUnavailableError,
    GoogleAuthError,
    ProfileValidationError,
    ApiError,
    WizardValidationError,
)

__all__ = [
    'CartGenieError',
    'DuplicateDocumentError',
    'DocumentAnalysisError',
    'LLMUnavailableError',
    'GoogleAuthError',
    'ProfileValidationError',
    'ApiError',
    'WizardValidationError',
]
