"""Domain exceptions shared across storage, services and agents."""

from typing import Dict, Optional


class CartGenieError(Exception):
    """Base class for application errors."""


class DuplicateDocumentError(CartGenieError):
    """A write would violate a unique index."""

    def __init__(self, collection: str, field: str, value=None):
        self.collection = collection
        self.field = field
        self.value = value
        super().__init__(f"Duplicate value for {collection}.{field}")


class DocumentAnalysisError(CartGenieError):
    """An uploaded document could not be read or analyzed."""


class LLMUnavailableError(CartGenieError):
    """The language model could not produce a usable answer."""


class GoogleAuthError(CartGenieError):
    """A Google ID token could not be verified."""


class ProfileValidationError(CartGenieError):
    """A profile payload is missing required fields or has invalid values."""


class ApiError(CartGenieError):
    """A backend call failed; ``message`` is fit to show to the user."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class WizardValidationError(CartGenieError):
    """A profile wizard step has missing or out-of-range fields."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(errors.values()))
