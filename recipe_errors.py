from typing import Dict, Optional


class RecipeError(RuntimeError):
    """Base error for talking to the recipe API."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class NetworkFailure(RecipeError):
    """The request could not complete or the server answered non-2xx."""


class NotFoundFailure(NetworkFailure):
    """The requested recipe does not exist."""


class SubmissionInProgress(RecipeError):
    """A submission from the same form is still pending."""

    def __init__(self, message: str = "A submission is already in progress"):
        super().__init__(message)


class RecipeValidationError(ValueError):
    def __init__(self, errors: Dict[str, str]):
        super().__init__("; ".join(f"{path}: {msg}" for path, msg in errors.items()))
        self.errors = dict(errors)
