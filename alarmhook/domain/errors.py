"""Domain exceptions."""


class AlarmValidationError(ValueError):
    """Raised when alarm input is missing or invalid. Nothing is mutated."""
