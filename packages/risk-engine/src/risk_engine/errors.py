class InvalidArgumentError(ValueError):
    """Raised when a core operation receives input it cannot evaluate."""
