class DreamValidationError(ValueError):
    """Raised when a request is malformed, too short or too long."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DreamNotFoundError(LookupError):
    """Raised when a saved dream does not exist or belongs to another user."""

    def __init__(self, dream_id: str, message: str = "Dream not found or not owned by this user"):
        super().__init__(message)
        self.dream_id = dream_id
        self.message = message


class ProviderError(Exception):
    """Raised by a provider when it cannot produce an interpretation."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"[{provider}] {message}")
        self.provider = provider


class ProviderConfigurationError(ProviderError):
    """Raised at construction time when a provider's credential is missing."""


class AdmissionRejected(Exception):
    """Raised when a client exceeds its request budget for the current window."""

    def __init__(self, scope: str, message: str = "Too many requests. Please try again later."):
        super().__init__(message)
        self.scope = scope
        self.message = message
