from fedrelay.core.exceptions import FedRelayError


class PrivacyError(FedRelayError):
    """Base class for privacy-related errors."""

    pass


class PrivacyBudgetExceededError(PrivacyError):
    """Raised when privacy budget is exceeded."""

    pass


class NoiseGenerationError(PrivacyError):
    """Raised when noise generation fails."""

    pass
