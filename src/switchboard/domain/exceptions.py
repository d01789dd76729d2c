"""Domain exceptions."""

from enum import Enum


class ErrorCategory(Enum):
    """Category of a capability failure."""

    API_FAILURE = "api_failure"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"
    RATE_LIMIT = "rate_limit"
    LLM_ERROR = "llm_error"
    AUTH_FAILURE = "auth_failure"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


class CapabilityError(Exception):
    """Failure raised by a capability collaborator.

    Carries a short, non-technical message that may be shown to the user
    in place of the generic apology. The exception message itself is for
    operational logs only.
    """

    def __init__(
        self,
        message: str,
        user_message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        retryable: bool = False,
    ) -> None:
        """Initialize.

        Args:
            message: Technical description for logs.
            user_message: Short message suitable for the end user.
            category: Failure category.
            retryable: Whether retrying the request may succeed.
        """
        self.user_message = user_message
        self.category = category
        self.retryable = retryable
        super().__init__(message)


class CapabilityNotRegisteredError(Exception):
    """Raised when no handler is available for the general capability."""
