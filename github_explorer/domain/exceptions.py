from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union


class ExplorerError(Exception):
    """Base exception for all explorer-related errors."""
    pass

class ValidationError(ExplorerError):
    """Raised when caller-supplied input is malformed. Never retried, never hits the network."""
    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Validation failed for field '{field}' with value '{value}': {reason}")

class NotFoundError(ExplorerError):
    """Raised when the remote resource does not exist."""
    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"'{identifier}' not found")

class RateLimitError(ExplorerError):
    """Raised when the GitHub REST API quota is exhausted."""
    def __init__(self, limit: Optional[Union[int, str]], reset_at: datetime):
        self.limit = limit
        self.reset_at = reset_at
        super().__init__(
            f"GitHub API rate limit exceeded. Limit: {limit if limit is not None else 'unknown'}, "
            f"Resets at: {reset_at.isoformat()}"
        )

class TransportError(ExplorerError):
    """Raised on network failures, unexpected HTTP statuses and malformed responses."""
    def __init__(self, message: str, cause: Optional[BaseException] = None, status: Optional[int] = None):
        self.message = message
        self.cause = cause
        self.status = status
        super().__init__(message)


class ErrorCategory(str, Enum):
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    NETWORK = "network"
    UNEXPECTED = "unexpected"


_MESSAGES = {
    ErrorCategory.NOT_FOUND: "The requested GitHub account could not be found.",
    ErrorCategory.VALIDATION: "The request is invalid. Check the username and options.",
    ErrorCategory.NETWORK: "GitHub could not be reached. Check your connection or try again later.",
    ErrorCategory.UNEXPECTED: "An unexpected error occurred.",
}


def categorize_error(error: BaseException) -> ErrorCategory:
    """Maps an exception to the single message category presentation code branches on."""
    if isinstance(error, NotFoundError):
        return ErrorCategory.NOT_FOUND
    if isinstance(error, ValidationError):
        return ErrorCategory.VALIDATION
    if isinstance(error, (RateLimitError, TransportError)):
        return ErrorCategory.NETWORK
    return ErrorCategory.UNEXPECTED


def user_message(error: BaseException) -> str:
    category = categorize_error(error)
    if isinstance(error, RateLimitError):
        return f"GitHub rate limit reached. Try again after {error.reset_at:%H:%M:%S} UTC."
    return _MESSAGES[category]
