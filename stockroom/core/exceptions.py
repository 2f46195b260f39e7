from typing import Dict, List, Optional


class BaseServiceError(Exception):
    """Base exception for all service-related errors."""
    pass

class InvalidArgumentError(BaseServiceError):
    """Raised when input is malformed or missing required fields."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.message = message
        # [{"field": ..., "message": ...}]
        self.errors = errors or []

class ConflictError(BaseServiceError):
    """Raised when a uniqueness rule would be violated."""
    pass

class NotFoundError(BaseServiceError):
    """Raised when a requested entity does not exist."""
    pass

class ProductNotFoundError(NotFoundError):
    """Raised when product is not found."""
    pass

class UserNotFoundError(NotFoundError):
    """Raised when a user referenced by a token no longer exists."""
    pass

class UnauthorizedError(BaseServiceError):
    """Raised for bad credentials or an invalid/expired token."""
    pass

class ForbiddenError(BaseServiceError):
    """Raised when no credentials were supplied at all."""
    pass

class DatabaseError(BaseServiceError):
    """Exception raised for database-related errors."""
    pass
