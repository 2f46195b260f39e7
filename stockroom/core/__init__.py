"""
Core module exports.
"""
from .exceptions import (
    BaseServiceError,
    InvalidArgumentError,
    ConflictError,
    NotFoundError,
    ProductNotFoundError,
    UserNotFoundError,
    UnauthorizedError,
    ForbiddenError,
    DatabaseError
)

from .utils import (
    model_to_schema,
    models_to_schemas,
    validation_errors_to_fields
)
