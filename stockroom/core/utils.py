"""
Utility functions for the application.
"""
from typing import Type, TypeVar, List, Dict, Any
from pydantic import BaseModel

T = TypeVar('T', bound=BaseModel)


async def model_to_schema(
    db_model: Any,
    schema_class: Type[T]
) -> T:
    """
    Convert a SQLAlchemy model instance to a Pydantic schema instance.

    Args:
        db_model: SQLAlchemy model instance
        schema_class: Pydantic schema class

    Returns:
        Instance of the Pydantic schema
    """
    return schema_class.model_validate(
        db_model,
        from_attributes=True
    )

async def models_to_schemas(
    db_models: List[Any],
    schema_class: Type[T]
) -> List[T]:
    """
    Convert a list of SQLAlchemy model instances to a list of Pydantic schema instances.
    """
    return [await model_to_schema(model, schema_class) for model in db_models]


def validation_errors_to_fields(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """
    Flatten pydantic error dicts into [{"field": ..., "message": ...}].

    Works for both ``ValidationError.errors()`` and FastAPI's
    ``RequestValidationError.errors()``; the leading "body"/"query"/"path"
    location segment is dropped.
    """
    fields = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        message = error.get("msg", "Invalid value")
        # pydantic prefixes custom ValueError messages
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        fields.append({"field": ".".join(loc) or "__root__", "message": message})
    return fields


