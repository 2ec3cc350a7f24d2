"""Base schemas for the success/failure response envelope."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Model serialized with camelCase keys, readable from dataclasses."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SuccessResponse(BaseModel, Generic[T]):
    """Successful response envelope."""

    success: bool = True
    data: T


class ErrorResponse(BaseModel):
    """Failure response envelope."""

    success: bool = False
    message: str
