"""
Common schemas for API requests and responses.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema exchanging camelCase JSON while using snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ErrorResponse(BaseModel):
    """Error response schema."""

    error: str


class SuccessResponse(BaseModel):
    """Success flag response."""

    success: bool


class ImportResults(BaseModel):
    """Per-item outcome of a batch import."""

    success: int = 0
    failed: int = 0
    errors: List[Dict[str, Any]] = Field(default_factory=list)


class ImportResponse(BaseModel):
    success: bool
    results: ImportResults
    message: Optional[str] = None
