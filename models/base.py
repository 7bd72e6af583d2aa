"""
Shared schema bases for menu models.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Optional


class BaseSchema(BaseModel):
    """
    Base for every request, response and entity schema.

    Strings are trimmed on input and assignments are re-validated, so a
    record mutated by a service still honours its field constraints.
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True
    )


class TimestampMixin(BaseModel):
    """Store-managed timestamps. Never written by the engine."""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OutletEntity(BaseSchema, TimestampMixin):
    """
    Menu entity owned by exactly one outlet.

    Every write the engine performs carries the owning ``outlet_id``;
    cross-outlet references are resolved through remapping, never copied.
    """
    outlet_id: str
    name: str = Field(..., min_length=1)
    display_order: int = 0
    is_active: bool = True

    @field_validator("display_order", "is_active", mode="before")
    @classmethod
    def null_means_default(cls, value, info):
        # Older documents store null for unset ordering and status
        if value is None:
            return cls.model_fields[info.field_name].default
        return value
