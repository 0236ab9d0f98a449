"""
Pydantic schemas for data validation.

Defines the record shape that photo/album collaborators hand to the geo
core. Only id, latitude and longitude are required; the rest rides along
as payload for representative selection.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class PhotoRecord(BaseModel):
    """
    Schema for one geotagged photo row.

    Example:
        >>> record = PhotoRecord(
        ...     id='photo-001',
        ...     latitude=48.8584,
        ...     longitude=2.2945,
        ...     name='Paris, France',
        ...     caption='Eiffel Tower at dusk',
        ...     is_favorite=True
        ... )
    """
    id: str = Field(..., min_length=1, description="Photo identifier")
    latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False, description="Latitude in decimal degrees")
    longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False, description="Longitude in decimal degrees")

    # Display / representative-selection fields
    name: Optional[str] = Field(None, description="Location display name")
    caption: Optional[str] = Field(None, description="User caption")
    is_favorite: bool = Field(False, description="Whether the photo is starred")
    taken_at: Optional[datetime] = Field(None, description="Capture timestamp")

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v):
        """Accept numeric ids from CSV/JSON sources."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(int(v)) if float(v).is_integer() else str(v)
        return v

    model_config = {
        "str_strip_whitespace": True,
        "extra": "allow",
    }
