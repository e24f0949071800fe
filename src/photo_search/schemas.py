from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional

# --- DOMAIN MODELS ---

class FileType(str, Enum):
    PHOTO = "photo"
    VIDEO = "video"


class MediaRecord(BaseModel):
    """
    One stored photo or video of an event, as returned by the media catalog.
    Immutable for the lifetime of a search.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    file_url: str
    file_type: FileType = FileType.PHOTO


class MatchResult(BaseModel):
    """Parsed answer of the vision model for one batch."""
    matched_ids: List[str] = Field(default_factory=list)
    confidence: Optional[str] = None

# --- REQUEST MODELS (Input) ---

class SearchRequest(BaseModel):
    """
    Schema for incoming photo searches.
    eventId is Optional here on purpose: its absence is reported as an
    InvalidRequest by the service rather than as a schema error.
    """
    model_config = ConfigDict(populate_by_name=True)

    event_id: Optional[str] = Field(default=None, alias="eventId", description="Event whose photos are searched")
    query: Optional[str] = Field(default=None, description="Free-text description of the wanted photos")
    image: Optional[str] = Field(default=None, description="Reference photo as a data URL or raw base64")

    @field_validator("event_id", "query", "image")
    def blank_to_none(cls, v):
        """Empty strings mean 'not provided'."""
        if v is None:
            return None
        v = v.strip()
        return v or None

# --- RESPONSE MODELS (Output) ---

class SearchResponse(BaseModel):
    """
    The full JSON response returned to the client.
    """
    model_config = ConfigDict(populate_by_name=True)

    media_ids: List[str] = Field(default_factory=list, alias="mediaIds")


class EventPhotosResponse(BaseModel):
    photos: List[MediaRecord]


class ErrorResponse(BaseModel):
    error: str
