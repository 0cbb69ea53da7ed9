"""Request and response schemas of the HTTP/WebSocket gateway."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from common.schemas import CacheStatus


class TranslateRequest(BaseModel):
    """Body of POST /api/translate and POST /api/translate/batch."""

    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = Field(None, description="Text to translate")
    texts: Optional[List[str]] = Field(
        None, description="Independent texts to translate in one batch"
    )
    source_language: Optional[str] = Field(
        None, alias="from", description="Source language tag, defaults to 'auto'"
    )
    target_language: Optional[str] = Field(
        None, alias="to", description="Target language tag, defaults to 'en'"
    )


class BatchItem(BaseModel):
    """Positional result of a multi-text batch request."""

    original: str
    translated: str


class TranslateResponse(BaseModel):
    """Successful translation as returned to the UI layer."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    original: Optional[str] = None
    translated: Optional[str] = None
    source_language: Optional[str] = Field(None, serialization_alias="from")
    target_language: Optional[str] = Field(None, serialization_alias="to")
    detected_language: Optional[str] = Field(None, serialization_alias="detectedLang")
    segment_count: Optional[int] = Field(None, serialization_alias="segmentCount")
    results: Optional[List[BatchItem]] = None


class ErrorResponse(BaseModel):
    """Failure body; always paired with a non-2xx status."""

    success: bool = False
    error: str


class MessageCreate(BaseModel):
    """Body of POST /api/messages."""

    content: str = Field(..., description="Canonical message text")
    language: str = Field(default="en", description="Reference language tag")
    role: str = Field(default="user", description="Author role")

    @field_validator("content")
    @classmethod
    def validate_content_non_empty(cls, v: str) -> str:
        """Reject whitespace-only messages."""
        if not v or not v.strip():
            raise ValueError("content must be a non-empty string")
        return v


class MessageView(BaseModel):
    """A conversation message with its cached translation for one language."""

    id: str
    content: str
    language: str
    role: str
    created_at: datetime
    display_language: str
    translation_status: Optional[CacheStatus] = None
    translated: Optional[str] = None
    error: Optional[str] = None


class DisplayLanguageUpdate(BaseModel):
    """Body of PUT /api/display-language."""

    language: str = Field(..., description="New display language tag")

    @field_validator("language")
    @classmethod
    def validate_language(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("language must be a non-empty string")
        if v.strip().lower() == "auto":
            raise ValueError("'auto' is only valid as a source language")
        return v.strip()


class FanOutResponse(BaseModel):
    """Outcome of a display language change."""

    language: str
    ready: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
