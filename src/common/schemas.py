"""Shared Pydantic schemas for the translation orchestration service."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from common.utils import DateTimeUtils, EntityIdUtils


class CacheStatus(str, Enum):
    """Status of a cached (entity, language) translation."""

    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class TranslationRequest(BaseModel):
    """A single transient request to translate some content."""

    content: str = Field(..., description="Text to translate (trimmed, non-empty)")
    source_language: str = Field(
        default="auto", description="Source language tag or 'auto'"
    )
    target_language: str = Field(default="en", description="Target language tag")

    @field_validator("content")
    @classmethod
    def validate_content_non_empty(cls, v: str) -> str:
        """
        Trim content and reject whitespace-only input.

        Raises:
            ValueError: If content is empty after trimming
        """
        if not v or not v.strip():
            raise ValueError("content must be a non-empty string")
        return v.strip()


class TranslationResult(BaseModel):
    """Outcome of a successful translation."""

    original_content: str = Field(..., description="Trimmed source text")
    translated_content: str = Field(..., description="Translated text")
    resolved_source_language: str = Field(
        ..., description="Source language as reported by the engine"
    )
    target_language: str = Field(..., description="Target language tag")
    detected_language: Optional[str] = Field(
        None, description="Detected source language when the request used 'auto'"
    )
    segment_count: Optional[int] = Field(
        None, description="Number of segments when the text was batched"
    )


class CacheEntry(BaseModel):
    """Cached translation of one entity into one language."""

    entity_id: str = Field(..., description="Owning entity identifier")
    language: str = Field(..., description="Target language tag")
    status: CacheStatus = Field(..., description="Pending, ready or failed")
    text: Optional[str] = Field(None, description="Translated text when ready")
    error: Optional[str] = Field(None, description="Error message when failed")
    updated_at: datetime = Field(
        default_factory=DateTimeUtils.get_current_utc_datetime,
        description="Time of the last state transition",
    )

    @property
    def is_ready(self) -> bool:
        return self.status == CacheStatus.READY


class ConversationEntity(BaseModel):
    """
    A conversation message with immutable canonical content.

    The content is authored once in a fixed reference language. Translations
    are never stored on the entity itself; they live in the TranslationCache
    keyed by (id, language).
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(
        default_factory=EntityIdUtils.generate_entity_id,
        description="Unique identifier for the entity",
    )
    content: str = Field(..., description="Canonical text of the entity")
    language: str = Field(default="en", description="Reference language tag")
    role: str = Field(default="user", description="Author role (user, assistant)")
    created_at: datetime = Field(
        default_factory=DateTimeUtils.get_current_utc_datetime,
        description="Authoring time",
    )

    @field_validator("content")
    @classmethod
    def validate_content_non_empty(cls, v: str) -> str:
        """Entities always carry visible text."""
        if not v or not v.strip():
            raise ValueError("content must be a non-empty string")
        return v


class EngineSingleResponse(BaseModel):
    """Response document of a single-text engine call."""

    success: bool
    original: Optional[str] = None
    translated: Optional[str] = None
    from_language: Optional[str] = Field(None, alias="from")
    to_language: Optional[str] = Field(None, alias="to")
    error: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class EngineBatchItem(BaseModel):
    """One positional translation inside a batch response."""

    translated: str = ""
    original: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class EngineBatchResponse(BaseModel):
    """Response document of a batch engine call."""

    success: bool
    results: List[EngineBatchItem] = Field(default_factory=list)
    from_language: Optional[str] = Field(None, alias="from")
    to_language: Optional[str] = Field(None, alias="to")
    error: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")
