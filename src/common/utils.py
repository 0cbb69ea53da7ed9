"""Utility functions for common operations across the application."""

import logging
from datetime import datetime, timezone
from typing import Dict, Optional
from uuid import uuid4

logger = logging.getLogger(__name__)

AUTO_LANGUAGE = "auto"


class StringUtils:
    """String manipulation utility functions."""

    @staticmethod
    def generate_cache_key(prefix: str, entity_id: str, language: str) -> str:
        """
        Generate a storage key for a cached translation.

        Args:
            prefix: Key namespace (e.g., 'translation')
            entity_id: Identifier of the translated entity
            language: Target language tag

        Returns:
            Formatted key string

        Example:
            >>> StringUtils.generate_cache_key("translation", "123", "zh-CN")
            'translation:123:zh-CN'
        """
        return f"{prefix}:{entity_id}:{language}"

    @staticmethod
    def generate_entity_index_key(prefix: str, entity_id: str) -> str:
        """
        Generate the key of the set holding every cached language of an entity.

        Example:
            >>> StringUtils.generate_entity_index_key("translation", "123")
            'translation:123:languages'
        """
        return f"{prefix}:{entity_id}:languages"


class EntityIdUtils:
    """Entity ID generation utility functions."""

    @staticmethod
    def generate_entity_id() -> str:
        """
        Generate a new UUID4 entity identifier as string.

        Returns:
            UUID string representation

        Example:
            >>> entity_id = EntityIdUtils.generate_entity_id()
            >>> len(entity_id) == 36
            True
        """
        return str(uuid4())


class ValidationUtils:
    """Input validation utility functions."""

    @staticmethod
    def is_non_empty_string(value: Optional[str]) -> bool:
        """
        Check if value is a string with at least one non-whitespace character.

        Args:
            value: Value to check

        Returns:
            True if value contains visible text, False otherwise

        Example:
            >>> ValidationUtils.is_non_empty_string("hello")
            True
            >>> ValidationUtils.is_non_empty_string("   ")
            False
            >>> ValidationUtils.is_non_empty_string(None)
            False
        """
        return isinstance(value, str) and bool(value.strip())


class DateTimeUtils:
    """Date and time utility functions."""

    @staticmethod
    def get_current_utc_datetime() -> datetime:
        """
        Get the current UTC datetime.

        Returns:
            Current datetime in UTC timezone
        """
        return datetime.now(timezone.utc)

    @staticmethod
    def get_date_string_for_log_file() -> str:
        """
        Get a date string suitable for log file names.

        Returns:
            Date string in YYYYMMDD format
        """
        return datetime.now().strftime("%Y%m%d")


class LanguageUtils:
    """Language tag helpers for engine requests and log messages."""

    # Tags the engine understands, mapped to their display names
    LANGUAGE_NAMES: Dict[str, str] = {
        "auto": "Auto Detect",
        "zh-CN": "Chinese (Simplified)",
        "zh-TW": "Chinese (Traditional)",
        "en": "English",
        "ja": "Japanese",
        "ko": "Korean",
        "fr": "French",
        "de": "German",
        "es": "Spanish",
        "ru": "Russian",
        "ar": "Arabic",
        "pt": "Portuguese",
        "it": "Italian",
        "th": "Thai",
        "vi": "Vietnamese",
        "hi": "Hindi",
    }

    @staticmethod
    def normalize_tag(tag: Optional[str], default: str) -> str:
        """
        Normalize a language tag to the casing the engine expects.

        The primary subtag is lowercased and a region subtag is uppercased,
        so 'ZH-cn' becomes 'zh-CN'. Missing or blank tags fall back to default.

        Args:
            tag: Language tag from the caller (may be None)
            default: Tag to use when none was given

        Returns:
            Normalized language tag

        Example:
            >>> LanguageUtils.normalize_tag("ZH-cn", "en")
            'zh-CN'
            >>> LanguageUtils.normalize_tag("", "en")
            'en'
            >>> LanguageUtils.normalize_tag("AUTO", "en")
            'auto'
        """
        if tag is None or not tag.strip():
            return default

        parts = tag.strip().replace("_", "-").split("-")
        primary = parts[0].lower()
        if len(parts) == 1:
            return primary
        return "-".join([primary] + [part.upper() for part in parts[1:]])

    @staticmethod
    def is_auto(tag: Optional[str]) -> bool:
        """Return True when the tag asks the engine to detect the language."""
        return (tag or "").strip().lower() == AUTO_LANGUAGE

    @staticmethod
    def language_name(tag: str) -> str:
        """
        Convert a language tag to a display name for log messages.

        Example:
            >>> LanguageUtils.language_name('ja')
            'Japanese'
            >>> LanguageUtils.language_name('xx')
            'xx'
        """
        if not tag:
            return tag
        return LanguageUtils.LANGUAGE_NAMES.get(tag, tag)
