"""Tests for shared Pydantic schemas."""

import pytest
from pydantic import ValidationError

from common.schemas import (
    CacheEntry,
    CacheStatus,
    ConversationEntity,
    EngineBatchResponse,
    EngineSingleResponse,
    TranslationRequest,
)


@pytest.mark.unit
class TestTranslationRequest:
    """Test TranslationRequest validation."""

    def test_content_is_trimmed(self):
        """Test surrounding whitespace is removed."""
        request = TranslationRequest(content="  Hello  ", target_language="ja")

        assert request.content == "Hello"
        assert request.source_language == "auto"

    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    def test_blank_content_is_rejected(self, content):
        """Test that whitespace-only content never becomes a request."""
        with pytest.raises(ValidationError):
            TranslationRequest(content=content)


@pytest.mark.unit
class TestConversationEntity:
    """Test ConversationEntity behavior."""

    def test_defaults(self):
        """Test generated id, default language and role."""
        entity = ConversationEntity(content="Hi")

        assert entity.id
        assert entity.language == "en"
        assert entity.role == "user"
        assert entity.created_at.tzinfo is not None

    def test_entity_is_immutable(self):
        """Test that canonical content cannot be reassigned."""
        entity = ConversationEntity(content="Hi")

        with pytest.raises(ValidationError):
            entity.content = "Changed"

    def test_blank_content_is_rejected(self):
        """Test that entities always carry visible text."""
        with pytest.raises(ValidationError):
            ConversationEntity(content="  ")


@pytest.mark.unit
class TestCacheEntry:
    """Test CacheEntry helpers."""

    @pytest.mark.parametrize(
        "status,expected",
        [
            (CacheStatus.READY, True),
            (CacheStatus.PENDING, False),
            (CacheStatus.FAILED, False),
        ],
    )
    def test_is_ready(self, status, expected):
        """Test readiness by status."""
        entry = CacheEntry(entity_id="m1", language="ja", status=status)

        assert entry.is_ready is expected

    def test_json_round_trip_keeps_status(self):
        """Test that entries survive the Redis JSON encoding."""
        entry = CacheEntry(
            entity_id="m1", language="ja", status=CacheStatus.READY, text="こんにちは"
        )

        restored = CacheEntry.model_validate_json(entry.model_dump_json())

        assert restored == entry


@pytest.mark.unit
class TestEngineResponses:
    """Test parsing of engine response documents."""

    def test_single_response_uses_from_and_to_keys(self):
        """Test the wire names 'from' and 'to'."""
        response = EngineSingleResponse.model_validate(
            {
                "success": True,
                "original": "Hello",
                "translated": "你好",
                "from": "en",
                "to": "zh-CN",
                "provider": "ignored",
            }
        )

        assert response.from_language == "en"
        assert response.to_language == "zh-CN"
        assert response.translated == "你好"

    def test_failure_response_without_translation(self):
        """Test that a failure document needs only success and error."""
        response = EngineSingleResponse.model_validate(
            {"success": False, "error": "quota exceeded"}
        )

        assert response.success is False
        assert response.translated is None
        assert response.error == "quota exceeded"

    def test_batch_response_results_keep_order(self):
        """Test that batch results are parsed positionally."""
        response = EngineBatchResponse.model_validate(
            {
                "success": True,
                "results": [{"translated": "a"}, {"translated": "b"}, {}],
                "from": "en",
                "to": "ja",
            }
        )

        assert [item.translated for item in response.results] == ["a", "b", ""]

    def test_missing_success_is_invalid(self):
        """Test that success is required."""
        with pytest.raises(ValidationError):
            EngineSingleResponse.model_validate({"translated": "x"})
