"""Translation of arbitrarily long text through the engine client."""

import logging
from typing import List, Optional

from common.config import settings
from common.schemas import TranslationRequest, TranslationResult
from common.string_utils import preview
from common.utils import LanguageUtils, ValidationUtils
from translator.engine_client import EngineClient
from translator.errors import EmptyInputError
from translator.segmenter import Segment, segment, segment_texts

logger = logging.getLogger(__name__)


def build_request(
    text: Optional[str], source_language: str, target_language: str
) -> TranslationRequest:
    """
    Validate raw input into a TranslationRequest.

    This runs synchronously before any engine interaction, so blank input
    never reaches the engine client.

    Args:
        text: Raw user text
        source_language: Source language tag or 'auto'
        target_language: Target language tag

    Returns:
        TranslationRequest with trimmed content and normalized tags

    Raises:
        EmptyInputError: If text is None, empty or whitespace-only
    """
    if not ValidationUtils.is_non_empty_string(text):
        raise EmptyInputError()

    return TranslationRequest(
        content=text.strip(),
        source_language=LanguageUtils.normalize_tag(
            source_language, settings.translation_default_source_language
        ),
        target_language=LanguageUtils.normalize_tag(
            target_language, settings.translation_default_target_language
        ),
    )


class BatchOrchestrator:
    """
    Splits, dispatches and reassembles translations of long text.

    Short text goes to the engine in one call. Long text is segmented at
    sentence boundaries and sent as ONE batched call, never one call per
    segment; the translations come back in submission order and are joined
    without separators.
    """

    def __init__(
        self,
        engine_client: Optional[EngineClient] = None,
        long_text_threshold: Optional[int] = None,
        max_segment_length: Optional[int] = None,
    ):
        self.engine_client = engine_client or EngineClient()
        self.long_text_threshold = (
            long_text_threshold or settings.translation_long_text_threshold
        )
        self.max_segment_length = (
            max_segment_length or settings.translation_max_chunk_length
        )

    async def translate(
        self,
        text: Optional[str],
        source_language: str = "auto",
        target_language: str = "en",
        detect_language: bool = True,
    ) -> TranslationResult:
        """
        Translate text of any length.

        Args:
            text: Text to translate
            source_language: Source language tag or 'auto'
            target_language: Target language tag
            detect_language: When the source is 'auto' and the text is long,
                issue one extra call on the first segment to label the
                detected language

        Returns:
            TranslationResult for the whole text

        Raises:
            EmptyInputError: If the text is blank (no engine call is made)
            TranslationError: If any engine call fails; no partial result
        """
        request = build_request(text, source_language, target_language)

        # Dispatch on the length as given, surrounding whitespace included
        if len(text) <= self.long_text_threshold:
            return await self._translate_single(request)
        return await self._translate_segmented(request, detect_language)

    async def translate_long(
        self,
        text: Optional[str],
        source_language: str = "auto",
        target_language: str = "en",
        detect_language: bool = True,
    ) -> TranslationResult:
        """Translate text through the segmented batch path regardless of its length."""
        request = build_request(text, source_language, target_language)
        return await self._translate_segmented(request, detect_language)

    async def translate_many(
        self, texts: List[str], source_language: str = "auto", target_language: str = "en"
    ) -> List[str]:
        """
        Translate several independent texts with one batched engine call.

        Blank entries are passed through as empty translations without
        being sent to the engine.

        Args:
            texts: Independent texts, in order
            source_language: Source language tag or 'auto'
            target_language: Target language tag

        Returns:
            Translations aligned with texts

        Raises:
            EmptyInputError: If every text is blank
        """
        source = LanguageUtils.normalize_tag(
            source_language, settings.translation_default_source_language
        )
        target = LanguageUtils.normalize_tag(
            target_language, settings.translation_default_target_language
        )

        positions = [
            i for i, t in enumerate(texts) if ValidationUtils.is_non_empty_string(t)
        ]
        if not positions:
            raise EmptyInputError()

        response = await self.engine_client.translate_texts(
            [texts[i].strip() for i in positions], source, target
        )

        translations = [""] * len(texts)
        for position, item in zip(positions, response.results):
            translations[position] = item.translated
        return translations

    async def _translate_single(self, request: TranslationRequest) -> TranslationResult:
        """One engine call for the whole text; its result is returned verbatim."""
        response = await self.engine_client.translate_text(
            request.content, request.source_language, request.target_language
        )
        resolved = response.from_language or request.source_language

        return TranslationResult(
            original_content=request.content,
            translated_content=response.translated,
            resolved_source_language=resolved,
            target_language=response.to_language or request.target_language,
            detected_language=(
                resolved if LanguageUtils.is_auto(request.source_language) else None
            ),
        )

    async def _translate_segmented(
        self, request: TranslationRequest, detect_language: bool
    ) -> TranslationResult:
        """Segment, send one batch, and join the translations by ordinal."""
        segments: List[Segment] = segment(request.content, self.max_segment_length)

        logger.info(
            f"📄 Long text translation: {len(request.content)} characters, "
            f"split into {len(segments)} segments "
            f"({LanguageUtils.language_name(request.source_language)} → "
            f"{LanguageUtils.language_name(request.target_language)})"
        )

        response = await self.engine_client.translate_texts(
            segment_texts(segments), request.source_language, request.target_language
        )
        translated = "".join(item.translated for item in response.results)

        detected_language = None
        if LanguageUtils.is_auto(request.source_language) and detect_language:
            detected_language = await self._detect_language(segments[0], request)

        logger.info(
            f"✅ Long text translation complete: {len(translated)} characters "
            f"({preview(translated)})"
        )

        return TranslationResult(
            original_content=request.content,
            translated_content=translated,
            resolved_source_language=response.from_language or request.source_language,
            target_language=response.to_language or request.target_language,
            detected_language=detected_language,
            segment_count=len(segments),
        )

    async def _detect_language(
        self, first_segment: Segment, request: TranslationRequest
    ) -> Optional[str]:
        """
        Label the source language using only the first segment.

        The translation from this call is discarded; only its resolved
        source language is kept.
        """
        response = await self.engine_client.translate_text(
            first_segment.text, request.source_language, request.target_language
        )
        return response.from_language
