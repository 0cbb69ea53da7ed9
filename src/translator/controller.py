"""Interactive controller: debounced live input and language-change fan-out."""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Set, Tuple

from redis.exceptions import RedisError

from common.config import settings
from common.schemas import CacheEntry, CacheStatus, ConversationEntity, TranslationResult
from common.string_utils import preview
from common.utils import LanguageUtils, ValidationUtils
from translator.batch_orchestrator import BatchOrchestrator
from translator.cache import TranslationCache
from translator.errors import TranslationError

logger = logging.getLogger(__name__)

FAILURE_PLACEHOLDER = "Translation failed"


class LiveInputState(str, Enum):
    """States of a live input field."""

    IDLE = "idle"
    DEBOUNCING = "debouncing"
    IN_FLIGHT = "in_flight"


@dataclass
class LiveTranslation:
    """Outcome of one live input dispatch, as delivered to listeners."""

    sequence: int
    original: str
    target_language: str
    translated: str = ""
    result: Optional[TranslationResult] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class FanOutReport:
    """Summary of a display language change."""

    target_language: str
    ready: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


LiveListener = Callable[[LiveTranslation], Optional[Awaitable[None]]]
EntryListener = Callable[[CacheEntry], Optional[Awaitable[None]]]


async def _notify(listeners, payload) -> None:
    """Call sync or async listeners; a faulty listener never breaks the caller."""
    for listener in listeners:
        try:
            outcome = listener(payload)
            if asyncio.iscoroutine(outcome):
                await outcome
        except Exception as e:
            logger.error(f"❌ Listener {listener!r} failed: {e}", exc_info=True)


class LiveInput:
    """
    Debounced real-time translation of one input field.

    Every keystroke restarts the debounce timer. Only a timer that expires
    uninterrupted dispatches a translation. Each dispatch is tagged with a
    sequence number, and its result is applied only if no newer keystroke
    or dispatch has happened since. Engine calls are never cancelled; stale
    results are discarded on arrival.
    """

    def __init__(
        self,
        orchestrator: BatchOrchestrator,
        target_language: str,
        source_language: str = "auto",
        debounce_seconds: Optional[float] = None,
    ):
        self.orchestrator = orchestrator
        self.target_language = target_language
        self.source_language = source_language
        self.debounce_seconds = (
            settings.realtime_debounce_seconds
            if debounce_seconds is None
            else debounce_seconds
        )

        self.text = ""
        self.state = LiveInputState.IDLE
        self.latest: Optional[LiveTranslation] = None
        self.dispatch_count = 0

        self._sequence = 0
        self._timer: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()
        self._listeners: List[LiveListener] = []

    @property
    def sequence(self) -> int:
        """Sequence number of the most recent input event."""
        return self._sequence

    def add_listener(self, listener: LiveListener) -> None:
        self._listeners.append(listener)

    def clear_listeners(self) -> None:
        self._listeners.clear()

    def on_input(self, text: str) -> int:
        """
        Record a keystroke and restart the debounce timer.

        Args:
            text: Full current content of the input field

        Returns:
            Sequence number assigned to this input
        """
        self.text = text
        return self._restart_timer()

    def set_target_language(self, language: str) -> int:
        """Re-issue the current input against a new target through the debounce rule."""
        self.target_language = language
        return self._restart_timer()

    def _restart_timer(self) -> int:
        self._sequence += 1
        if self._timer and not self._timer.done():
            self._timer.cancel()

        self.state = LiveInputState.DEBOUNCING
        self._timer = asyncio.create_task(self._debounce(self._sequence))
        return self._sequence

    async def _debounce(self, sequence: int) -> None:
        """Wait for a quiet period, then hand off to a dispatch task."""
        try:
            await asyncio.sleep(self.debounce_seconds)
        except asyncio.CancelledError:
            return

        # The dispatch runs in its own task so a later keystroke cancelling
        # the timer can never cancel an engine call.
        task = asyncio.create_task(
            self._dispatch(sequence, self.text, self.target_language)
        )
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _dispatch(self, sequence: int, text: str, target_language: str) -> None:
        if not ValidationUtils.is_non_empty_string(text):
            await self._apply(
                LiveTranslation(sequence=sequence, original=text, target_language=target_language)
            )
            return

        if sequence == self._sequence:
            self.state = LiveInputState.IN_FLIGHT
        self.dispatch_count += 1
        logger.debug(f"Live translation #{sequence} dispatched: {preview(text)}")

        try:
            result = await self.orchestrator.translate(
                text, self.source_language, target_language
            )
            outcome = LiveTranslation(
                sequence=sequence,
                original=text,
                target_language=target_language,
                translated=result.translated_content,
                result=result,
            )
        except TranslationError as e:
            logger.warning(f"⚠️  Live translation #{sequence} failed: {e.message}")
            outcome = LiveTranslation(
                sequence=sequence,
                original=text,
                target_language=target_language,
                translated=f"{FAILURE_PLACEHOLDER}: {e.message}",
                error=e.message,
            )

        await self._apply(outcome)

    async def _apply(self, outcome: LiveTranslation) -> None:
        if outcome.sequence != self._sequence:
            logger.debug(
                f"Discarding stale live translation #{outcome.sequence} "
                f"(latest is #{self._sequence})"
            )
            return

        self.latest = outcome
        self.state = LiveInputState.IDLE
        await _notify(self._listeners, outcome)

    async def wait_idle(self) -> None:
        """Wait until the pending timer and every dispatched call have finished."""
        while True:
            pending = [t for t in (self._timer,) if t and not t.done()]
            pending += [t for t in self._in_flight if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel the debounce timer and wait for in-flight calls to drain."""
        if self._timer and not self._timer.done():
            self._timer.cancel()
        if self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)
        self.state = LiveInputState.IDLE


class InteractiveController:
    """
    Reconciles conversation entities, their cached translations, and live input.

    The cache is the only shared mutable state. Every fetch writes only its
    own (entity_id, language) slot and then notifies listeners, which read
    the fresh entry rather than anything captured when the fetch started.
    """

    def __init__(
        self,
        orchestrator: BatchOrchestrator,
        cache: Optional[TranslationCache] = None,
        target_language: Optional[str] = None,
        debounce_seconds: Optional[float] = None,
        max_concurrency: Optional[int] = None,
    ):
        self.orchestrator = orchestrator
        self.cache = cache or TranslationCache()
        self.target_language = LanguageUtils.normalize_tag(
            target_language, settings.display_language
        )
        self.debounce_seconds = debounce_seconds
        self.max_concurrency = max_concurrency or settings.fanout_max_concurrency

        self.entities: Dict[str, ConversationEntity] = {}
        self.live_inputs: Dict[str, LiveInput] = {}

        self._in_flight: Dict[Tuple[str, str], asyncio.Task] = {}
        self._entry_listeners: List[EntryListener] = []
        self._semaphore: Optional[asyncio.Semaphore] = None

    @property
    def semaphore(self) -> asyncio.Semaphore:
        """Lazy initialization of the fan-out semaphore (must be created within event loop)."""
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_concurrency)
        return self._semaphore

    def add_entry_listener(self, listener: EntryListener) -> None:
        """Register a callback invoked with the fresh entry after every fetch."""
        self._entry_listeners.append(listener)

    def add_entity(self, entity: ConversationEntity) -> ConversationEntity:
        self.entities[entity.id] = entity
        return entity

    def get_entity(self, entity_id: str) -> Optional[ConversationEntity]:
        return self.entities.get(entity_id)

    def live_input(self, name: str = "default") -> LiveInput:
        """Return the live input field with this name, creating it on first use."""
        if name not in self.live_inputs:
            self.live_inputs[name] = LiveInput(
                self.orchestrator,
                target_language=self.target_language,
                debounce_seconds=self.debounce_seconds,
            )
        return self.live_inputs[name]

    def remove_live_input(self, name: str) -> Optional[LiveInput]:
        return self.live_inputs.pop(name, None)

    async def ensure_translation(self, entity_id: str, language: str) -> CacheEntry:
        """
        Lookup-or-fetch for one entity.

        A Ready entry is returned without any engine call. A fetch already in
        flight for the pair is joined. Otherwise the pair is marked Pending
        and fetched.

        Raises:
            KeyError: If the entity is unknown
        """
        entity = self.entities[entity_id]
        language = LanguageUtils.normalize_tag(language, self.target_language)

        entry = await self.cache.get(entity.id, language)
        if not self.cache.needs_fetch(entry):
            return entry

        return await self._fetch(entity, language)

    async def retry(self, entity_id: str, language: str) -> CacheEntry:
        """Explicitly retry a failed pair; Ready entries are returned as is."""
        return await self.ensure_translation(entity_id, language)

    async def set_target_language(self, language: str) -> FanOutReport:
        """
        Switch the display language and refill the cache for it.

        Every entity without a Ready entry for the new language is marked
        Pending and fetched in parallel. A failure leaves only that entity's
        entry Failed. Live inputs are re-issued against the new language.

        Args:
            language: New display language tag

        Returns:
            FanOutReport listing ready, failed and skipped entity ids
        """
        language = LanguageUtils.normalize_tag(language, self.target_language)
        previous = self.target_language
        self.target_language = language
        report = FanOutReport(target_language=language)

        logger.info(
            f"🌐 Display language changed: {LanguageUtils.language_name(previous)} → "
            f"{LanguageUtils.language_name(language)}"
        )

        for live in self.live_inputs.values():
            live.set_target_language(language)

        to_fetch: List[ConversationEntity] = []
        for entity in list(self.entities.values()):
            entry = await self.cache.get(entity.id, language)
            if self.cache.needs_fetch(entry):
                await self.cache.mark_pending(entity.id, language)
                to_fetch.append(entity)
            else:
                report.skipped.append(entity.id)

        if not to_fetch:
            return report

        logger.info(
            f"🚀 Fanning out {len(to_fetch)} translations with "
            f"{self.max_concurrency} concurrent requests"
        )

        # Each task is a function of (entity, language) as captured here
        outcomes = await asyncio.gather(
            *(self._fetch(entity, language) for entity in to_fetch),
            return_exceptions=True,
        )

        for entity, outcome in zip(to_fetch, outcomes):
            if isinstance(outcome, Exception):
                logger.error(
                    f"❌ Fan-out fetch for {entity.id} raised unexpectedly: {outcome}"
                )
                report.failed.append(entity.id)
            elif outcome.is_ready:
                report.ready.append(entity.id)
            else:
                report.failed.append(entity.id)

        logger.info(
            f"✅ Fan-out complete for {language}: {len(report.ready)} ready, "
            f"{len(report.failed)} failed, {len(report.skipped)} already cached"
        )
        return report

    async def _fetch(self, entity: ConversationEntity, language: str) -> CacheEntry:
        """Single-flight fetch: concurrent callers for one pair share one task."""
        key = (entity.id, language)
        task = self._in_flight.get(key)
        if task is None or task.done():
            task = asyncio.create_task(self._run_fetch(entity, language))
            self._in_flight[key] = task
            task.add_done_callback(lambda t, k=key: self._forget(k, t))
        return await asyncio.shield(task)

    def _forget(self, key: Tuple[str, str], task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    async def _run_fetch(self, entity: ConversationEntity, language: str) -> CacheEntry:
        await self.cache.mark_pending(entity.id, language)

        try:
            if entity.language == language:
                # Canonical content is already in the requested language
                written = await self.cache.put(entity.id, language, entity.content)
            else:
                written = await self._translate_into(entity, language)
        except RedisError as e:
            logger.error(f"❌ Could not store {entity.id} [{language}]: {e}")
            written = await self._record_failure(
                entity.id, language, f"Cache write failed: {e}"
            )

        # Refresh from the cache, not from this call's result. A Pending
        # entry here means this fetch's own write never landed.
        entry = await self.cache.get(entity.id, language)
        if entry is None or entry.status == CacheStatus.PENDING:
            entry = written
        await _notify(self._entry_listeners, entry)
        return entry

    async def _translate_into(self, entity: ConversationEntity, language: str) -> CacheEntry:
        async with self.semaphore:
            try:
                result = await self.orchestrator.translate(
                    entity.content,
                    entity.language,
                    language,
                    detect_language=False,
                )
            except TranslationError as e:
                logger.error(
                    f"❌ Translation of {entity.id} into {language} failed: {e.message}"
                )
                return await self._record_failure(entity.id, language, e.message)

        return await self.cache.put(entity.id, language, result.translated_content)

    async def _record_failure(self, entity_id: str, language: str, error: str) -> CacheEntry:
        """Mark the pair Failed; if the store rejects the write, return the entry unstored."""
        try:
            return await self.cache.mark_failed(entity_id, language, error)
        except RedisError as e:
            logger.error(f"❌ Could not record failure for {entity_id} [{language}]: {e}")
            return CacheEntry(
                entity_id=entity_id,
                language=language,
                status=CacheStatus.FAILED,
                error=error,
            )

    async def snapshot(
        self, language: Optional[str] = None
    ) -> List[Tuple[ConversationEntity, Optional[CacheEntry]]]:
        """Entities in authoring order with their current entry for a language."""
        language = LanguageUtils.normalize_tag(language, self.target_language)
        ordered = sorted(self.entities.values(), key=lambda e: e.created_at)
        return [(entity, await self.cache.get(entity.id, language)) for entity in ordered]

    async def aclose(self) -> None:
        """Stop live inputs and wait for every in-flight fetch."""
        for live in self.live_inputs.values():
            await live.aclose()
        if self._in_flight:
            await asyncio.gather(*list(self._in_flight.values()), return_exceptions=True)
