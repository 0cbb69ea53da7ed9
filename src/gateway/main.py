"""FastAPI application exposing the translation orchestration core."""

import json
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional
from uuid import uuid4

from fastapi import FastAPI, Query, Request, Response, WebSocket, WebSocketDisconnect, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from common.config import settings
from common.logging_config import setup_service_logging
from common.redis_client import RedisConnection
from common.schemas import CacheEntry, ConversationEntity
from common.utils import LanguageUtils, ValidationUtils
from gateway.health import check_health
from gateway.schemas import (
    BatchItem,
    DisplayLanguageUpdate,
    ErrorResponse,
    FanOutResponse,
    MessageCreate,
    MessageView,
    TranslateRequest,
    TranslateResponse,
)
from translator.batch_orchestrator import BatchOrchestrator
from translator.cache import TranslationCache, create_cache_store
from translator.controller import InteractiveController, LiveTranslation
from translator.engine_client import EngineClient
from translator.errors import ErrorKind, TranslationError

# Configure logging
logger = setup_service_logging("gateway", enable_file_logging=settings.log_to_file)

redis_connection = RedisConnection()
engine_client = EngineClient()
orchestrator = BatchOrchestrator(engine_client)
translation_cache = TranslationCache(create_cache_store(redis_connection))
controller = InteractiveController(orchestrator, translation_cache)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    logger.info("Starting translation gateway...")
    logger.info(f"   Engine: {engine_client.binary_path} {' '.join(engine_client.args)}")
    logger.info(f"   Cache backend: {settings.cache_backend}")

    if settings.cache_backend == "redis":
        await redis_connection.connect()

    logger.info("Gateway startup complete")

    yield

    logger.info("Shutting down translation gateway...")
    await controller.aclose()
    if settings.cache_backend == "redis":
        await redis_connection.disconnect()


app = FastAPI(
    title="Translation Gateway",
    description="Segmented, cached and debounced translation over an external engine",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["Content-Type"],
)


def error_response(message: str, status_code: int) -> JSONResponse:
    """Build the {success: false, error} body with a non-2xx status."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


def translation_error_response(error: TranslationError) -> JSONResponse:
    """Map a translation failure to its HTTP status; the message is passed verbatim."""
    if error.kind == ErrorKind.EMPTY_INPUT:
        return error_response(error.message, status.HTTP_400_BAD_REQUEST)
    return error_response(error.message, status.HTTP_500_INTERNAL_SERVER_ERROR)


def success_response(body: TranslateResponse) -> JSONResponse:
    return JSONResponse(content=body.model_dump(by_alias=True, exclude_none=True))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed bodies in the same {success, error} shape as other failures."""
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return error_response(
        f"Invalid request: {location}: {message}" if location else f"Invalid request: {message}",
        422,
    )


@app.get("/health", response_model=Dict[str, Any])
async def health_check_endpoint(response: Response):
    """Health of the engine binary and the cache backend."""
    health_status = await check_health(engine_client, translation_cache)

    if health_status.get("status") == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif health_status.get("status") == "error":
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        response.status_code = status.HTTP_200_OK

    return health_status


@app.get("/", response_model=Dict[str, str])
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Translation Gateway",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


@app.post("/api/translate")
async def translate_endpoint(request: TranslateRequest):
    """
    Translate text of any length.

    Short text is sent to the engine in one call; long text is segmented
    and sent as one batch.
    """
    try:
        result = await orchestrator.translate(
            request.text,
            request.source_language or settings.translation_default_source_language,
            request.target_language or settings.translation_default_target_language,
        )
    except TranslationError as e:
        logger.error(f"❌ Translation error: {e.message}")
        return translation_error_response(e)

    return success_response(
        TranslateResponse(
            original=result.original_content,
            translated=result.translated_content,
            source_language=result.resolved_source_language,
            target_language=result.target_language,
            detected_language=result.detected_language,
            segment_count=result.segment_count,
        )
    )


@app.post("/api/translate/batch")
async def translate_batch_endpoint(request: TranslateRequest):
    """
    Batch translation.

    With 'text', the text is always segmented and sent as one batch. With
    'texts', each entry is translated independently in one batch and the
    results are returned positionally.
    """
    source = request.source_language or settings.translation_default_source_language
    target = request.target_language or settings.translation_default_target_language

    try:
        if ValidationUtils.is_non_empty_string(request.text) or not request.texts:
            result = await orchestrator.translate_long(request.text, source, target)
            return success_response(
                TranslateResponse(
                    original=result.original_content,
                    translated=result.translated_content,
                    source_language=result.resolved_source_language,
                    target_language=result.target_language,
                    detected_language=result.detected_language,
                    segment_count=result.segment_count,
                )
            )

        translations = await orchestrator.translate_many(request.texts, source, target)
    except TranslationError as e:
        logger.error(f"❌ Batch translation error: {e.message}")
        return translation_error_response(e)

    return success_response(
        TranslateResponse(
            source_language=LanguageUtils.normalize_tag(source, "auto"),
            target_language=LanguageUtils.normalize_tag(target, "en"),
            results=[
                BatchItem(original=original, translated=translated)
                for original, translated in zip(request.texts, translations)
            ],
        )
    )


def build_message_view(
    entity: ConversationEntity, language: str, entry: Optional[CacheEntry]
) -> MessageView:
    return MessageView(
        id=entity.id,
        content=entity.content,
        language=entity.language,
        role=entity.role,
        created_at=entity.created_at,
        display_language=language,
        translation_status=entry.status if entry else None,
        translated=entry.text if entry else None,
        error=entry.error if entry else None,
    )


@app.post("/api/messages", response_model=MessageView, status_code=status.HTTP_201_CREATED)
async def create_message(message: MessageCreate):
    """Add a message and translate it into the current display language."""
    entity = controller.add_entity(
        ConversationEntity(
            content=message.content,
            language=LanguageUtils.normalize_tag(message.language, "en"),
            role=message.role,
        )
    )
    entry = await controller.ensure_translation(entity.id, controller.target_language)
    return build_message_view(entity, controller.target_language, entry)


@app.get("/api/messages", response_model=List[MessageView])
async def list_messages(lang: Optional[str] = Query(None, description="Display language")):
    """List messages with their cached translation for a language."""
    language = LanguageUtils.normalize_tag(lang, controller.target_language)
    snapshot = await controller.snapshot(language)
    return [build_message_view(entity, language, entry) for entity, entry in snapshot]


@app.post("/api/messages/{message_id}/translate", response_model=MessageView)
async def translate_message(
    message_id: str, lang: Optional[str] = Query(None, description="Target language")
):
    """Lookup-or-fetch one message; a failed translation is retried."""
    entity = controller.get_entity(message_id)
    if not entity:
        return error_response("Message not found", status.HTTP_404_NOT_FOUND)

    language = LanguageUtils.normalize_tag(lang, controller.target_language)
    entry = await controller.retry(entity.id, language)
    return build_message_view(entity, language, entry)


@app.get("/api/display-language", response_model=Dict[str, str])
async def get_display_language():
    return {"language": controller.target_language}


@app.put("/api/display-language", response_model=FanOutResponse)
async def set_display_language(update: DisplayLanguageUpdate):
    """Switch the display language and re-translate every message lacking a translation."""
    report = await controller.set_target_language(update.language)
    return FanOutResponse(
        language=report.target_language,
        ready=report.ready,
        failed=report.failed,
        skipped=report.skipped,
    )


@app.websocket("/ws/translate")
async def live_translate(websocket: WebSocket):
    """
    Live input channel.

    Client messages:
        {"type": "input", "text": "..."}      every keystroke
        {"type": "language", "to": "ja"}      change this field's target

    Server messages:
        {"type": "translation", "sequence", "original", "translated", "to", "success", ...}
    """
    await websocket.accept()
    field_name = f"ws-{uuid4()}"
    live = controller.live_input(field_name)

    async def push(outcome: LiveTranslation) -> None:
        payload: Dict[str, Any] = {
            "type": "translation",
            "sequence": outcome.sequence,
            "original": outcome.original,
            "translated": outcome.translated,
            "to": outcome.target_language,
            "success": outcome.success,
        }
        if outcome.error:
            payload["error"] = outcome.error
        if outcome.result and outcome.result.detected_language:
            payload["detectedLang"] = outcome.result.detected_language
        await websocket.send_json(payload)

    live.add_listener(push)
    logger.info(f"🔌 Live input connected: {field_name}")

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError as e:
                await websocket.send_json({"type": "error", "error": f"Invalid JSON: {e}"})
                continue
            if not isinstance(message, dict):
                await websocket.send_json({"type": "error", "error": "Expected a JSON object"})
                continue

            message_type = message.get("type")

            if message_type == "input":
                live.on_input(message.get("text") or "")
            elif message_type == "language":
                live.set_target_language(
                    LanguageUtils.normalize_tag(message.get("to"), live.target_language)
                )
            else:
                await websocket.send_json(
                    {"type": "error", "error": f"Unknown message type: {message_type}"}
                )
    except WebSocketDisconnect:
        logger.info(f"🔌 Live input disconnected: {field_name}")
    finally:
        live.clear_listeners()
        controller.remove_live_input(field_name)
        await live.aclose()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("gateway.main:app", host=settings.api_host, port=settings.api_port)
