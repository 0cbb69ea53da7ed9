"""Client for the external translation engine (one process per request)."""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from common.config import settings
from common.schemas import EngineBatchResponse, EngineSingleResponse
from common.string_utils import truncate_for_logging
from translator.errors import (
    EngineReportedError,
    MalformedResponseError,
    NonZeroExitError,
    ProcessSpawnError,
)

logger = logging.getLogger(__name__)


class EngineClient:
    """
    Invokes the translation engine over a fresh stdin/stdout channel per call.

    Every call spawns its own engine process, writes one JSON request to its
    standard input, closes the input, and reads everything the engine prints
    until it exits. Calls never share a process, so any number of them may
    run concurrently without coordination.

    No timeout is applied and failed calls are not retried.
    """

    def __init__(
        self,
        binary_path: Optional[str] = None,
        args: Optional[Sequence[str]] = None,
    ):
        """
        Initialize the client.

        Args:
            binary_path: Engine executable (defaults to settings.engine_binary_path)
            args: Arguments for every invocation (defaults to settings.engine_argv)
        """
        self.binary_path = binary_path or settings.engine_binary_path
        self.args: List[str] = list(args) if args is not None else settings.engine_argv
        self.calls_made = 0

    async def call(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Send one request document to a new engine process.

        Args:
            payload: JSON-serializable request document

        Returns:
            Parsed JSON response document

        Raises:
            ProcessSpawnError: If the engine could not be started
            NonZeroExitError: If the engine exited with a non-zero code
            MalformedResponseError: If the engine output is not valid JSON
        """
        request_body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        self.calls_made += 1

        try:
            process = await asyncio.create_subprocess_exec(
                self.binary_path,
                *self.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error(f"❌ Could not start translation engine {self.binary_path}: {e}")
            raise ProcessSpawnError(self.binary_path, str(e)) from e

        # communicate() writes stdin, closes it, then drains both pipes
        stdout, stderr = await process.communicate(input=request_body)

        stdout_text = stdout.decode("utf-8", errors="replace")
        stderr_text = stderr.decode("utf-8", errors="replace")

        if process.returncode != 0:
            logger.error(
                f"❌ Translation engine exited with code {process.returncode}: "
                f"{truncate_for_logging(stderr_text)}"
            )
            raise NonZeroExitError(process.returncode, stderr_text)

        return self.parse_output(stdout_text)

    @staticmethod
    def parse_output(output: str) -> Dict[str, Any]:
        """
        Parse the engine's standard output as one JSON object.

        Args:
            output: Complete standard output of the engine

        Returns:
            Parsed JSON object

        Raises:
            MalformedResponseError: If output is not a JSON object
        """
        try:
            document = json.loads(output)
        except json.JSONDecodeError as e:
            logger.error(
                f"❌ Engine output is not valid JSON: {e}. "
                f"Output sample: {truncate_for_logging(output, 500, 200)}"
            )
            raise MalformedResponseError(
                str(e), output_sample=truncate_for_logging(output, 500, 200)
            ) from e

        if not isinstance(document, dict):
            raise MalformedResponseError(
                f"expected JSON object, got {type(document).__name__}"
            )
        return document

    async def translate_text(
        self, text: str, source_language: str, target_language: str
    ) -> EngineSingleResponse:
        """
        Translate one text with a single engine call.

        Args:
            text: Text to translate (already trimmed and non-empty)
            source_language: Source language tag or 'auto'
            target_language: Target language tag

        Returns:
            Validated single response with success set

        Raises:
            TranslationError: Any subclass describing the failure
        """
        document = await self.call(
            {"text": text, "from": source_language, "to": target_language}
        )
        response = self._validate(EngineSingleResponse, document)

        if not response.success:
            logger.warning(f"⚠️  Engine reported failure: {response.error}")
            raise EngineReportedError(response.error)
        if response.translated is None:
            raise MalformedResponseError("response is missing 'translated'")
        return response

    async def translate_texts(
        self, texts: List[str], source_language: str, target_language: str
    ) -> EngineBatchResponse:
        """
        Translate an ordered list of texts with one batched engine call.

        The engine answers with one result per input text, in input order.

        Args:
            texts: Texts to translate, in order
            source_language: Source language tag or 'auto'
            target_language: Target language tag

        Returns:
            Validated batch response whose results align with texts

        Raises:
            TranslationError: Any subclass describing the failure
        """
        document = await self.call(
            {"texts": texts, "from": source_language, "to": target_language}
        )
        response = self._validate(EngineBatchResponse, document)

        if not response.success:
            logger.warning(f"⚠️  Engine reported batch failure: {response.error}")
            raise EngineReportedError(response.error)
        if len(response.results) != len(texts):
            raise MalformedResponseError(
                f"expected {len(texts)} batch results, got {len(response.results)}"
            )
        return response

    @staticmethod
    def _validate(model, document: Dict[str, Any]):
        """Validate a response document against its expected shape."""
        try:
            return model.model_validate(document)
        except ValidationError as e:
            raise MalformedResponseError(
                f"unexpected response shape: {e.error_count()} validation error(s)"
            ) from e
