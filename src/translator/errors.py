"""Error taxonomy for translation requests."""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Kinds of translation failure reported to callers."""

    EMPTY_INPUT = "empty_input"
    PROCESS_SPAWN_FAILURE = "process_spawn_failure"
    NON_ZERO_EXIT = "non_zero_exit"
    MALFORMED_RESPONSE = "malformed_response"
    ENGINE_REPORTED_FAILURE = "engine_reported_failure"


class TranslationError(Exception):
    """
    Base class for every translation failure.

    All failures are terminal for the request that raised them. Nothing in
    the orchestration core retries; retry policy belongs to the caller.
    The message is reported to callers verbatim.
    """

    kind: ErrorKind = ErrorKind.ENGINE_REPORTED_FAILURE

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class EmptyInputError(TranslationError):
    """Input was empty or whitespace-only; no engine call was made."""

    kind = ErrorKind.EMPTY_INPUT

    def __init__(self, message: str = "Text must not be empty"):
        super().__init__(message)


class ProcessSpawnError(TranslationError):
    """The engine process could not be started."""

    kind = ErrorKind.PROCESS_SPAWN_FAILURE

    def __init__(self, binary_path: str, reason: str):
        self.binary_path = binary_path
        super().__init__(f"Failed to spawn process {binary_path}: {reason}")


class NonZeroExitError(TranslationError):
    """The engine exited with a non-zero code."""

    kind = ErrorKind.NON_ZERO_EXIT

    def __init__(self, exit_code: Optional[int], stderr: str = ""):
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(f"Process exited with code {exit_code}: {stderr.strip()}")


class MalformedResponseError(TranslationError):
    """The engine exited cleanly but its output is not the expected JSON document."""

    kind = ErrorKind.MALFORMED_RESPONSE

    def __init__(self, reason: str, output_sample: Optional[str] = None):
        self.output_sample = output_sample
        super().__init__(f"Failed to parse JSON: {reason}")


class EngineReportedError(TranslationError):
    """The engine returned a well-formed response with success set to false."""

    kind = ErrorKind.ENGINE_REPORTED_FAILURE

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Translation failed")
