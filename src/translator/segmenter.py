"""Sentence-aware splitting of long text into engine-sized segments."""

import logging
import re
from dataclasses import dataclass
from typing import List

logger = logging.getLogger(__name__)

# Default maximum characters per segment sent to the engine
DEFAULT_MAX_SEGMENT_LENGTH = 500

# A run of sentence-ending punctuation (ASCII and full-width CJK) or newlines.
# The capturing group keeps the run in the split output so it stays attached
# to the sentence it terminates.
SENTENCE_BOUNDARY_PATTERN = re.compile(r"([。！？.!?\n]+)")


@dataclass(frozen=True)
class Segment:
    """An ordered slice of a source text."""

    ordinal: int
    text: str

    def __len__(self) -> int:
        return len(self.text)


def split_into_pieces(text: str) -> List[str]:
    """
    Split text into sentence bodies and punctuation runs, in order.

    Concatenating the returned pieces yields the input unchanged.

    Example:
        >>> split_into_pieces("Hi. Bye!")
        ['Hi', '.', ' Bye', '!']
    """
    return [piece for piece in SENTENCE_BOUNDARY_PATTERN.split(text) if piece]


def segment(text: str, max_length: int = DEFAULT_MAX_SEGMENT_LENGTH) -> List[Segment]:
    """
    Split text into ordered chunks no longer than max_length.

    Pieces are accumulated greedily while the running chunk plus the next
    piece fits in max_length. When it would not fit, the running chunk is
    sealed and the piece starts the next chunk. A single piece longer than
    max_length is never cut; it becomes its own oversized chunk.

    Chunks are trimmed, empty chunks are dropped, and ordinals are assigned
    over the surviving chunks only.

    Args:
        text: Source text of any length
        max_length: Maximum characters per chunk

    Returns:
        List of Segment objects in source order

    Raises:
        ValueError: If max_length is not positive

    Example:
        >>> [s.text for s in segment("Hello. World! Bye?", 10)]
        ['Hello.', 'World!', 'Bye?']
    """
    if max_length <= 0:
        raise ValueError("max_length must be a positive integer")

    chunks: List[str] = []
    current = ""

    for piece in split_into_pieces(text):
        if len(current) + len(piece) <= max_length:
            current += piece
            continue

        sealed = current.strip()
        if sealed:
            chunks.append(sealed)
        current = piece

    sealed = current.strip()
    if sealed:
        chunks.append(sealed)

    oversized = sum(1 for chunk in chunks if len(chunk) > max_length)
    if oversized:
        logger.debug(
            f"{oversized} segment(s) exceed max_length={max_length} "
            f"because a single sentence is longer than the limit"
        )

    return [Segment(ordinal=i, text=chunk) for i, chunk in enumerate(chunks)]


def segment_texts(segments: List[Segment]) -> List[str]:
    """
    Extract segment texts in ordinal order for a batch request.

    Args:
        segments: Segments produced by segment()

    Returns:
        List of text strings ordered by ordinal
    """
    return [s.text for s in sorted(segments, key=lambda s: s.ordinal)]
