"""Splits long outbound replies into platform-sized message segments."""
import logging
from typing import List

from config import MAX_MESSAGE_CHUNK_SIZE, CHUNK_SEARCH_WINDOW

logger = logging.getLogger(__name__)

# Boundaries tried in priority order when looking for a natural cut point
SEPARATORS = ["\n", " "]


def chunk_text(
    text: str,
    max_size: int = MAX_MESSAGE_CHUNK_SIZE,
    search_window: int = CHUNK_SEARCH_WINDOW
) -> List[str]:
    """
    Split text into segments of at most max_size characters.

    Cuts prefer the last newline, then the last space, found within the final
    search_window characters of each window; otherwise the cut is hard at
    max_size. The boundary character is dropped and every segment is trimmed.

    Args:
        text: Reply text to split
        max_size: Maximum characters per segment
        search_window: How far back from the window end to look for a boundary

    Returns:
        Ordered list of non-empty segments, or [""] for blank input
    """
    if max_size <= 0:
        raise ValueError("max_size must be positive")

    if len(text) <= max_size:
        return [text.strip()]

    chunks = []
    position = 0

    while position < len(text):
        end = position + max_size
        skip = 0

        if end < len(text):
            search_start = max(end - search_window, position)
            window = text[search_start:end]

            for separator in SEPARATORS:
                index = window.rfind(separator)
                if index != -1:
                    end = search_start + index
                    skip = 1
                    break

        chunk = text[position:end].strip()
        if chunk:
            chunks.append(chunk)

        position = end + skip

    logger.debug(f"Split {len(text)} characters into {len(chunks)} chunks")
    return chunks or [""]
