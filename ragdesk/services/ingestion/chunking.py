"""Utilities for chunking documents into overlapping windows."""

import logging
import math
from typing import Any, Dict, List, Optional

import tiktoken

from ragdesk.core.config import settings

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"  # Model to use for token counting

# Natural boundaries, in order of preference
SEPARATORS = ["\n\n", "\n", ". ", "? ", "! ", " "]


class DocumentChunker:
    """Split text into fixed-size character windows with a fixed overlap.

    Every chunk after the first starts with the last ``chunk_overlap``
    characters of its predecessor, no chunk is longer than ``chunk_size``,
    and dropping the overlap prefix from every chunk but the first gives
    back the original text exactly.

    Window ends are pulled back to a paragraph, line, sentence or word
    boundary when one is close enough, but never so far that the document
    would need more chunks than a plain sliding window.
    """

    def __init__(
        self,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
        model: str = DEFAULT_MODEL,
    ):
        """Initialize the document chunker.

        Args:
            chunk_size: Maximum size of chunks in characters
            chunk_overlap: Characters repeated between consecutive chunks
            model: Model to use for token counting in chunk metadata
        """
        self.chunk_size = chunk_size if chunk_size is not None else settings.CHUNK_SIZE
        self.chunk_overlap = chunk_overlap if chunk_overlap is not None else settings.CHUNK_OVERLAP
        if self.chunk_overlap < 0 or self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap must be in [0, chunk_size), got {self.chunk_overlap} for size {self.chunk_size}"
            )
        self.model = model
        self._tokenizer = None
        self._tokenizer_loaded = False

    @property
    def stride(self) -> int:
        return self.chunk_size - self.chunk_overlap

    @property
    def tokenizer(self):
        """Lazily load the tokenizer; None if no encoding can be loaded."""
        if not self._tokenizer_loaded:
            self._tokenizer_loaded = True
            try:
                self._tokenizer = tiktoken.encoding_for_model(self.model)
            except Exception as e:
                logger.warning(f"Failed to load tokenizer for {self.model}: {e}. Using cl100k_base instead.")
                try:
                    self._tokenizer = tiktoken.get_encoding("cl100k_base")
                except Exception as e:
                    logger.warning(f"No tokenizer available, token counts disabled: {e}")
        return self._tokenizer

    def count_tokens(self, text: str) -> Optional[int]:
        """Count the number of tokens in text, or None without a tokenizer."""
        if self.tokenizer is None:
            return None
        return len(self.tokenizer.encode(text))

    def split_text(self, text: str) -> List[str]:
        """Split text into ordered, overlapping chunks.

        Args:
            text: Text to split

        Returns:
            List of chunk texts, empty for empty input
        """
        return [text[start:end] for start, end in self._windows(text)]

    def _windows(self, text: str) -> List[tuple[int, int]]:
        length = len(text)
        if length == 0:
            return []
        if length <= self.chunk_size:
            return [(0, length)]

        # Fewest windows that cover the text; boundary snapping may not add more
        total = math.ceil((length - self.chunk_overlap) / self.stride)

        windows = []
        start = 0
        for index in range(total):
            remaining = total - index - 1
            if remaining == 0:
                end = length
            else:
                hard_end = start + self.chunk_size
                earliest = max(length - remaining * self.stride, start + self.chunk_overlap + 1)
                end = self._find_boundary(text, earliest, hard_end)
            windows.append((start, end))
            start = end - self.chunk_overlap
        return windows

    def _find_boundary(self, text: str, earliest: int, latest: int) -> int:
        """Return the best cut position in ``[earliest, latest]``.

        The cut lands right after the last separator of the most preferred
        kind found in range, or at ``latest`` when there is none.
        """
        for separator in SEPARATORS:
            index = text.rfind(separator, earliest - len(separator), latest)
            if index != -1:
                return index + len(separator)
        return latest

    def chunk_document(self, content: str, metadata: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Chunk a document and attach per-chunk metadata.

        Args:
            content: Document content
            metadata: Document metadata copied onto every chunk

        Returns:
            List of ``{"content", "metadata"}`` dicts in document order
        """
        if not content.strip():
            return []

        metadata = metadata or {}
        windows = self._windows(content)

        result = []
        for i, (start, end) in enumerate(windows):
            chunk = content[start:end]
            chunk_metadata = {
                **metadata,
                "chunk_index": i,
                "total_chunks": len(windows),
                "char_start": start,
                "token_count": self.count_tokens(chunk),
            }
            result.append({"content": chunk, "metadata": chunk_metadata})

        logger.debug(f"Split {len(content)} characters into {len(result)} chunks")
        return result
