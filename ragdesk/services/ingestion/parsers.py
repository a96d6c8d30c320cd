"""Content extraction for the supported upload types."""

import asyncio
import base64
import io
import logging
from typing import Any, Callable, Dict, List, Optional, Union

from langchain_core.messages import HumanMessage
from pdfminer.high_level import extract_pages
from pdfminer.layout import LTTextContainer
from pdfminer.pdfparser import PDFSyntaxError

from ragdesk.core.config import settings
from ragdesk.core.exceptions import ExtractionError
from ragdesk.prompts.system_prompts import IMAGE_ANALYSIS_PROMPT
from ragdesk.services.llm import get_chat_model

logger = logging.getLogger(__name__)

Parser = Callable[[bytes], str]

# Dictionary mapping MIME types to parser functions
PARSER_REGISTRY: Dict[str, Parser] = {}


def register_parser(mime_types: List[str]):
    """Decorator to register a parser function for specific MIME types."""
    def decorator(func: Parser) -> Parser:
        for mime_type in mime_types:
            PARSER_REGISTRY[mime_type.lower()] = func
        return func
    return decorator


@register_parser(["text/plain", "text/markdown", "text/csv"])
def parse_text(data: bytes) -> str:
    """Decode bytes as UTF-8, replacing invalid sequences."""
    return data.decode("utf-8", errors="replace")


@register_parser(["application/pdf"])
def parse_pdf(data: bytes) -> str:
    """Extract the text of every page, in page order.

    Raises:
        ExtractionError: If the bytes are not a readable PDF
    """
    pages = []
    try:
        for page_layout in extract_pages(io.BytesIO(data)):
            pages.append(
                "".join(
                    element.get_text()
                    for element in page_layout
                    if isinstance(element, LTTextContainer)
                )
            )
    except PDFSyntaxError as e:
        raise ExtractionError(f"Unreadable PDF: {e}") from e

    logger.debug(f"Extracted text from {len(pages)} PDF pages")
    return "\n".join(pages)


def message_text(content: Union[str, List[Any]]) -> str:
    """Return the text of a chat message, dropping non-text content blocks."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class ContentExtractor:
    """Turn raw file bytes into plain text based on the declared MIME type."""

    def __init__(self, vision_model=None):
        """Initialize the extractor.

        Args:
            vision_model: Optional chat model able to read images; created
                lazily from ``settings.IMAGE_ANALYSIS_MODEL`` when first needed
        """
        self._vision_model = vision_model

    @property
    def vision_model(self):
        if self._vision_model is None:
            self._vision_model = get_chat_model(model=settings.IMAGE_ANALYSIS_MODEL, temperature=0)
        return self._vision_model

    async def extract(self, data: bytes, mime_type: str) -> str:
        """Extract text from a file.

        Images are described by the vision model, PDFs are parsed page by
        page, everything else is decoded as UTF-8.

        Args:
            data: Raw file bytes
            mime_type: Declared MIME type of the upload

        Returns:
            The extracted text, possibly empty
        """
        mime_type = (mime_type or "").lower()
        if mime_type.startswith("image/"):
            return await self._describe_image(data, mime_type)

        parser: Optional[Parser] = PARSER_REGISTRY.get(mime_type)
        if parser is None:
            logger.info(f"No parser registered for {mime_type}, decoding as text")
            parser = parse_text

        return await asyncio.to_thread(parser, data)

    async def _describe_image(self, data: bytes, mime_type: str) -> str:
        encoded = base64.b64encode(data).decode("ascii")
        message = HumanMessage(
            content=[
                {"type": "text", "text": IMAGE_ANALYSIS_PROMPT},
                {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}},
            ]
        )
        logger.info(f"Analyzing {mime_type} image ({len(data)} bytes) with {settings.IMAGE_ANALYSIS_MODEL}")
        response = await self.vision_model.ainvoke([message])
        return message_text(response.content)
