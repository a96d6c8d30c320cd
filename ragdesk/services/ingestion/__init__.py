from ragdesk.services.ingestion.chunking import DocumentChunker
from ragdesk.services.ingestion.dedup import DeduplicationGate
from ragdesk.services.ingestion.embedding import EmbeddingClient
from ragdesk.services.ingestion.parsers import ContentExtractor
from ragdesk.services.ingestion.pipeline import IngestionPipeline

__all__ = [
    "ContentExtractor",
    "DeduplicationGate",
    "DocumentChunker",
    "EmbeddingClient",
    "IngestionPipeline",
]
