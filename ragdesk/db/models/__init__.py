from ragdesk.db.models.file import File, FileStatus
from ragdesk.db.models.document_chunk import DocumentChunk

# These imports are required to ensure all models are discovered by SQLAlchemy
__all__ = [
    "File",
    "FileStatus",
    "DocumentChunk",
]
