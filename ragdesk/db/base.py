# Import all models so that Base has them before running Alembic
from ragdesk.db.base_class import Base

from ragdesk.db.models.file import File
from ragdesk.db.models.document_chunk import DocumentChunk

__all__ = ["Base", "File", "DocumentChunk"]
