"""Tests for the ingestion pipeline state machine."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from ragdesk.core.exceptions import ConflictError, EmbeddingError
from ragdesk.db.models import DocumentChunk, File, FileStatus
from ragdesk.services.ingestion.chunking import DocumentChunker
from ragdesk.services.ingestion.dedup import DeduplicationGate
from ragdesk.services.ingestion.pipeline import IngestionPipeline
from ragdesk.tests.conftest import make_vector


@pytest.fixture
def extractor():
    extractor = MagicMock()
    extractor.extract = AsyncMock(return_value="The total budget for Q4 is $50,000.")
    return extractor


@pytest.fixture
def embedder():
    embedder = MagicMock()

    async def embed_many(texts):
        return [make_vector(0.1) for _ in texts]

    embedder.embed_many = AsyncMock(side_effect=embed_many)
    return embedder


@pytest.fixture
def pipeline(session_factory, storage, extractor, embedder):
    return IngestionPipeline(
        session_factory=session_factory,
        storage=storage,
        extractor=extractor,
        chunker=DocumentChunker(chunk_size=1000, chunk_overlap=200),
        embedder=embedder,
    )


async def status_of(db_session, file_id):
    return (await db_session.execute(select(File.status).where(File.id == file_id))).scalar_one_or_none()


async def chunk_count(db_session, file_id):
    stmt = select(func.count()).select_from(DocumentChunk).where(DocumentChunk.file_id == file_id)
    return (await db_session.execute(stmt)).scalar_one()


@pytest.mark.asyncio
async def test_missing_file_row_is_a_no_op(pipeline, storage):
    assert await pipeline.run("does-not-exist") is None
    storage.get_object.assert_not_awaited()


@pytest.mark.asyncio
async def test_successful_ingestion_indexes_chunks(pipeline, make_file, db_session, storage):
    file = await make_file(original_name="budget.pdf", mime_type="application/pdf")

    assert await pipeline.run(file.id) == FileStatus.INDEXED

    assert await status_of(db_session, file.id) == FileStatus.INDEXED
    result = await db_session.execute(select(DocumentChunk).where(DocumentChunk.file_id == file.id))
    chunks = result.scalars().all()
    assert len(chunks) == 1
    assert chunks[0].content == "The total budget for Q4 is $50,000."
    assert chunks[0].user_id == file.user_id
    assert chunks[0].chunk_metadata["original_name"] == "budget.pdf"
    assert chunks[0].chunk_metadata["chunk_index"] == 0
    assert len(chunks[0].embedding) == 8

    stored_hash = (await db_session.execute(select(File.content_hash).where(File.id == file.id))).scalar_one()
    assert stored_hash == DeduplicationGate.compute_hash(b"hello world")


@pytest.mark.asyncio
async def test_long_document_writes_every_chunk(pipeline, make_file, db_session, extractor, embedder):
    extractor.extract.return_value = "x" * 1800
    file = await make_file()

    await pipeline.run(file.id)

    assert await chunk_count(db_session, file.id) == 2
    assert len(embedder.embed_many.call_args.args[0]) == 2


@pytest.mark.asyncio
async def test_missing_object_deletes_file_row(pipeline, make_file, db_session, storage, extractor):
    storage.get_object.return_value = None
    file = await make_file(status=FileStatus.UPLOADED)

    assert await pipeline.run(file.id) is None

    assert await status_of(db_session, file.id) is None
    extractor.extract.assert_not_awaited()


@pytest.mark.asyncio
async def test_duplicate_content_is_marked_and_blob_removed(pipeline, make_file, db_session, storage, extractor):
    content_hash = DeduplicationGate.compute_hash(b"hello world")
    original = await make_file(status=FileStatus.INDEXED, content_hash=content_hash, original_name="a.txt")
    copy = await make_file(status=FileStatus.UPLOADED, original_name="b.txt")

    assert await pipeline.run(copy.id) == FileStatus.DUPLICATE

    assert await status_of(db_session, copy.id) == FileStatus.DUPLICATE
    assert await status_of(db_session, original.id) == FileStatus.INDEXED
    storage.delete_object.assert_awaited_once_with(copy.storage_key)
    extractor.extract.assert_not_awaited()
    assert await chunk_count(db_session, copy.id) == 0


@pytest.mark.asyncio
async def test_same_content_from_another_user_is_not_duplicate(pipeline, make_file, db_session):
    content_hash = DeduplicationGate.compute_hash(b"hello world")
    await make_file(user_id="user-2", status=FileStatus.INDEXED, content_hash=content_hash)
    file = await make_file(user_id="user-1")

    assert await pipeline.run(file.id) == FileStatus.INDEXED


@pytest.mark.asyncio
async def test_duplicate_blob_delete_failure_does_not_fail_job(pipeline, make_file, db_session, storage):
    storage.delete_object.side_effect = RuntimeError("storage down")
    content_hash = DeduplicationGate.compute_hash(b"hello world")
    await make_file(status=FileStatus.INDEXED, content_hash=content_hash, original_name="a.txt")
    copy = await make_file(original_name="b.txt")

    assert await pipeline.run(copy.id) == FileStatus.DUPLICATE


@pytest.mark.asyncio
async def test_empty_extraction_fails_without_raising(pipeline, make_file, db_session, extractor, embedder):
    extractor.extract.return_value = "  \n\t "
    file = await make_file()

    assert await pipeline.run(file.id) == FileStatus.FAILED

    assert await status_of(db_session, file.id) == FileStatus.FAILED
    embedder.embed_many.assert_not_awaited()
    stored_hash = (await db_session.execute(select(File.content_hash).where(File.id == file.id))).scalar_one()
    assert stored_hash is not None


@pytest.mark.asyncio
async def test_unexpected_error_marks_failed_and_reraises(pipeline, make_file, db_session, embedder):
    embedder.embed_many.side_effect = EmbeddingError("model unavailable")
    file = await make_file()

    with pytest.raises(EmbeddingError):
        await pipeline.run(file.id)

    assert await status_of(db_session, file.id) == FileStatus.FAILED
    assert await chunk_count(db_session, file.id) == 0


@pytest.mark.asyncio
async def test_retry_after_failure_indexes_file(pipeline, make_file, db_session, embedder):
    file = await make_file(status=FileStatus.FAILED)

    assert await pipeline.run(file.id) == FileStatus.INDEXED
    assert await status_of(db_session, file.id) == FileStatus.INDEXED


@pytest.mark.asyncio
async def test_already_indexed_file_is_left_alone(pipeline, make_file, storage):
    file = await make_file(status=FileStatus.INDEXED)

    assert await pipeline.run(file.id) == FileStatus.INDEXED
    storage.get_object.assert_not_awaited()


@pytest.mark.asyncio
async def test_rerun_discards_chunks_from_interrupted_attempt(pipeline, make_file, db_session):
    file = await make_file(status=FileStatus.PROCESSING)
    db_session.add(
        DocumentChunk(
            file_id=file.id,
            user_id=file.user_id,
            content="stale",
            chunk_metadata={"chunk_index": 0},
            embedding=make_vector(0.9),
        )
    )
    await db_session.commit()

    assert await pipeline.run(file.id) == FileStatus.INDEXED

    result = await db_session.execute(select(DocumentChunk.content).where(DocumentChunk.file_id == file.id))
    assert result.scalars().all() == ["The total budget for Q4 is $50,000."]


@pytest.mark.asyncio
async def test_identical_uploads_end_indexed_and_duplicate(pipeline, make_file, db_session, storage):
    first = await make_file(original_name="one.txt")
    second = await make_file(original_name="two.txt")

    statuses = [await pipeline.run(first.id), await pipeline.run(second.id)]

    assert statuses == [FileStatus.INDEXED, FileStatus.DUPLICATE]
    storage.delete_object.assert_awaited_once_with(second.storage_key)


@pytest.mark.asyncio
async def test_unconfirmed_file_is_not_picked_up(pipeline, make_file, db_session, storage):
    file = await make_file(status=FileStatus.RESERVED)

    with pytest.raises(ConflictError):
        await pipeline.run(file.id)

    assert await status_of(db_session, file.id) == FileStatus.RESERVED
    storage.get_object.assert_not_awaited()


@pytest.mark.asyncio
async def test_concurrent_twin_is_caught_by_unique_index(pipeline, make_file, db_session, storage):
    content_hash = DeduplicationGate.compute_hash(b"hello world")
    twin = await make_file(original_name="one.txt", status=FileStatus.INDEXED, content_hash=content_hash)
    file = await make_file(original_name="two.txt")
    file_id, storage_key = file.id, file.storage_key

    # The lookup misses the twin, as when both uploads are processed at once
    with patch.object(pipeline.dedup, "find_duplicate", new=AsyncMock(return_value=None)):
        with pytest.raises(IntegrityError):
            await pipeline.run(file_id)

    assert await status_of(db_session, file_id) == FileStatus.FAILED
    assert await chunk_count(db_session, file_id) == 0

    assert await pipeline.run(file_id) == FileStatus.DUPLICATE
    assert await status_of(db_session, file_id) == FileStatus.DUPLICATE
    assert await status_of(db_session, twin.id) == FileStatus.INDEXED
    storage.delete_object.assert_awaited_once_with(storage_key)
