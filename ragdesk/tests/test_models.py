"""Tests for the file lifecycle."""

import pytest

from ragdesk.core.exceptions import InvalidStatusTransition
from ragdesk.db.models import File, FileStatus


def make(status):
    return File(
        id="file-1",
        storage_key="users/u/key",
        user_id="u",
        mime_type="text/plain",
        original_name="a.txt",
        status=status,
    )


@pytest.mark.parametrize(
    "start, end",
    [
        (FileStatus.RESERVED, FileStatus.UPLOADED),
        (FileStatus.UPLOADED, FileStatus.PROCESSING),
        (FileStatus.PROCESSING, FileStatus.INDEXED),
        (FileStatus.PROCESSING, FileStatus.DUPLICATE),
        (FileStatus.PROCESSING, FileStatus.FAILED),
        (FileStatus.FAILED, FileStatus.PROCESSING),
    ],
)
def test_allowed_transitions(start, end):
    file = make(start)
    file.transition_to(end)
    assert file.status == end


@pytest.mark.parametrize(
    "start, end",
    [
        (FileStatus.RESERVED, FileStatus.PROCESSING),
        (FileStatus.UPLOADED, FileStatus.INDEXED),
        (FileStatus.INDEXED, FileStatus.PROCESSING),
        (FileStatus.DUPLICATE, FileStatus.INDEXED),
        (FileStatus.PROCESSING, FileStatus.UPLOADED),
    ],
)
def test_rejected_transitions(start, end):
    file = make(start)
    with pytest.raises(InvalidStatusTransition):
        file.transition_to(end)
    assert file.status == start


