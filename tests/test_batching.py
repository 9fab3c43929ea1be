"""Tests for chunking work item ids into batch requests."""

import math

import pytest

from ado_query_mailer.workitems.base import MAX_BATCH_SIZE
from ado_query_mailer.workitems.batching import chunk_ids


class TestChunkIds:

    def test_empty_input_yields_nothing(self):
        assert list(chunk_ids([])) == []

    @pytest.mark.parametrize("count", [1, 199, 200, 201, 400, 401, 1000])
    def test_chunk_count_and_sizes(self, count):
        ids = list(range(1, count + 1))
        chunks = list(chunk_ids(list(ids)))

        assert len(chunks) == math.ceil(count / MAX_BATCH_SIZE)
        assert all(len(chunk) <= MAX_BATCH_SIZE for chunk in chunks)
        assert [i for chunk in chunks for i in chunk] == ids

    def test_input_is_consumed(self):
        ids = list(range(450))
        sizes = [len(chunk) for chunk in chunk_ids(ids)]

        assert sizes == [200, 200, 50]
        assert ids == []

    def test_custom_size(self):
        assert list(chunk_ids([1, 2, 3, 4, 5, 6, 7], size=3)) == [
            [1, 2, 3], [4, 5, 6], [7],
        ]

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            list(chunk_ids([1, 2], size=0))
