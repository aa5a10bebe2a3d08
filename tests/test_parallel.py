from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from terraced.util.parallel import batch_ranges, parallel_map


@pytest.mark.parametrize("batch_size", [1, 3, 32, 100])
def test_parallel_map_keeps_index_order(batch_size):
    with ThreadPoolExecutor(max_workers=4) as pool:
        out = parallel_map(lambda i: i * i, 50, batch_size=batch_size, executor=pool)
    assert out == [i * i for i in range(50)]


def test_parallel_map_inline_without_executor():
    assert parallel_map(str, 5, batch_size=2) == ["0", "1", "2", "3", "4"]


def test_parallel_map_empty_range():
    assert parallel_map(str, 0, batch_size=4) == []


def test_batch_ranges_cover_range_once():
    batches = batch_ranges(70, 32)
    assert [len(b) for b in batches] == [32, 32, 6]
    assert [i for b in batches for i in b] == list(range(70))


def test_batch_size_must_be_positive():
    with pytest.raises(ValueError):
        batch_ranges(10, 0)


def test_parallel_map_reraises_worker_error():
    def fn(i):
        if i == 17:
            raise KeyError(i)
        return i

    with ThreadPoolExecutor(max_workers=2) as pool:
        with pytest.raises(KeyError):
            parallel_map(fn, 40, batch_size=8, executor=pool)
