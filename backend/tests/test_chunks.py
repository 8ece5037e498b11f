import itertools

import pytest

from lineserver.core.chunks import ChunkReassembler
from lineserver.core.config import RelaySettings
from lineserver.core.errors import CapacityExceeded, InvalidInput
from lineserver.core.validation import ValidationPolicy


class Sink:
    def __init__(self, fail=False):
        self.bundles = []
        self.fail = fail

    def __call__(self, bundle):
        if self.fail:
            raise CapacityExceeded()
        self.bundles.append(bundle)
        return f"msg-{len(self.bundles)}"


@pytest.fixture
def reassembler(clock):
    return ChunkReassembler(ValidationPolicy(RelaySettings()), stale_ms=3600000, grace_ms=60000, clock=clock)


def submit(reassembler, index, total=3, sink=None, sender="u1", name="a.txt", data=None):
    return reassembler.submit_chunk(sender, index, total, data or f"part{index}", name, "text/plain", 12,
                                    on_complete=sink)


@pytest.mark.parametrize("order", list(itertools.permutations(range(4))))
def test_any_arrival_order_completes_once(reassembler, order):
    sink = Sink()
    for position, index in enumerate(order):
        progress = submit(reassembler, index, total=4, sink=sink)
        if position < 3:
            assert not progress.completed
            assert sink.bundles == []

    assert progress.completed
    assert progress.message_id == "msg-1"
    assert len(sink.bundles) == 1
    assert sink.bundles[0].chunks == {0: "part0", 1: "part1", 2: "part2", 3: "part3"}


def test_progress_counts_distinct_indices(reassembler):
    sink = Sink()
    assert submit(reassembler, 0, sink=sink).received == 1
    assert submit(reassembler, 2, sink=sink).received == 2
    assert submit(reassembler, 2, sink=sink, data="again").received == 2
    assert reassembler.get("u1", "a.txt").chunks[2] == "again"

    final = submit(reassembler, 1, sink=sink)
    assert (final.received, final.total, final.completed) == (3, 3, True)


def test_late_duplicates_are_absorbed_during_grace(reassembler, clock):
    sink = Sink()
    for index in range(3):
        submit(reassembler, index, sink=sink)

    clock.advance(1000)
    progress = submit(reassembler, 2, sink=sink)
    assert progress.completed
    assert progress.received == 3
    assert len(sink.bundles) == 1


def test_new_transfer_after_grace_starts_fresh(reassembler, clock):
    sink = Sink()
    for index in range(3):
        submit(reassembler, index, sink=sink)

    clock.advance(60000)
    progress = submit(reassembler, 0, sink=sink)
    assert (progress.received, progress.completed) == (1, False)


def test_failed_completion_leaves_set_untouched(reassembler):
    submit(reassembler, 0)
    submit(reassembler, 1)

    with pytest.raises(CapacityExceeded):
        submit(reassembler, 2, sink=Sink(fail=True))

    chunk_set = reassembler.get("u1", "a.txt")
    assert sorted(chunk_set.chunks) == [0, 1]
    assert chunk_set.completed_at is None


@pytest.mark.parametrize("index,total", [
    (3, 3),
    (-1, 3),
    (0, 0),
    (True, 3),
    (1.0, 3),
    ("1", 3),
])
def test_bad_positions_rejected(reassembler, index, total):
    with pytest.raises(InvalidInput):
        reassembler.submit_chunk("u1", index, total, "data", "a.txt")
    assert len(reassembler) == 0


def test_total_chunks_must_match_existing_set(reassembler):
    submit(reassembler, 0, total=3)
    with pytest.raises(InvalidInput):
        submit(reassembler, 1, total=4)


def test_oversized_chunk_and_long_filename_rejected(reassembler):
    with pytest.raises(InvalidInput):
        reassembler.submit_chunk("u1", 0, 1, "x" * 100001, "a.txt")
    with pytest.raises(InvalidInput):
        reassembler.submit_chunk("u1", 0, 1, "x", "n" * 256)
    with pytest.raises(InvalidInput):
        reassembler.submit_chunk("", 0, 1, "x", "a.txt")


def test_same_file_name_from_different_senders_kept_apart(reassembler):
    submit(reassembler, 0, sender="u1")
    submit(reassembler, 0, sender="u2")
    assert len(reassembler) == 2

    assert reassembler.drop_sender("u1") == 1
    assert reassembler.get("u2", "a.txt") is not None


def test_sweep_drops_stale_and_completed_sets(reassembler, clock):
    sink = Sink()
    submit(reassembler, 0, name="abandoned.bin")
    submit(reassembler, 0, total=1, sink=sink, name="done.bin")
    clock.advance(60000)
    submit(reassembler, 0, name="active.bin")

    assert reassembler.sweep() == 1
    assert reassembler.get("u1", "done.bin") is None

    clock.advance(3600000)
    assert reassembler.sweep() == 1
    assert reassembler.get("u1", "abandoned.bin") is None
    assert reassembler.get("u1", "active.bin") is not None
