"""Tests for citeworks.passage_store: lookups, insert/delete and chain sorting."""
from __future__ import annotations

from dataclasses import replace

import pytest

from citeworks.passage_store import (
    chain_passages,
    delete_first_passage,
    delete_last_passage,
    delete_passage,
    find_first_index,
    find_last_index,
    get_first,
    get_index_by_id,
    get_last,
    get_next,
    get_passage_by_id,
    get_passage_by_index,
    get_prev,
    insert_passage,
    sort_passages,
)
from citeworks.types import NO_PASSAGE, EncodedText, Err, Ok, PassLoc, Passage, Work

WORK_ID = "urn:cts:collection:workgroup.work:"


def pid(n: str) -> str:
    return WORK_ID + n


def make_passage(n: str, text: str = "", **kwargs: object) -> Passage:
    return Passage(id=pid(n), text=EncodedText(txt=text or f"text {n}"), **kwargs)  # type: ignore[arg-type]


def loc(n: str, index: int) -> PassLoc:
    return PassLoc(exists=True, passage_id=pid(n), index=index)


def unwrap[T](result: Ok[T] | Err[object]) -> T:
    assert isinstance(result, Ok), result
    return result.value


def reason(result: object) -> str:
    assert isinstance(result, Err), result
    return result.error.reason


def ids(work: Work) -> list[str]:
    return [p.id.removeprefix(WORK_ID) for p in work.passages]


@pytest.fixture()
def work() -> Work:
    return unwrap(chain_passages(WORK_ID, [
        make_passage("1", "A"),
        make_passage("2", "B"),
        make_passage("3", "C"),
    ]))


# ───────────────────── Construction ──────────────────────────────────


class TestChainPassages:
    def test_links_in_order(self, work: Work) -> None:
        assert work.ordered
        assert [p.index for p in work.passages] == [0, 1, 2]
        assert work.passages[0].prev == NO_PASSAGE
        assert work.passages[0].next == loc("2", 1)
        assert work.passages[1].prev == loc("1", 0)
        assert work.passages[2].next == NO_PASSAGE
        assert work.first == loc("1", 0)
        assert work.last == loc("3", 2)

    def test_empty(self) -> None:
        empty = unwrap(chain_passages(WORK_ID, []))
        assert empty.is_empty
        assert empty.ordered

    def test_duplicate_ids_rejected(self) -> None:
        result = chain_passages(WORK_ID, [make_passage("1"), make_passage("1")])
        assert reason(result) == "argument_error"

    def test_tombstone_rejected(self) -> None:
        assert reason(chain_passages(WORK_ID, [Passage()])) == "argument_error"

    def test_plain_work_is_not_ordered(self, work: Work) -> None:
        assert not Work(id=WORK_ID, passages=work.passages).ordered

    def test_negative_index_raises(self) -> None:
        with pytest.raises(ValueError):
            PassLoc(exists=True, passage_id=pid("1"), index=-1)
        with pytest.raises(ValueError):
            make_passage("1", index=-2)


# ───────────────────── Lookups ───────────────────────────────────────


class TestLookups:
    def test_index_by_id(self, work: Work) -> None:
        assert get_index_by_id(pid("2"), work) == (1, True)
        assert get_index_by_id(pid("9"), work) == (0, False)
        assert get_index_by_id("", work) == (0, False)

    def test_passage_by_id(self, work: Work) -> None:
        assert unwrap(get_passage_by_id(pid("3"), work)).text.txt == "C"
        assert reason(get_passage_by_id(pid("9"), work)) == "passage_not_found"

    def test_passage_by_index_bounds(self, work: Work) -> None:
        assert unwrap(get_passage_by_index(0, work)).id == pid("1")
        assert reason(get_passage_by_index(3, work)) == "passage_not_found"
        assert reason(get_passage_by_index(-1, work)) == "passage_not_found"

    def test_neighbors(self, work: Work) -> None:
        assert unwrap(get_next(pid("1"), work)).id == pid("2")
        assert unwrap(get_prev(pid("3"), work)).id == pid("2")
        assert reason(get_next(pid("3"), work)) == "boundary_not_found"
        assert reason(get_prev(pid("1"), work)) == "boundary_not_found"
        assert reason(get_next(pid("9"), work)) == "passage_not_found"

    def test_first_last_are_slice_positions(self, work: Work) -> None:
        new_head = make_passage("0", next=loc("1", 0))
        inserted = unwrap(insert_passage(new_head, work))
        # Slice order is not chain order until the work is sorted.
        assert unwrap(get_first(inserted)).id == pid("1")
        assert unwrap(get_last(inserted)).id == pid("0")
        assert inserted.first.passage_id == pid("0")

    def test_first_last_on_empty(self) -> None:
        empty = Work(id=WORK_ID)
        assert reason(get_first(empty)) == "empty_work"
        assert reason(get_last(empty)) == "empty_work"

    def test_find_boundaries_by_scan(self, work: Work) -> None:
        scrambled = replace(
            work,
            passages=(work.passages[2], work.passages[0], work.passages[1]),
            ordered=False,
            first=NO_PASSAGE,
            last=NO_PASSAGE,
        )
        assert find_first_index(scrambled) == (1, True)
        assert find_last_index(scrambled) == (0, True)
        assert find_first_index(Work(id=WORK_ID)) == (0, False)


# ───────────────────── Insert ────────────────────────────────────────


class TestInsertPassage:
    def test_into_empty_work(self) -> None:
        lone = make_passage("1", prev=loc("0", 5), next=loc("2", 7))
        result = unwrap(insert_passage(lone, Work(id=WORK_ID)))
        assert len(result.passages) == 1
        assert result.passages[0].prev == NO_PASSAGE
        assert result.passages[0].next == NO_PASSAGE
        assert result.first == result.last == loc("1", 0)

    def test_as_new_tail(self, work: Work) -> None:
        result = unwrap(insert_passage(make_passage("4", "D", prev=loc("3", 2)), work))
        assert not result.ordered
        assert ids(result) == ["1", "2", "3", "4"]
        assert result.passages[2].next == loc("4", 3)
        assert result.passages[3].prev == loc("3", 2)
        assert result.passages[3].next == NO_PASSAGE
        assert result.last == loc("4", 3)
        assert result.first == loc("1", 0)

    def test_as_new_head(self, work: Work) -> None:
        result = unwrap(insert_passage(make_passage("0", next=loc("1", 0)), work))
        assert result.first == loc("0", 3)
        assert result.passages[0].prev == loc("0", 3)
        assert ids(unwrap(sort_passages(result))) == ["0", "1", "2", "3"]

    def test_spliced_between(self, work: Work) -> None:
        result = unwrap(insert_passage(make_passage("1a", prev=loc("1", 0), next=loc("2", 1)), work))
        assert result.passages[3].index == 3
        assert result.passages[0].next == loc("1a", 3)
        assert result.passages[1].prev == loc("1a", 3)
        assert ids(unwrap(sort_passages(result))) == ["1", "1a", "2", "3"]

    def test_stale_neighbor_index_is_ignored(self, work: Work) -> None:
        result = unwrap(insert_passage(make_passage("4", prev=loc("3", 99)), work))
        assert result.passages[3].prev == loc("3", 2)

    def test_unknown_neighbors(self, work: Work) -> None:
        result = insert_passage(make_passage("x", prev=loc("98", 0), next=loc("99", 0)), work)
        assert reason(result) == "passage_not_found"

    def test_duplicate_id(self, work: Work) -> None:
        assert reason(insert_passage(make_passage("2", prev=loc("3", 2)), work)) == "argument_error"

    def test_no_resolvable_boundary(self) -> None:
        looped = Work(
            id=WORK_ID,
            passages=(
                make_passage("a", prev=loc("b", 1), next=loc("b", 1)),
                make_passage("b", prev=loc("a", 0), next=loc("a", 0)),
            ),
            ordered=False,
        )
        result = insert_passage(make_passage("c", prev=loc("a", 0)), looped)
        assert reason(result) == "boundary_not_found"

    def test_input_untouched(self, work: Work) -> None:
        before = work.passages
        unwrap(insert_passage(make_passage("4", prev=loc("3", 2)), work))
        assert work.passages is before
        assert work.ordered
        assert work.passages[2].next == NO_PASSAGE


# ───────────────────── Delete ────────────────────────────────────────


class TestDeletePassage:
    def test_missing(self, work: Work) -> None:
        assert reason(delete_passage(pid("9"), work)) == "passage_not_found"

    def test_empty(self) -> None:
        assert reason(delete_passage(pid("1"), Work(id=WORK_ID))) == "empty_work"

    def test_sole_passage_resets_work(self) -> None:
        single = unwrap(chain_passages(WORK_ID, [make_passage("1")]))
        result = unwrap(delete_passage(pid("1"), single))
        assert result == Work(id=WORK_ID, ordered=True)

    def test_head(self, work: Work) -> None:
        result = unwrap(delete_passage(pid("1"), work))
        assert not result.ordered
        assert result.passages[0].is_tombstone
        assert result.passages[1].prev == NO_PASSAGE
        assert result.first == loc("2", 1)

    def test_tail(self, work: Work) -> None:
        result = unwrap(delete_passage(pid("3"), work))
        assert not result.ordered
        assert result.passages[2].is_tombstone
        assert result.passages[1].next == NO_PASSAGE
        assert result.last == loc("2", 1)

    def test_interior(self, work: Work) -> None:
        result = unwrap(delete_passage(pid("2"), work))
        assert not result.ordered
        assert result.passages[1].is_tombstone
        assert result.passages[0].next == loc("3", 2)
        assert result.passages[2].prev == loc("1", 0)
        assert ids(unwrap(sort_passages(result))) == ["1", "3"]

    def test_delete_everything(self, work: Work) -> None:
        current = work
        for n in ("1", "2", "3"):
            current = unwrap(delete_passage(pid(n), current))
        assert current == Work(id=WORK_ID, ordered=True)

    def test_unlinked_passage_beside_chain(self, work: Work) -> None:
        stray = replace(work, passages=work.passages + (make_passage("x"),), ordered=False)
        result = unwrap(delete_passage(pid("x"), stray))
        assert ids(result) == ["1", "2", "3", ""]
        assert not result.ordered
        assert result.first == loc("1", 0)
        assert ids(unwrap(sort_passages(result))) == ["1", "2", "3"]

    def test_delete_first_and_last(self, work: Work) -> None:
        trimmed = unwrap(delete_last_passage(unwrap(delete_first_passage(work))))
        assert ids(unwrap(sort_passages(trimmed))) == ["2"]

    def test_delete_first_on_empty(self) -> None:
        assert reason(delete_first_passage(Work(id=WORK_ID))) == "empty_work"
        assert reason(delete_last_passage(Work(id=WORK_ID))) == "empty_work"


# ───────────────────── Sort ──────────────────────────────────────────


class TestSortPassages:
    def test_idempotent(self, work: Work) -> None:
        once = unwrap(sort_passages(work))
        assert unwrap(sort_passages(once)) == once
        assert once == work

    def test_scrambled_slice_order(self, work: Work) -> None:
        scrambled = replace(
            work,
            passages=(
                replace(work.passages[2], index=7),
                replace(work.passages[0], index=5),
                work.passages[1],
            ),
            ordered=False,
            first=NO_PASSAGE,
            last=NO_PASSAGE,
        )
        result = unwrap(sort_passages(scrambled))
        assert result == work

    def test_compacts_tombstones(self, work: Work) -> None:
        deleted = unwrap(delete_passage(pid("1"), work))
        result = unwrap(sort_passages(deleted))
        assert ids(result) == ["2", "3"]
        assert [p.index for p in result.passages] == [0, 1]
        assert not any(p.is_tombstone for p in result.passages)
        assert result.first == loc("2", 0)
        assert result.last == loc("3", 1)
        assert result.passages[0].next == loc("3", 1)

    def test_stale_first_hint_falls_back_to_scan(self, work: Work) -> None:
        stale = replace(work, first=loc("2", 1), ordered=False)
        assert ids(unwrap(sort_passages(stale))) == ["1", "2", "3"]

    def test_drops_orphans(self, work: Work) -> None:
        orphaned = replace(work, passages=work.passages + (make_passage("x"),), ordered=False)
        result = unwrap(sort_passages(orphaned))
        assert ids(result) == ["1", "2", "3"]

    def test_single_passage(self) -> None:
        lone = Work(id=WORK_ID, passages=(make_passage("1", index=4),), ordered=False)
        result = unwrap(sort_passages(lone))
        assert result.ordered
        assert result.passages[0].index == 0
        assert result.first == result.last == loc("1", 0)

    def test_empty(self) -> None:
        assert reason(sort_passages(Work(id=WORK_ID))) == "empty_work"

    def test_no_head(self) -> None:
        looped = Work(
            id=WORK_ID,
            passages=(
                make_passage("a", prev=loc("b", 1), next=loc("b", 1)),
                make_passage("b", prev=loc("a", 0), next=loc("a", 0)),
            ),
            ordered=False,
        )
        assert reason(sort_passages(looped)) == "boundary_not_found"

    def test_cycle_before_tail(self) -> None:
        cyclic = Work(
            id=WORK_ID,
            passages=(
                make_passage("1", next=loc("2", 1)),
                make_passage("2", prev=loc("1", 0), next=loc("3", 2)),
                make_passage("3", prev=loc("2", 1), next=loc("2", 1)),
                make_passage("4", prev=loc("3", 2)),
            ),
            ordered=False,
        )
        assert reason(sort_passages(cyclic)) == "cyclic_work"

    def test_chain_ends_before_tail(self) -> None:
        broken = Work(
            id=WORK_ID,
            passages=(
                make_passage("1", next=loc("2", 1)),
                make_passage("2", prev=loc("1", 0)),
                make_passage("3", prev=loc("9", 0)),
            ),
            ordered=False,
        )
        assert reason(sort_passages(broken)) == "unexpected_end_of_work"

    def test_insert_then_delete_round_trip(self, work: Work) -> None:
        inserted = unwrap(insert_passage(make_passage("1a", prev=loc("1", 0), next=loc("2", 1)), work))
        restored = unwrap(delete_passage(pid("1a"), inserted))
        assert unwrap(sort_passages(restored)) == unwrap(sort_passages(work))

    def test_insert_tail_then_delete_round_trip(self, work: Work) -> None:
        inserted = unwrap(insert_passage(make_passage("4", prev=loc("3", 2)), work))
        restored = unwrap(delete_passage(pid("4"), inserted))
        assert unwrap(sort_passages(restored)) == work
