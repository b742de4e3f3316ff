"""Passage store: a doubly-linked passage chain over an index-addressed arena.

Every passage carries ``prev``/``next`` locators (id + slice position). The
arena order and the chain order only coincide while ``Work.ordered`` is
True; mutations append or tombstone slots and clear the flag, and
``sort_passages`` rebuilds a dense canonical arena from the chain.

All operations are pure. Neighbor resolution always goes through passage
ids, never through a locator's stored index, so stale indices in an
unordered Work cannot send a lookup to the wrong slot.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace

from citeworks.types import (
    NO_PASSAGE,
    TOMBSTONE,
    CiteError,
    Ok,
    Passage,
    Result,
    Work,
    fail,
)

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

def chain_passages(work_id: str, passages: Iterable[Passage]) -> Result[Work, CiteError]:
    """Build a canonical Work linking ``passages`` in the order given.

    Incoming locators and indices are overwritten. Duplicate or empty ids
    are rejected.
    """
    items = list(passages)
    seen: set[str] = set()
    for p in items:
        if p.is_tombstone:
            return fail("argument_error", "passage without an id", work_id)
        if p.id in seen:
            return fail("argument_error", f"duplicate passage id {p.id}", p.id)
        seen.add(p.id)
    if not items:
        return Ok(Work(id=work_id, ordered=True))
    return Ok(_canonical_work(work_id, items))


def _canonical_work(work_id: str, chain: list[Passage]) -> Work:
    n = len(chain)
    linked: list[Passage] = []
    for i, p in enumerate(chain):
        linked.append(replace(
            p,
            index=i,
            prev=chain[i - 1].locator(i - 1) if i > 0 else NO_PASSAGE,
            next=chain[i + 1].locator(i + 1) if i < n - 1 else NO_PASSAGE,
        ))
    return Work(
        id=work_id,
        passages=tuple(linked),
        ordered=True,
        first=linked[0].locator(0),
        last=linked[-1].locator(n - 1),
    )


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def get_index_by_id(passage_id: str, work: Work) -> tuple[int, bool]:
    """Slice position of ``passage_id`` in ``work.passages`` (not Passage.index)."""
    if not passage_id:
        return 0, False
    for i, p in enumerate(work.passages):
        if p.id == passage_id:
            return i, True
    return 0, False


def get_passage_by_id(passage_id: str, work: Work) -> Result[Passage, CiteError]:
    slot, found = get_index_by_id(passage_id, work)
    if not found:
        return fail("passage_not_found", f"passage not found in work {work.id}", passage_id)
    return Ok(work.passages[slot])


def get_passage_by_index(slice_index: int, work: Work) -> Result[Passage, CiteError]:
    """Passage at a slice position (not by Passage.index), bounds checked."""
    if 0 <= slice_index < len(work.passages):
        return Ok(work.passages[slice_index])
    return fail(
        "passage_not_found",
        f"slice index {slice_index} out of bounds for {len(work.passages)} passages",
        work.id,
    )


def get_first(work: Work) -> Result[Passage, CiteError]:
    """Passage at slice position 0. This is not ``work.first``."""
    if work.is_empty:
        return fail("empty_work", "work has no passages", work.id)
    return Ok(work.passages[0])


def get_last(work: Work) -> Result[Passage, CiteError]:
    """Passage at the last slice position. This is not ``work.last``."""
    if work.is_empty:
        return fail("empty_work", "work has no passages", work.id)
    return Ok(work.passages[-1])


def get_next(passage_id: str, work: Work) -> Result[Passage, CiteError]:
    """Chain successor of ``passage_id`` (not the next slot in the arena)."""
    slot, found = get_index_by_id(passage_id, work)
    if not found:
        return fail("passage_not_found", f"passage not found in work {work.id}", passage_id)
    loc = work.passages[slot].next
    if not loc.exists:
        return fail("boundary_not_found", "passage is the last of its chain", passage_id)
    return get_passage_by_id(loc.passage_id, work)


def get_prev(passage_id: str, work: Work) -> Result[Passage, CiteError]:
    """Chain predecessor of ``passage_id`` (not the previous slot in the arena)."""
    slot, found = get_index_by_id(passage_id, work)
    if not found:
        return fail("passage_not_found", f"passage not found in work {work.id}", passage_id)
    loc = work.passages[slot].prev
    if not loc.exists:
        return fail("boundary_not_found", "passage is the first of its chain", passage_id)
    return get_passage_by_id(loc.passage_id, work)


def find_first_index(work: Work) -> tuple[int, bool]:
    """Scan for the chain head: no ``prev`` but a ``next``."""
    for i, p in enumerate(work.passages):
        if not p.is_tombstone and not p.prev.exists and p.next.exists:
            return i, True
    return 0, False


def find_last_index(work: Work) -> tuple[int, bool]:
    """Scan (from the back) for the chain tail: a ``prev`` but no ``next``."""
    for i in range(len(work.passages) - 1, -1, -1):
        p = work.passages[i]
        if not p.is_tombstone and p.prev.exists and not p.next.exists:
            return i, True
    return 0, False


def _sole_live_slot(work: Work) -> int | None:
    live = [i for i, p in enumerate(work.passages) if not p.is_tombstone]
    return live[0] if len(live) == 1 else None


def _resolve_head(work: Work) -> int | None:
    if work.first.exists:
        slot, found = get_index_by_id(work.first.passage_id, work)
        if found and not work.passages[slot].prev.exists:
            return slot
    slot, found = find_first_index(work)
    if found:
        return slot
    return _sole_live_slot(work)


def _resolve_tail(work: Work) -> int | None:
    if work.last.exists:
        slot, found = get_index_by_id(work.last.passage_id, work)
        if found and not work.passages[slot].next.exists:
            return slot
    slot, found = find_last_index(work)
    if found:
        return slot
    return _sole_live_slot(work)


# ---------------------------------------------------------------------------
# Mutation
# ---------------------------------------------------------------------------

def insert_passage(passage: Passage, work: Work) -> Result[Work, CiteError]:
    """Insert ``passage`` next to the neighbors named by its own locators.

    - only ``prev`` resolves: appended as the new tail
    - only ``next`` resolves: appended as the new head
    - both resolve: spliced in between

    The new passage is always appended to the arena, so the result is
    unordered until the next sort.
    """
    if passage.is_tombstone:
        return fail("argument_error", "cannot insert a passage without an id", work.id)
    if not work.live_passages():
        loc = passage.locator(0)
        sole = replace(passage, index=0, prev=NO_PASSAGE, next=NO_PASSAGE)
        return Ok(Work(id=work.id, passages=(sole,), ordered=True, first=loc, last=loc))

    if get_index_by_id(passage.id, work)[1]:
        return fail("argument_error", f"passage already present in work {work.id}", passage.id)

    head = _resolve_head(work)
    tail = _resolve_tail(work)
    if head is None or tail is None:
        return fail("boundary_not_found", f"chain boundaries not found in work {work.id}", passage.id)

    passages = list(work.passages)
    first = passages[head].locator(head)
    last = passages[tail].locator(tail)

    prev_slot, prev_found = get_index_by_id(passage.prev.passage_id, work)
    prev_found = prev_found and passage.prev.exists
    next_slot, next_found = get_index_by_id(passage.next.passage_id, work)
    next_found = next_found and passage.next.exists

    new_slot = len(passages)
    loc = passage.locator(new_slot)

    if prev_found and not next_found:
        if passages[prev_slot].next.exists:
            log.warning(
                "Inserting %s after %s detaches its successor %s",
                passage.id, passages[prev_slot].id, passages[prev_slot].next.passage_id,
            )
        new = replace(passage, index=new_slot, prev=passages[prev_slot].locator(prev_slot), next=NO_PASSAGE)
        passages[prev_slot] = replace(passages[prev_slot], next=loc)
        last = loc
    elif next_found and not prev_found:
        if passages[next_slot].prev.exists:
            log.warning(
                "Inserting %s before %s detaches its predecessor %s",
                passage.id, passages[next_slot].id, passages[next_slot].prev.passage_id,
            )
        new = replace(passage, index=new_slot, prev=NO_PASSAGE, next=passages[next_slot].locator(next_slot))
        passages[next_slot] = replace(passages[next_slot], prev=loc)
        first = loc
    elif prev_found and next_found:
        new = replace(
            passage,
            index=new_slot,
            prev=passages[prev_slot].locator(prev_slot),
            next=passages[next_slot].locator(next_slot),
        )
        passages[prev_slot] = replace(passages[prev_slot], next=loc)
        passages[next_slot] = replace(passages[next_slot], prev=loc)
    else:
        return fail(
            "passage_not_found",
            f"neither neighbor of the new passage exists in work {work.id}",
            passage.id,
        )

    passages.append(new)
    return Ok(replace(work, passages=tuple(passages), ordered=False, first=first, last=last))


def delete_passage(passage_id: str, work: Work) -> Result[Work, CiteError]:
    """Unlink ``passage_id`` from the chain and tombstone its slot.

    Deleting the sole live passage returns an empty, ordered Work with the
    same id. An unlinked passage beside a live chain only loses its slot.
    """
    if work.is_empty:
        return fail("empty_work", "work has no passages", work.id)
    slot, found = get_index_by_id(passage_id, work)
    if not found:
        return fail("passage_not_found", f"passage not found in work {work.id}", passage_id)

    if len(work.live_passages()) == 1:
        return Ok(Work(id=work.id, ordered=True))

    target = work.passages[slot]
    passages = list(work.passages)
    first, last = work.first, work.last

    if not target.prev.exists and not target.next.exists:
        log.warning("Deleting unlinked passage %s from %s", passage_id, work.id)
        if first.passage_id == passage_id:
            first = NO_PASSAGE
        if last.passage_id == passage_id:
            last = NO_PASSAGE
    elif not target.prev.exists:
        next_slot, ok = get_index_by_id(target.next.passage_id, work)
        if not ok:
            return fail("boundary_not_found", "successor of deleted head not found", passage_id)
        passages[next_slot] = replace(passages[next_slot], prev=NO_PASSAGE)
        first = passages[next_slot].locator(next_slot)
    elif not target.next.exists:
        prev_slot, ok = get_index_by_id(target.prev.passage_id, work)
        if not ok:
            return fail("boundary_not_found", "predecessor of deleted tail not found", passage_id)
        passages[prev_slot] = replace(passages[prev_slot], next=NO_PASSAGE)
        last = passages[prev_slot].locator(prev_slot)
    else:
        prev_slot, prev_ok = get_index_by_id(target.prev.passage_id, work)
        next_slot, next_ok = get_index_by_id(target.next.passage_id, work)
        if not (prev_ok and next_ok):
            return fail("boundary_not_found", "neighbors of deleted passage not found", passage_id)
        passages[prev_slot] = replace(passages[prev_slot], next=passages[next_slot].locator(next_slot))
        passages[next_slot] = replace(passages[next_slot], prev=passages[prev_slot].locator(prev_slot))

    passages[slot] = TOMBSTONE
    return Ok(replace(work, passages=tuple(passages), ordered=False, first=first, last=last))


def delete_first_passage(work: Work) -> Result[Work, CiteError]:
    """Delete the chain head (resolved from ``work.first``, else by scan)."""
    if not work.live_passages():
        return fail("empty_work", "work has no passages", work.id)
    head = _resolve_head(work)
    if head is None:
        return fail("boundary_not_found", f"first passage not found in work {work.id}", work.id)
    return delete_passage(work.passages[head].id, work)


def delete_last_passage(work: Work) -> Result[Work, CiteError]:
    """Delete the chain tail (resolved from ``work.last``, else by scan)."""
    if not work.live_passages():
        return fail("empty_work", "work has no passages", work.id)
    tail = _resolve_tail(work)
    if tail is None:
        return fail("boundary_not_found", f"last passage not found in work {work.id}", work.id)
    return delete_passage(work.passages[tail].id, work)


# ---------------------------------------------------------------------------
# Canonicalization
# ---------------------------------------------------------------------------

def sort_passages(work: Work) -> Result[Work, CiteError]:
    """Rebuild a dense, index-ordered Work by walking the chain head to tail.

    Tombstones and passages not reachable from the head are dropped.
    The walk fails on a revisited id (cyclic_work), on a passage without
    successor before the tail (unexpected_end_of_work), and on a
    successor id missing from the arena (passage_not_found).
    """
    log.debug("Sorting passages in %s (marked ordered=%s)", work.id, work.ordered)
    live = work.live_passages()
    if not live:
        return fail("empty_work", "work has no passages", work.id)

    head = _resolve_head(work)
    if head is None:
        return fail("boundary_not_found", f"first passage not found in work {work.id}", work.id)
    tail = _resolve_tail(work)
    if tail is None:
        return fail("boundary_not_found", f"last passage not found in work {work.id}", work.id)
    tail_id = work.passages[tail].id
    log.debug("Head slot %d (%s), tail slot %d (%s)", head, work.passages[head].id, tail, tail_id)

    chain: list[Passage] = []
    seen: set[str] = set()
    slot = head
    while True:
        p = work.passages[slot]
        if p.id in seen:
            return fail("cyclic_work", f"chain revisits {p.id} before reaching {tail_id}", work.id)
        seen.add(p.id)
        chain.append(p)
        if p.id == tail_id:
            break
        if not p.next.exists:
            return fail(
                "unexpected_end_of_work",
                f"chain ends at {p.id} before reaching {tail_id}",
                work.id,
            )
        slot, found = get_index_by_id(p.next.passage_id, work)
        if not found:
            return fail(
                "passage_not_found",
                f"successor of {p.id} missing from work {work.id}",
                p.next.passage_id,
            )

    dropped = len(live) - len(chain)
    if dropped:
        log.warning("Dropped %d passage(s) unreachable from the head of %s", dropped, work.id)
    result = _canonical_work(work.id, chain)
    log.debug("Sorted %s: %d passages, first=%s last=%s",
              work.id, len(chain), result.first.passage_id, result.last.passage_id)
    return Ok(result)
