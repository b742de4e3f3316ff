"""Extract passage text addressed by a CTS URN.

Supported addresses::

    urn:cts:ns:tg.wk:1                  whole passage
    urn:cts:ns:tg.wk:1@is[2]            selector echo (validated against the text)
    urn:cts:ns:tg.wk:1-3                passages 1 through 3
    urn:cts:ns:tg.wk:1@is[2]-3@third    trimmed at both ends
    urn:cts:ns:tg.wk:2@is[2]-2@second   span inside one passage

Ordered Works are read by slice position; unordered Works are walked via
``next`` locators with cycle detection.
"""

from __future__ import annotations

import logging

from citeworks.passage_store import get_index_by_id, get_passage_by_id
from citeworks.substring import from_pattern, through_pattern
from citeworks.types import CiteError, Err, Ok, Passage, Result, TextAndId, Work, fail
from citeworks.urn import (
    PassageRef,
    RefPart,
    is_cts_urn,
    is_range,
    parse_passage_ref,
    wants_substring,
)

log = logging.getLogger(__name__)


def extract_text_by_id(urn: str, work: Work) -> Result[list[TextAndId], CiteError]:
    """Resolve ``urn`` against ``work`` into ordered ``TextAndId`` rows."""
    if not is_cts_urn(urn):
        return fail("invalid_urn", "not a valid CTS URN", urn)

    if not wants_substring(urn) and not is_range(urn):
        found = get_passage_by_id(urn, work)
        if isinstance(found, Err):
            return found
        return Ok([TextAndId(id=urn, text=found.value.text.txt)])

    parsed = parse_passage_ref(urn)
    if isinstance(parsed, Err):
        return parsed
    ref = parsed.value
    if ref.end is None:
        return _extract_single_substring(urn, ref, work)
    return _extract_range(urn, ref, ref.end, work)


def _extract_single_substring(urn: str, ref: PassageRef, work: Work) -> Result[list[TextAndId], CiteError]:
    part = ref.start
    found = get_passage_by_id(ref.passage_id(part), work)
    if isinstance(found, Err):
        return found
    checked = from_pattern(part.selector, found.value.text.txt)
    if isinstance(checked, Err):
        return checked
    # The echoed text is the bare pattern; the occurrence only selects which one.
    return Ok([TextAndId(id=urn, text=part.pattern)])


def _extract_range(urn: str, ref: PassageRef, end: RefPart, work: Work) -> Result[list[TextAndId], CiteError]:
    start = ref.start
    start_id = ref.passage_id(start)
    end_id = ref.passage_id(end)

    if start.plain_id == end.plain_id:
        return _extract_same_passage(urn, ref, end, work)

    if work.ordered:
        collected = _collect_ordered(start_id, end_id, work)
    else:
        collected = _collect_walk(start_id, end_id, work)
    if isinstance(collected, Err):
        return collected
    chain = collected.value

    rows: list[TextAndId] = []
    last = len(chain) - 1
    for i, p in enumerate(chain):
        if i == 0:
            row_id = ref.decorated_id(start)
        elif i == last:
            row_id = ref.decorated_id(end)
        else:
            row_id = p.id
        rows.append(TextAndId(id=row_id, text=p.text.txt))

    if start.has_substring:
        trimmed = from_pattern(start.selector, rows[0].text)
        if isinstance(trimmed, Err):
            return trimmed
        rows[0] = TextAndId(id=rows[0].id, text=trimmed.value)
    if end.has_substring:
        trimmed = through_pattern(end.selector, rows[-1].text)
        if isinstance(trimmed, Err):
            return trimmed
        rows[-1] = TextAndId(id=rows[-1].id, text=trimmed.value)
    return Ok(rows)


def _extract_same_passage(urn: str, ref: PassageRef, end: RefPart, work: Work) -> Result[list[TextAndId], CiteError]:
    start = ref.start
    if not (start.has_substring and end.has_substring):
        return fail(
            "ambiguous_same_line_substring",
            "a range inside one passage must decorate both ends: 1@start-1@end",
            urn,
        )
    found = get_passage_by_id(ref.passage_id(start), work)
    if isinstance(found, Err):
        return found
    head = from_pattern(start.selector, found.value.text.txt)
    if isinstance(head, Err):
        return head
    span = through_pattern(end.selector, head.value)
    if isinstance(span, Err):
        return span
    return Ok([TextAndId(id=urn, text=span.value)])


def _collect_ordered(start_id: str, end_id: str, work: Work) -> Result[list[Passage], CiteError]:
    start_slot, start_found = get_index_by_id(start_id, work)
    if not start_found:
        return fail("passage_not_found", f"start passage not found in work {work.id}", start_id)
    end_slot, end_found = get_index_by_id(end_id, work)
    if not end_found:
        return fail("passage_not_found", f"end passage not found in work {work.id}", end_id)
    if end_slot < start_slot:
        return fail(
            "unexpected_end_of_work",
            f"{end_id} precedes {start_id} in work {work.id}",
            end_id,
        )
    return Ok(list(work.passages[start_slot:end_slot + 1]))


def _collect_walk(start_id: str, end_id: str, work: Work) -> Result[list[Passage], CiteError]:
    """Follow ``next`` locators from ``start_id`` until ``end_id``."""
    if not get_index_by_id(start_id, work)[1]:
        return fail("passage_not_found", f"start passage not found in work {work.id}", start_id)
    if not get_index_by_id(end_id, work)[1]:
        return fail("passage_not_found", f"end passage not found in work {work.id}", end_id)

    log.debug("Walking unordered work %s from %s to %s", work.id, start_id, end_id)
    chain: list[Passage] = []
    visited: set[str] = set()
    current = start_id
    while True:
        found = get_passage_by_id(current, work)
        if isinstance(found, Err):
            return found
        p = found.value
        visited.add(p.id)
        chain.append(p)
        if p.id == end_id:
            return Ok(chain)
        if not p.next.exists:
            return fail(
                "unexpected_end_of_work",
                f"chain ends at {p.id} before reaching {end_id}",
                p.id,
            )
        current = p.next.passage_id
        if current in visited:
            return fail(
                "cyclic_work",
                f"{current} revisited before reaching {end_id}",
                current,
            )

