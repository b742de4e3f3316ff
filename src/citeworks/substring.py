"""Substring selectors for ``@pattern[n]`` URN decorations.

Pure text operations over literal occurrences; no regex semantics apply to
the pattern itself.

    from_pattern("is[2]", "This is is the first node.")    -> "is is the first node."
    through_pattern("is[2]", "This is is the first node.") -> "This is"
"""

from __future__ import annotations

import re

from citeworks.types import CiteError, Err, Ok, Result, fail

_OCCURRENCE_RE = re.compile(r"[0-9]+")


def parse_selector(selector: str) -> Result[tuple[str, int | None], CiteError]:
    """Split ``pattern[n]`` into (pattern, n). ``n`` is None when absent."""
    if "[" not in selector:
        if not selector:
            return fail("argument_error", "empty substring pattern", selector)
        return Ok((selector, None))
    parts = selector.split("[")
    if len(parts) != 2:
        return fail("argument_error", "more than one occurrence bracket", selector)
    token, raw = parts[0], parts[1].replace("]", "", 1)
    if not token:
        return fail("argument_error", "empty substring pattern", selector)
    if not _OCCURRENCE_RE.fullmatch(raw):
        return fail("argument_error", f"occurrence {raw!r} is not a number", selector)
    n = int(raw)
    if n < 1:
        return fail("argument_error", "occurrence must be >= 1", selector)
    return Ok((token, n))


def _check_occurrences(token: str, n: int, text: str, selector: str) -> Err[CiteError] | None:
    found = text.count(token)
    if found < n:
        return fail(
            "argument_error",
            f"{token!r} occurs {found} time(s), occurrence {n} requested",
            selector,
        )
    return None


def from_pattern(selector: str, text: str) -> Result[str, CiteError]:
    """Text from the first (or n-th) occurrence of the pattern to the end.

    The pattern itself is included.
    """
    parsed = parse_selector(selector)
    if isinstance(parsed, Err):
        return parsed
    token, n = parsed.value
    if n is None:
        pos = text.find(token)
        if pos < 0:
            return fail("pattern_not_found", f"{token!r} not found in {text!r}", selector)
        return Ok(text[pos:])
    err = _check_occurrences(token, n, text, selector)
    if err is not None:
        return err
    pieces = text.split(token, n)
    return Ok(token + pieces[n])


def through_pattern(selector: str, text: str) -> Result[str, CiteError]:
    """Text from the start through the first (or n-th) occurrence of the pattern.

    The pattern itself is included.
    """
    parsed = parse_selector(selector)
    if isinstance(parsed, Err):
        return parsed
    token, n = parsed.value
    if n is None:
        pos = text.find(token)
        if pos < 0:
            return fail("pattern_not_found", f"{token!r} not found in {text!r}", selector)
        return Ok(text[:pos + len(token)])
    err = _check_occurrences(token, n, text, selector)
    if err is not None:
        return err
    pieces = text.split(token, n)
    return Ok(token.join(pieces[:n]) + token)
