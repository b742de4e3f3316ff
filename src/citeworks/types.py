"""Core types shared by the URN parser, passage store and text extractor.

All model dataclasses are frozen and use slots=True. Operations never
mutate a Work in place; they build a new one with ``dataclasses.replace``.

Type hierarchy:
  Ok[T] / Err[E]   Strict algebraic Result type
  CiteError        Typed failure carried by Err
  CtsUrn           Decomposed CTS URN (valid=False sentinel on bad input)
  Cite2Urn         Decomposed CITE2 URN
  PassLoc          Weak (id, slice index) reference to a neighbor
  EncodedText      Parallel encodings of one passage text
  Triple           Linked-data triple attached to a passage
  CiteVerb         Verb vocabulary entry for Triples
  Passage          Smallest addressable unit of text
  Work             Arena of passages plus chain boundaries
  Textgroup        Works sharing one textgroup
  TextAndId        One extracted row
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

# ---------------------------------------------------------------------------
# Result ADT
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Success case of Result[T, E].

    Usage::

        result = extract_text_by_id(urn, work)
        match result:
            case Ok(value=rows): print(rows)
            case Err(error=e): print(e.reason)
    """
    value: T


@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failure case of Result[T, E]. Keeps the typed reason for the caller."""
    error: E


type Result[T, E] = Ok[T] | Err[E]


type ErrorReason = Literal[
    "invalid_urn",
    "passage_not_found",
    "boundary_not_found",
    "empty_work",
    "cyclic_work",
    "unexpected_end_of_work",
    "argument_error",
    "pattern_not_found",
    "ambiguous_same_line_substring",
]


@dataclass(frozen=True, slots=True)
class CiteError:
    """Typed failure for URN, store and extraction operations."""
    reason: ErrorReason
    message: str
    ref: str = ""  # URN, passage id or selector that triggered the failure


def fail(reason: ErrorReason, message: str, ref: str = "") -> Err[CiteError]:
    return Err(CiteError(reason=reason, message=message, ref=ref))


# ---------------------------------------------------------------------------
# URN types
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CtsUrn:
    """CTS URN split into its five colon-delimited fields.

    Invalid input keeps only ``id`` and sets ``valid=False``.
    """
    id: str
    base: str = ""
    protocol: str = ""
    namespace: str = ""
    work: str = ""       # "textgroup.work.version.exemplar", 1 to 4 components
    passage: str = ""    # "1.2" | "1-3" | "1@is[2]-3@third"
    valid: bool = False


@dataclass(frozen=True, slots=True)
class Cite2Urn:
    """CITE2 URN split into its five colon-delimited fields."""
    id: str
    base: str = ""
    protocol: str = ""
    namespace: str = ""
    collection: str = ""
    object: str = ""
    valid: bool = False


# ---------------------------------------------------------------------------
# Passage store types
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class PassLoc:
    """Weak reference to a neighboring passage.

    ``exists=False`` is the list boundary. ``index`` is a slice position
    and is only trustworthy while the owning Work is ordered.
    """
    exists: bool = False
    passage_id: str = ""
    index: int = 0

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"PassLoc.index must be >= 0, got {self.index}")


NO_PASSAGE = PassLoc()


@dataclass(frozen=True, slots=True)
class EncodedText:
    """Same textual content in several encodings. Only ``txt`` is read by the core."""
    txt: str = ""
    brucheion: str = ""
    markdown: str = ""
    cex: str = ""
    xml: str = ""
    diplomatic: str = ""
    normalised: str = ""


@dataclass(frozen=True, slots=True)
class Triple:
    subject: str
    verb: str
    object: str


@dataclass(frozen=True, slots=True)
class CiteVerb:
    """Vocabulary entry for the ``verb`` of a Triple, with its inverse."""
    id: str
    summary: str = ""
    subject: str = ""
    object: str = ""
    inverse_id: str = ""


@dataclass(frozen=True, slots=True)
class Passage:
    """Smallest addressable node of a Work.

    A Passage with an empty ``id`` is a tombstone left behind by deletion;
    sorting compacts it away.
    """
    id: str = ""
    is_range: bool = False
    text: EncodedText = field(default_factory=EncodedText)
    index: int = 0
    prev: PassLoc = NO_PASSAGE
    next: PassLoc = NO_PASSAGE
    image_links: tuple[Triple, ...] = ()

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"Passage.index must be >= 0, got {self.index}")

    @property
    def is_tombstone(self) -> bool:
        return not self.id

    def locator(self, index: int) -> PassLoc:
        """Locator pointing at this passage stored at slice position ``index``."""
        return PassLoc(exists=True, passage_id=self.id, index=index)


TOMBSTONE = Passage()


@dataclass(frozen=True, slots=True)
class Work:
    """Passages of one edition, kept as an arena plus chain boundaries.

    Invariants:
        ordered=True  -> one chain first..last, slice position == index,
                         contiguous 0..n-1, no tombstones.
        ordered=False -> locators may be stale; ignore ``index``.
    ``ordered`` defaults to False; only chain_passages, sort_passages and the
    empty-Work constructors claim canonical order.
    ``first``/``last`` are hints; sort_passages derives the real boundaries.
    """
    id: str
    passages: tuple[Passage, ...] = ()
    ordered: bool = False
    first: PassLoc = NO_PASSAGE
    last: PassLoc = NO_PASSAGE

    def __len__(self) -> int:
        return len(self.passages)

    @property
    def is_empty(self) -> bool:
        return not self.passages

    def live_passages(self) -> list[Passage]:
        """Passages that are not tombstones, in slice order."""
        return [p for p in self.passages if not p.is_tombstone]


@dataclass(frozen=True, slots=True)
class Textgroup:
    """Works grouped under one textgroup URN."""
    id: str
    works: tuple[Work, ...] = ()

    def get_work(self, work_id: str) -> Work | None:
        for work in self.works:
            if work.id == work_id:
                return work
        return None


@dataclass(frozen=True, slots=True)
class TextAndId:
    """One extracted row: the (possibly decorated) id and its text."""
    id: str
    text: str
