r"""CTS and CITE2 URN parsing.

Validation is a plain field check: a URN is five colon-delimited fields
with a fixed base and protocol tag. The passage component of a CTS URN is
decomposed with a Lark grammar into one or two references, each optionally
decorated with a substring selector::

    urn:cts:greekLit:tlg0012.tlg001.perseus-grc2:1.1@μῆνιν[1]-1.7@Ἀχιλλεύς
    \_/ \_/ \______/ \__________________________/ \_______________________/
    base proto namespace        work                     passage
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from typing import Any, Literal

# Dynamic Lark import.
_lark_mod = importlib.import_module("lark")
_lark_exc = importlib.import_module("lark.exceptions")

_LarkClass: Any = _lark_mod.Lark
_TransformerBase: Any = _lark_mod.Transformer
_v_args_decorator: Any = _lark_mod.v_args
_UnexpectedInput: type[Exception] = _lark_exc.UnexpectedInput

from citeworks.types import Cite2Urn, CiteError, CtsUrn, Ok, Result, fail

type UrnDepth = Literal["textgroup", "work", "version", "exemplar"]

_DEPTHS: dict[int, UrnDepth] = {
    1: "textgroup",
    2: "work",
    3: "version",
    4: "exemplar",
}


# ---------------------------------------------------------------------------
# Field-level validation and splitting
# ---------------------------------------------------------------------------

def _fields(urn: str) -> list[str]:
    return urn.split(":")


def is_cts_urn(urn: str) -> bool:
    """True iff ``urn`` has five colon fields starting with ``urn:cts``."""
    parts = _fields(urn)
    return len(parts) == 5 and parts[0] == "urn" and parts[1] == "cts"


def is_cite_urn(urn: str) -> bool:
    """True iff ``urn`` has five colon fields starting with ``urn:cite2``."""
    parts = _fields(urn)
    return len(parts) == 5 and parts[0] == "urn" and parts[1] == "cite2"


def split_cts(urn: str) -> CtsUrn:
    """Split a CTS URN into its fields. Never raises; invalid input is flagged."""
    if not is_cts_urn(urn):
        return CtsUrn(id=urn, valid=False)
    base, protocol, namespace, work, passage = _fields(urn)
    return CtsUrn(
        id=urn,
        base=base,
        protocol=protocol,
        namespace=namespace,
        work=work,
        passage=passage,
        valid=True,
    )


def split_cite(urn: str) -> Cite2Urn:
    """Split a CITE2 URN into its fields. Never raises; invalid input is flagged."""
    if not is_cite_urn(urn):
        return Cite2Urn(id=urn, valid=False)
    base, protocol, namespace, collection, obj = _fields(urn)
    return Cite2Urn(
        id=urn,
        base=base,
        protocol=protocol,
        namespace=namespace,
        collection=collection,
        object=obj,
        valid=True,
    )


def join_cts(urn: CtsUrn) -> str:
    """Reassemble the five fields of a valid CtsUrn."""
    return ":".join((urn.base, urn.protocol, urn.namespace, urn.work, urn.passage))


def work_prefix(urn: CtsUrn) -> str:
    """Everything up to and including the colon before the passage component."""
    return ":".join((urn.base, urn.protocol, urn.namespace, urn.work)) + ":"


def is_range(urn: str) -> bool:
    parts = _fields(urn)
    if len(parts) < 5:
        return False
    return "-" in parts[4]


def wants_substring(urn: str) -> bool:
    return "@" in urn


# ---------------------------------------------------------------------------
# Depth classification
# ---------------------------------------------------------------------------

def urn_depth(urn: str) -> UrnDepth | None:
    """Hierarchy level addressed by the work component, or None if not a CTS URN."""
    if not is_cts_urn(urn):
        return None
    return _DEPTHS.get(len(split_cts(urn).work.split(".")))


def is_textgroup_id(urn: str) -> bool:
    return urn_depth(urn) == "textgroup"


def is_work_id(urn: str) -> bool:
    return urn_depth(urn) == "work"


def is_version_id(urn: str) -> bool:
    return urn_depth(urn) == "version"


def is_exemplar_id(urn: str) -> bool:
    return urn_depth(urn) == "exemplar"


# ---------------------------------------------------------------------------
# Range endpoints
# ---------------------------------------------------------------------------

def find_range_endpoints(urn: str) -> Result[tuple[str, str], CiteError]:
    """Split a range URN into two full URNs sharing the same work prefix.

    ``urn:cts:ns:tg.wk:1@is[2]-3`` -> (``urn:cts:ns:tg.wk:1@is[2]``,
    ``urn:cts:ns:tg.wk:3``).
    """
    parsed = split_cts(urn)
    if not parsed.valid:
        return fail("invalid_urn", "not a valid CTS URN", urn)
    ends = parsed.passage.split("-")
    if len(ends) != 2:
        return fail(
            "invalid_urn",
            f"range must have exactly two endpoints, got {len(ends)}",
            urn,
        )
    prefix = work_prefix(parsed)
    return Ok((prefix + ends[0], prefix + ends[1]))


# ---------------------------------------------------------------------------
# Lark grammar for the passage component
# ---------------------------------------------------------------------------

# PASSAGE ::= REF | REF "-" REF
# REF     ::= PLAIN_ID | PLAIN_ID "@" PATTERN ( "[" INTEGER "]" )?
# The occurrence is lexed as a free segment so that a non-numeric value
# reaches the selector and is reported as an argument error there.
# Whitespace is significant: patterns may contain spaces.
PASSAGE_GRAMMAR = r"""
    start: ref ("-" ref)?
    ref: SEGMENT selector?
    selector: "@" SEGMENT occurrence?
    occurrence: "[" SEGMENT "]"
    SEGMENT: /[^@\-\[\]]+/
"""

_passage_parser: Any = None


def _get_passage_parser() -> Any:
    """Return the singleton Lark parser, creating it on first call."""
    global _passage_parser
    if _passage_parser is None:
        try:
            _passage_parser = _LarkClass(PASSAGE_GRAMMAR, parser="lalr")
        except Exception:
            _passage_parser = _LarkClass(PASSAGE_GRAMMAR, parser="earley", ambiguity="resolve")
    return _passage_parser


@dataclass(frozen=True, slots=True)
class RefPart:
    """One endpoint of a passage component."""
    plain_id: str                  # "1.2"
    pattern: str = ""              # "is" ("" when undecorated)
    occurrence: str | None = None  # raw bracket text, "2" in "is[2]"

    @property
    def has_substring(self) -> bool:
        return bool(self.pattern)

    @property
    def selector(self) -> str:
        """Selector text as written after ``@``: ``is`` or ``is[2]``."""
        if self.occurrence is None:
            return self.pattern
        return f"{self.pattern}[{self.occurrence}]"

    @property
    def decorated(self) -> str:
        if not self.pattern:
            return self.plain_id
        return f"{self.plain_id}@{self.selector}"


@dataclass(frozen=True, slots=True)
class PassageRef:
    """Parsed passage component of a CTS URN."""
    prefix: str                 # "urn:cts:ns:tg.wk:"
    start: RefPart
    end: RefPart | None = None

    @property
    def is_range(self) -> bool:
        return self.end is not None

    def passage_id(self, part: RefPart) -> str:
        """Full URN of the undecorated passage behind ``part``."""
        return self.prefix + part.plain_id

    def decorated_id(self, part: RefPart) -> str:
        """Full URN of ``part`` including its substring selector."""
        return self.prefix + part.decorated


@_v_args_decorator(inline=True)
class PassageTransformer(_TransformerBase):
    """Transform the Lark parse tree into (start, end) RefParts."""

    def start(self, first: RefPart, second: RefPart | None = None) -> tuple[RefPart, RefPart | None]:
        return first, second

    def ref(self, plain_id: Any, selector: tuple[str, str | None] | None = None) -> RefPart:
        if selector is None:
            return RefPart(plain_id=str(plain_id))
        pattern, occurrence = selector
        return RefPart(plain_id=str(plain_id), pattern=pattern, occurrence=occurrence)

    def selector(self, pattern: Any, occurrence: str | None = None) -> tuple[str, str | None]:
        return str(pattern), occurrence

    def occurrence(self, token: Any) -> str:
        return str(token)


_passage_transformer = PassageTransformer()


def parse_passage_ref(urn: str) -> Result[PassageRef, CiteError]:
    """Parse the passage component of a CTS URN into its references.

    Returns Err("invalid_urn") when the URN is not a CTS URN or the passage
    component does not match the grammar (empty, three endpoints, stray
    ``@`` or brackets).
    """
    parsed = split_cts(urn)
    if not parsed.valid:
        return fail("invalid_urn", "not a valid CTS URN", urn)
    try:
        tree: Any = _get_passage_parser().parse(parsed.passage)
    except _UnexpectedInput as exc:
        return fail(
            "invalid_urn",
            f"malformed passage component {parsed.passage!r}: {type(exc).__name__}",
            urn,
        )
    first, second = _passage_transformer.transform(tree)
    return Ok(PassageRef(prefix=work_prefix(parsed), start=first, end=second))
