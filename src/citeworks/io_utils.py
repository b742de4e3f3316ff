"""JSON interchange for Works, passages and extraction rows.

orjson-backed load/save plus plain-dict converters. The dict layout mirrors
the dataclass fields one to one; missing optional keys fall back to the
dataclass defaults.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, cast

import orjson

from citeworks.types import EncodedText, PassLoc, Passage, TextAndId, Textgroup, Triple, Work

_TEXT_FIELDS: tuple[str, ...] = (
    "txt", "brucheion", "markdown", "cex", "xml", "diplomatic", "normalised",
)


def load_json(path: Path) -> Any:
    """Load JSON from a file."""
    return orjson.loads(path.read_bytes())


def save_json(obj: Any, path: Path, *, pretty: bool = True) -> None:
    """Save an object as JSON with sorted keys."""
    path.parent.mkdir(parents=True, exist_ok=True)
    opts = orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS if pretty else orjson.OPT_SORT_KEYS
    path.write_bytes(orjson.dumps(obj, option=opts))


def dumps(obj: Any, *, pretty: bool = True) -> str:
    opts = orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS if pretty else orjson.OPT_SORT_KEYS
    return orjson.dumps(obj, option=opts).decode()


# ── dict converters ──────────────────────────────────────────────────


def passloc_to_dict(loc: PassLoc) -> dict[str, Any]:
    return {"exists": loc.exists, "passage_id": loc.passage_id, "index": loc.index}


def passloc_from_dict(data: dict[str, Any] | None) -> PassLoc:
    if not data:
        return PassLoc()
    return PassLoc(
        exists=bool(data.get("exists", False)),
        passage_id=str(data.get("passage_id", "")),
        index=int(data.get("index", 0)),
    )


def passage_to_dict(passage: Passage) -> dict[str, Any]:
    return {
        "id": passage.id,
        "is_range": passage.is_range,
        "text": {name: getattr(passage.text, name) for name in _TEXT_FIELDS},
        "index": passage.index,
        "prev": passloc_to_dict(passage.prev),
        "next": passloc_to_dict(passage.next),
        "image_links": [
            {"subject": t.subject, "verb": t.verb, "object": t.object}
            for t in passage.image_links
        ],
    }


def passage_from_dict(data: dict[str, Any]) -> Passage:
    raw_text = data.get("text", {})
    # A bare string is shorthand for the plain-text encoding.
    if isinstance(raw_text, str):
        text = EncodedText(txt=raw_text)
    else:
        text_dict = cast(dict[str, Any], raw_text or {})
        text = EncodedText(**{name: str(text_dict.get(name, "")) for name in _TEXT_FIELDS})
    links = cast(list[dict[str, Any]], data.get("image_links", []) or [])
    return Passage(
        id=str(data.get("id", "")),
        is_range=bool(data.get("is_range", False)),
        text=text,
        index=int(data.get("index", 0)),
        prev=passloc_from_dict(data.get("prev")),
        next=passloc_from_dict(data.get("next")),
        image_links=tuple(
            Triple(subject=str(t["subject"]), verb=str(t["verb"]), object=str(t["object"]))
            for t in links
        ),
    )


def work_to_dict(work: Work) -> dict[str, Any]:
    return {
        "id": work.id,
        "ordered": work.ordered,
        "first": passloc_to_dict(work.first),
        "last": passloc_to_dict(work.last),
        "passages": [passage_to_dict(p) for p in work.passages],
    }


def work_from_dict(data: Any) -> Work:
    """Build a Work from its dict form. Raises ValueError on a non-object payload."""
    if not isinstance(data, dict):
        raise ValueError(f"Work payload must be a JSON object, got {type(data).__name__}")
    payload = cast(dict[str, Any], data)
    if "id" not in payload:
        raise ValueError("Work payload is missing 'id'")
    passages = cast(list[dict[str, Any]], payload.get("passages", []) or [])
    return Work(
        id=str(payload["id"]),
        passages=tuple(passage_from_dict(p) for p in passages),
        ordered=bool(payload.get("ordered", False)),
        first=passloc_from_dict(payload.get("first")),
        last=passloc_from_dict(payload.get("last")),
    )


def textgroup_to_dict(group: Textgroup) -> dict[str, Any]:
    return {"id": group.id, "works": [work_to_dict(w) for w in group.works]}


def textgroup_from_dict(data: Any) -> Textgroup:
    if not isinstance(data, dict) or "id" not in data:
        raise ValueError("Textgroup payload must be a JSON object with an 'id'")
    payload = cast(dict[str, Any], data)
    works = cast(list[Any], payload.get("works", []) or [])
    return Textgroup(id=str(payload["id"]), works=tuple(work_from_dict(w) for w in works))


def rows_to_dicts(rows: list[TextAndId]) -> list[dict[str, str]]:
    return [{"id": r.id, "text": r.text} for r in rows]


def load_work(path: Path) -> Work:
    return work_from_dict(load_json(path))


def save_work(work: Work, path: Path, *, pretty: bool = True) -> None:
    save_json(work_to_dict(work), path, pretty=pretty)
