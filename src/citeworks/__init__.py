"""Citable passages: CTS/CITE2 URN parsing, passage chains and text extraction."""

from citeworks.extractor import extract_text_by_id
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
from citeworks.substring import from_pattern, parse_selector, through_pattern
from citeworks.types import (
    Cite2Urn,
    CiteError,
    CtsUrn,
    EncodedText,
    Err,
    Ok,
    PassLoc,
    Passage,
    Result,
    CiteVerb,
    TextAndId,
    Textgroup,
    Triple,
    Work,
)
from citeworks.urn import (
    PassageRef,
    RefPart,
    find_range_endpoints,
    is_cite_urn,
    is_cts_urn,
    is_exemplar_id,
    is_range,
    is_textgroup_id,
    is_version_id,
    is_work_id,
    join_cts,
    parse_passage_ref,
    split_cite,
    split_cts,
    urn_depth,
    wants_substring,
)

__all__ = [
    "Cite2Urn",
    "CiteError",
    "CiteVerb",
    "CtsUrn",
    "EncodedText",
    "Err",
    "Ok",
    "PassLoc",
    "Passage",
    "PassageRef",
    "RefPart",
    "Result",
    "TextAndId",
    "Textgroup",
    "Triple",
    "Work",
    "chain_passages",
    "delete_first_passage",
    "delete_last_passage",
    "delete_passage",
    "extract_text_by_id",
    "find_first_index",
    "find_last_index",
    "find_range_endpoints",
    "from_pattern",
    "get_first",
    "get_index_by_id",
    "get_last",
    "get_next",
    "get_passage_by_id",
    "get_passage_by_index",
    "get_prev",
    "insert_passage",
    "is_cite_urn",
    "is_cts_urn",
    "is_exemplar_id",
    "is_range",
    "is_textgroup_id",
    "is_version_id",
    "is_work_id",
    "join_cts",
    "parse_passage_ref",
    "parse_selector",
    "sort_passages",
    "split_cite",
    "split_cts",
    "through_pattern",
    "urn_depth",
    "wants_substring",
]
