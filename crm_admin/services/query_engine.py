"""
Record query engine.

query() turns a raw collection plus the current Criteria into the visible,
ordered subset. It is a pure function: inputs are never mutated and nothing
outside the arguments influences the result. Missing or malformed attributes
never raise; they simply fail to match and sort after present values.
"""
import unicodedata
from datetime import datetime
from typing import Callable, Iterable, Optional, Tuple

from crm_admin.models.criteria import ALL, Criteria, SortKey
from crm_admin.models.record_models import Record
from crm_admin.services.record_kinds import RecordKind


def _attr(record: Record, attribute: str) -> Optional[str]:
    value = getattr(record, attribute, None)
    return value if isinstance(value, str) else None


def matches_search(record: Record, term: str, kind: RecordKind) -> bool:
    if not term:
        return True

    folded = term.casefold()
    for field in kind.search_fields:
        value = _attr(record, field.attribute)
        if value is None:
            continue
        if field.case_sensitive:
            if term in value:
                return True
        elif folded in value.casefold():
            return True
    return False


def matches_filters(record: Record, criteria: Criteria, kind: RecordKind) -> bool:
    for f in kind.filters:
        selected = criteria.selected(f.name)
        if selected == ALL:
            continue
        if _attr(record, f.attribute) != selected:
            return False
    return True


def collation_key(text: str) -> Tuple[str, str, str]:
    """
    Approximates a locale-aware comparison: accents and case are ignored at
    the first level, then case-insensitive with accents, then the raw text.
    """
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (base.casefold(), text.casefold(), text)


def _instant_key(record: Record, descending: bool):
    instant: Optional[datetime] = record.created_instant
    if instant is None:
        return (1, 0.0)
    ts = instant.timestamp()
    return (0, -ts if descending else ts)


def _text_key(attribute: str) -> Callable[[Record], tuple]:
    def key(record: Record):
        value = _attr(record, attribute)
        if value is None:
            return (1, ("", "", ""))
        return (0, collation_key(value))
    return key


def sort_key_for(criteria: Criteria, kind: RecordKind) -> Callable[[Record], tuple]:
    sort = SortKey(criteria.sort)
    if not kind.supports_sort(sort):
        raise ValueError(f"Sort '{sort.value}' is not available for {kind.key}")

    if sort == SortKey.NEWEST:
        return lambda r: _instant_key(r, descending=True)
    if sort == SortKey.OLDEST:
        return lambda r: _instant_key(r, descending=False)
    return _text_key(kind.sort_attributes[sort])


def query(collection: Iterable[Record], criteria: Criteria, kind: RecordKind) -> Tuple[Record, ...]:
    key = sort_key_for(criteria, kind)
    visible = [
        record for record in collection
        if matches_search(record, criteria.search_term, kind)
        and matches_filters(record, criteria, kind)
    ]
    # list.sort is stable, ties keep the store's order
    visible.sort(key=key)
    return tuple(visible)
