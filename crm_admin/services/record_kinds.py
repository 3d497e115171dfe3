"""
Per-kind descriptors for the two collections the console manages.

A RecordKind says which attributes the free-text search looks at, which
categorical filters exist (with their closed option lists), which sort keys
are allowed and where the collection lives on the record service. The query
engine, criteria state and controller are generic and only ever read this.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Type

from crm_admin.models.criteria import SortKey, Criteria
from crm_admin.models.record_models import (
    Record,
    ConsultationRecord,
    BookingRecord,
    DURATION_OPTIONS,
    PACKAGE_OPTIONS,
)


@dataclass(frozen=True)
class SearchField:
    attribute: str
    case_sensitive: bool = False


@dataclass(frozen=True)
class CategoricalFilter:
    name: str
    attribute: str
    options: Tuple[str, ...]
    label: str = ""


@dataclass(frozen=True)
class RecordKind:
    key: str
    endpoint: str
    record_model: Type[Record]
    singular: str
    plural: str
    title: str
    search_fields: Tuple[SearchField, ...]
    filters: Tuple[CategoricalFilter, ...]
    sort_keys: Tuple[SortKey, ...]
    sort_attributes: Dict[SortKey, str] = field(default_factory=dict)
    delete_prompt: str = "Are you sure you want to delete this record?"

    def filter_named(self, name: str) -> Optional[CategoricalFilter]:
        for f in self.filters:
            if f.name == name:
                return f
        return None

    def supports_sort(self, key: SortKey) -> bool:
        return key in self.sort_keys

    def default_criteria(self) -> Criteria:
        return Criteria.default_for(f.name for f in self.filters)

    def parse_record(self, payload: dict) -> Record:
        return self.record_model.model_validate(payload)

    def describe(self) -> dict:
        return {
            "key": self.key,
            "title": self.title,
            "filters": [
                {"name": f.name, "label": f.label, "options": list(f.options)}
                for f in self.filters
            ],
            "sort_keys": [k.value for k in self.sort_keys],
        }


_COMMON_SEARCH = (
    SearchField("name"),
    SearchField("contact", case_sensitive=True),
    SearchField("place"),
    SearchField("duration"),
)

_DURATION_FILTER = CategoricalFilter("duration", "duration", DURATION_OPTIONS, "All Durations")

CONSULTATIONS = RecordKind(
    key="consultations",
    endpoint="consultations",
    record_model=ConsultationRecord,
    singular="record",
    plural="records",
    title="Consultation Manager",
    search_fields=_COMMON_SEARCH,
    filters=(_DURATION_FILTER,),
    sort_keys=(SortKey.NEWEST, SortKey.OLDEST, SortKey.NAME),
    sort_attributes={SortKey.NAME: "name"},
    delete_prompt="Are you sure you want to delete this record?",
)

BOOKINGS = RecordKind(
    key="bookings",
    endpoint="bookings",
    record_model=BookingRecord,
    singular="booking",
    plural="bookings",
    title="Bookings Manager",
    search_fields=_COMMON_SEARCH + (SearchField("email"), SearchField("package_booked")),
    filters=(
        _DURATION_FILTER,
        CategoricalFilter("package", "package_booked", PACKAGE_OPTIONS, "All Packages"),
    ),
    sort_keys=(SortKey.NEWEST, SortKey.OLDEST, SortKey.NAME, SortKey.PACKAGE),
    sort_attributes={SortKey.NAME: "name", SortKey.PACKAGE: "package_booked"},
    delete_prompt="Are you sure you want to delete this booking?",
)

RECORD_KINDS: Dict[str, RecordKind] = {kind.key: kind for kind in (CONSULTATIONS, BOOKINGS)}
