from enum import Enum
from typing import Dict
from pydantic import BaseModel, ConfigDict, Field

ALL = "all"


class SortKey(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    NAME = "name"
    PACKAGE = "package"


class Criteria(BaseModel):
    """
    The user's current search / filter / sort selection.
    Immutable: every change produces a new Criteria.
    """

    model_config = ConfigDict(frozen=True)

    search_term: str = ""
    filters: Dict[str, str] = Field(default_factory=dict)
    sort: SortKey = SortKey.NEWEST

    def selected(self, filter_name: str) -> str:
        return self.filters.get(filter_name, ALL)

    def with_changes(self, **changes) -> "Criteria":
        return self.model_copy(update=changes)

    @classmethod
    def default_for(cls, filter_names) -> "Criteria":
        return cls(filters={name: ALL for name in filter_names})
