from typing import Callable, List

from crm_admin.models.criteria import ALL, Criteria, SortKey
from crm_admin.services.record_kinds import RecordKind
from crm_admin.core.logger import logger

CriteriaListener = Callable[[Criteria], None]


class CriteriaState:
    """
    Holds the search / filter / sort selection for one screen.
    Each setter replaces exactly one field; clear() resets everything at once.
    Listeners are notified synchronously, only when the value actually changed.
    """

    def __init__(self, kind: RecordKind):
        self.kind = kind
        self._value = kind.default_criteria()
        self._listeners: List[CriteriaListener] = []

    @property
    def value(self) -> Criteria:
        return self._value

    @property
    def is_default(self) -> bool:
        return self._value == self.kind.default_criteria()

    def subscribe(self, listener: CriteriaListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def set_search_term(self, text: str):
        self._replace(self._value.with_changes(search_term=text or ""))

    def set_filter(self, name: str, value: str):
        self.validate_filter(name, value)
        filters = dict(self._value.filters)
        filters[name] = value
        self._replace(self._value.with_changes(filters=filters))

    def set_sort(self, key):
        self._replace(self._value.with_changes(sort=self.validate_sort(key)))

    def validate_filter(self, name: str, value: str):
        f = self.kind.filter_named(name)
        if f is None:
            raise ValueError(f"Unknown filter '{name}' for {self.kind.key}")
        if value != ALL and value not in f.options:
            raise ValueError(f"'{value}' is not a valid {name} option")

    def validate_sort(self, key) -> SortKey:
        try:
            sort = SortKey(key)
        except ValueError:
            raise ValueError(f"Unknown sort key '{key}'")
        if not self.kind.supports_sort(sort):
            raise ValueError(f"Sort '{sort.value}' is not available for {self.kind.key}")
        return sort

    def clear(self):
        self._replace(self.kind.default_criteria())

    def _replace(self, new_value: Criteria):
        if new_value == self._value:
            return
        self._value = new_value
        logger.debug(f"🔎 Criteria changed ({self.kind.key}): {new_value.model_dump(mode='json')}")
        for listener in list(self._listeners):
            listener(new_value)
