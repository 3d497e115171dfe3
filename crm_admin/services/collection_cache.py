from typing import Iterable, Iterator, Tuple

from crm_admin.models.record_models import Record


class CollectionCache:
    """Last known good collection. Swapped wholesale on fetch, shrunk on delete."""

    def __init__(self, records: Iterable[Record] = ()):
        self._records: Tuple[Record, ...] = tuple(records)

    @property
    def records(self) -> Tuple[Record, ...]:
        return self._records

    def replace(self, records: Iterable[Record]):
        self._records = tuple(records)

    def remove_by_id(self, record_id: str) -> bool:
        """
        Removes the first record with this id.
        Returns False (and changes nothing) when the id is not cached.
        """
        for index, record in enumerate(self._records):
            if record.id == record_id:
                self._records = self._records[:index] + self._records[index + 1:]
                return True
        return False

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def __contains__(self, record_id) -> bool:
        return any(record.id == record_id for record in self._records)
