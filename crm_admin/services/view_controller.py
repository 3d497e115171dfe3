import asyncio
import inspect
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from crm_admin.core.errors import TransportError
from crm_admin.core.logger import logger
from crm_admin.models.criteria import Criteria
from crm_admin.models.record_models import Record
from crm_admin.services.collection_cache import CollectionCache
from crm_admin.services.criteria_state import CriteriaState
from crm_admin.services.query_engine import query
from crm_admin.services.record_kinds import RecordKind
from crm_admin.services.record_store import RecordStoreClient

ConfirmFn = Callable[[str], Union[bool, Awaitable[bool]]]
DiagnosticSink = Callable[[str, Exception], None]


class ViewState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"


class DeleteOutcome(str, Enum):
    DELETED = "deleted"
    CANCELLED = "cancelled"
    FAILED = "failed"


class ViewSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: str
    state: ViewState
    criteria: Criteria
    records: Tuple[Record, ...]
    total_count: int
    filters_active: bool
    summary: str

    @property
    def visible_count(self) -> int:
        return len(self.records)

    @property
    def is_loading(self) -> bool:
        return self.state == ViewState.LOADING

    def to_json(self) -> dict:
        return {
            "kind": self.kind,
            "state": self.state.value,
            "criteria": self.criteria.model_dump(mode="json"),
            "records": [record.to_json() for record in self.records],
            "total_count": self.total_count,
            "visible_count": self.visible_count,
            "filters_active": self.filters_active,
            "summary": self.summary,
        }


def refuse_confirmation(prompt: str) -> bool:
    return False


def log_diagnostic(message: str, exc: Exception):
    logger.error(f"❌ {message}: {exc}")


class ViewController:
    """
    Drives one console screen (consultations or bookings).

    Owns the collection cache and the criteria state, reruns the query engine
    whenever either changes and publishes the resulting snapshot to listeners.
    Fetch and delete failures never reach the caller: they go to the
    diagnostic sink and the last good collection stays in place.
    """

    def __init__(
        self,
        kind: RecordKind,
        store: Optional[RecordStoreClient] = None,
        confirm: Optional[ConfirmFn] = None,
        diagnostics: Optional[DiagnosticSink] = None,
    ):
        self.kind = kind
        self.store = store or RecordStoreClient(kind)
        self.cache = CollectionCache()
        self.criteria = CriteriaState(kind)
        self.state = ViewState.IDLE
        self._confirm = confirm or refuse_confirmation
        self._diagnostics = diagnostics or log_diagnostic
        self._fetch_task: Optional[asyncio.Task] = None
        self._listeners: List[Callable[[ViewSnapshot], None]] = []

        self.criteria.subscribe(lambda _criteria: self._publish())
        self._snapshot = self._compute()

    # --- Presentation side ---

    @property
    def view(self) -> ViewSnapshot:
        return self._snapshot

    def subscribe(self, listener: Callable[[ViewSnapshot], None]) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    # --- Fetching ---

    async def activate(self) -> ViewSnapshot:
        """Mount: go straight to LOADING and fetch the collection."""
        return await self.refresh()

    async def refresh(self) -> ViewSnapshot:
        """
        Refetch the collection. A refresh requested while another fetch is
        still running joins that fetch instead of issuing a second request.
        """
        if self._fetch_task is not None and not self._fetch_task.done():
            logger.debug(f"⏳ Fetch of {self.kind.plural} already in flight, joining it")
        else:
            self._set_state(ViewState.LOADING)
            self._fetch_task = asyncio.ensure_future(self._fetch())

        await asyncio.shield(self._fetch_task)
        return self._snapshot

    async def _fetch(self):
        try:
            records = await self.store.fetch_all()
            self.cache.replace(records)
        except TransportError as e:
            self._diagnostics(f"Error fetching {self.kind.plural}", e)
        finally:
            self._set_state(ViewState.READY)

    # --- Deleting ---

    async def delete(self, record_id: str, confirm: Optional[ConfirmFn] = None) -> DeleteOutcome:
        ask = confirm or self._confirm
        approved = ask(self.kind.delete_prompt)
        if inspect.isawaitable(approved):
            approved = await approved
        if not approved:
            logger.info(f"↩️ Delete of {self.kind.singular} {record_id} cancelled")
            return DeleteOutcome.CANCELLED

        try:
            await self.store.delete_by_id(record_id)
        except (TransportError, ValueError) as e:
            self._diagnostics(f"Error deleting {self.kind.singular} {record_id}", e)
            return DeleteOutcome.FAILED

        if not self.cache.remove_by_id(record_id):
            logger.warning(f"⚠️ {self.kind.singular.capitalize()} {record_id} was not in the local view")
        if self.state != ViewState.LOADING:
            self.state = ViewState.READY
        self._publish()
        return DeleteOutcome.DELETED

    # --- Criteria actions (never touch the network) ---

    def set_search_term(self, text: str):
        self.criteria.set_search_term(text)

    def set_filter(self, name: str, value: str):
        self.criteria.set_filter(name, value)

    def set_sort(self, key):
        self.criteria.set_sort(key)

    def clear_filters(self):
        self.criteria.clear()

    # --- Internals ---

    def _set_state(self, state: ViewState):
        self.state = state
        self._publish()

    def _compute(self) -> ViewSnapshot:
        criteria = self.criteria.value
        records = query(self.cache.records, criteria, self.kind)
        return ViewSnapshot(
            kind=self.kind.key,
            state=self.state,
            criteria=criteria,
            records=records,
            total_count=len(self.cache),
            filters_active=not self.criteria.is_default,
            summary=f"Showing {len(records)} of {len(self.cache)} {self.kind.plural}",
        )

    def _publish(self):
        self._snapshot = self._compute()
        for listener in list(self._listeners):
            listener(self._snapshot)
