"""HTTP client for the remote record service."""

from typing import Optional, Tuple
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from crm_admin.core.config import settings
from crm_admin.core.errors import TransportError
from crm_admin.core.logger import logger
from crm_admin.models.record_models import Record
from crm_admin.services.record_kinds import RecordKind


class RecordStoreClient:
    """
    Fetches whole collections and deletes single records for one record kind.

    Every failure at this boundary (connection problems, non-2xx answers,
    undecodable payloads) is raised as TransportError.
    """

    def __init__(self, kind: RecordKind, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.kind = kind
        self._base_url = (base_url or settings.RECORD_API_BASE_URL).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT_SECONDS

    @property
    def collection_url(self) -> str:
        return f"{self._base_url}/api/{self.kind.endpoint}"

    def record_url(self, record_id: str) -> str:
        return f"{self.collection_url}/{quote(record_id, safe='')}"

    async def fetch_all(self) -> Tuple[Record, ...]:
        """
        GET the full collection.

        Returns:
            Records in the order the service returned them.

        Raises:
            TransportError: network failure, non-success status or malformed payload
        """
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(self.collection_url)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"GET {self.collection_url} failed with status {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"GET {self.collection_url} failed: {e}") from e
        except ValueError as e:
            raise TransportError(f"GET {self.collection_url} returned invalid JSON: {e}") from e

        if not isinstance(payload, list):
            raise TransportError(f"Expected a JSON array of {self.kind.plural}, got {type(payload).__name__}")

        try:
            records = tuple(self.kind.parse_record(item) for item in payload)
        except ValidationError as e:
            raise TransportError(f"Malformed {self.kind.singular} in payload: {e}") from e

        logger.info(f"📥 Fetched {len(records)} {self.kind.plural}")
        return records

    async def delete_by_id(self, record_id: str) -> None:
        """
        DELETE one record.

        Raises:
            ValueError: empty identifier (nothing is sent)
            TransportError: the service rejected the delete or is unreachable
        """
        if not record_id:
            raise ValueError("Record id must not be empty")

        url = self.record_url(record_id)
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.delete(url)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"DELETE {url} failed with status {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"DELETE {url} failed: {e}") from e

        logger.info(f"🗑️ {self.kind.singular.capitalize()} {record_id} deleted on the record service.")
