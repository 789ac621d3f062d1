"""
Async HTTP client for the roadmap tracker REST API

Usage:
    api = RoadmapApiClient("http://localhost:8000", token="...")
    record = await api.upsert_progress("html-css", "phase1", "month1", "completed")
    await api.close()
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)


class BackendUnavailableError(Exception):
    """Transport failure, timeout or 5xx: the caller should fall back to the local cache"""


class BackendRejectedError(Exception):
    """The backend refused the request (4xx); retrying will not help"""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class RoadmapApiClient:
    """
    Thin wrapper over httpx.AsyncClient for the progress endpoints

    Every method returns the unwrapped ``data`` of the response envelope.
    """

    DEFAULT_TIMEOUT_SECONDS: float = 10.0
    LIST_PAGE_SIZE: int = 200

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.timeout: float = timeout if timeout is not None else self.DEFAULT_TIMEOUT_SECONDS
        self.client: httpx.AsyncClient = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=self.timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self.client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            # Covers connect errors and timeouts
            raise BackendUnavailableError(f"{method} {path} failed: {e}") from e

        if response.status_code >= 500:
            raise BackendUnavailableError(
                f"{method} {path} returned {response.status_code}"
            )
        if response.status_code >= 400:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            raise BackendRejectedError(response.status_code, message)

        return response.json()

    async def upsert_progress(
        self, item_id: str, phase_id: str, section_id: str, status: str
    ) -> Dict[str, Any]:
        body = await self._request(
            "POST",
            "/api/progress",
            json={
                "itemId": item_id,
                "phaseId": phase_id,
                "sectionId": section_id,
                "status": status,
            },
        )
        return body["data"]

    async def get_item(self, item_id: str) -> Optional[Dict[str, Any]]:
        body = await self._request("GET", f"/api/progress/item/{item_id}")
        return body.get("data")

    async def list_progress(self, page: int = 1, limit: Optional[int] = None) -> Tuple[List[Dict[str, Any]], int]:
        """One page of the caller's records and the total page count"""
        body = await self._request(
            "GET",
            "/api/progress",
            params={"page": page, "limit": limit or self.LIST_PAGE_SIZE},
        )
        return body["data"], body["pagination"]["pages"]

    async def list_all_progress(self) -> Dict[str, Dict[str, Any]]:
        """Every record the caller has, keyed by item id"""
        records: Dict[str, Dict[str, Any]] = {}
        page = 1
        while True:
            items, pages = await self.list_progress(page=page)
            for record in items:
                records[record["itemId"]] = record
            if page >= pages:
                break
            page += 1
        logger.debug(f"Fetched {len(records)} records from backend")
        return records

    async def get_overview(self) -> Dict[str, Any]:
        body = await self._request("GET", "/api/progress/overview")
        return body["data"]

    async def get_phase_progress(self, phase_id: str) -> List[Dict[str, Any]]:
        body = await self._request("GET", f"/api/progress/phase/{phase_id}")
        return body["data"]
