"""FM4 audio API adapter.

Issues one GET per call against ``{base_url}/live`` ("current") or
``{base_url}/broadcasts`` ("schedule") and returns the decoded JSON body.
Uses an injected ``httpx.AsyncClient`` for connection pooling and
testability.  There is no retry loop: a failed fetch raises
:class:`~fm4keys.utils.errors.FetchError` and the scheduler tries again on
its next tick.
"""

from __future__ import annotations

from typing import Any

import httpx

from fm4keys.interfaces.upstream_provider import IUpstreamProvider
from fm4keys.models.collection import CycleName
from fm4keys.utils.errors import FetchError
from fm4keys.utils.logging import get_logger

_DEFAULT_BASE_URL = "https://audioapi.orf.at/fm4/json/4.0"
_USER_AGENT = "FM4-Key-Server/1.0"
_TIMEOUT = 30.0  # seconds


class FM4APIProvider(IUpstreamProvider):
    """Fetches the live and broadcasts resources of the FM4 audio API.

    Parameters
    ----------
    http_client:
        Injected ``httpx.AsyncClient``.
    base_url:
        API root, without a trailing slash.
    current_path, schedule_path:
        Resource suffixes appended to ``base_url``.
    timeout:
        Per-request timeout in seconds.
    user_agent:
        ``User-Agent`` header sent with every request.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str = _DEFAULT_BASE_URL,
        current_path: str = "/live",
        schedule_path: str = "/broadcasts",
        timeout: float = _TIMEOUT,
        user_agent: str = _USER_AGENT,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._paths = {
            CycleName.CURRENT: "/" + current_path.lstrip("/"),
            CycleName.SCHEDULE: "/" + schedule_path.lstrip("/"),
        }
        self._timeout = timeout
        self._headers = {"User-Agent": user_agent, "Accept": "application/json"}
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # IUpstreamProvider
    # ------------------------------------------------------------------

    async def fetch_current(self) -> Any:
        return await self._get_json(CycleName.CURRENT)

    async def fetch_schedule(self) -> Any:
        return await self._get_json(CycleName.SCHEDULE)

    def get_provider_name(self) -> str:
        return "fm4_api"

    def url_for(self, resource: CycleName) -> str:
        """Return the absolute URL polled for ``resource``."""
        return f"{self._base_url}{self._paths[resource]}"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get_json(self, resource: CycleName) -> Any:
        url = self.url_for(resource)
        self._logger.debug("upstream_fetch", resource=resource.value, url=url)

        try:
            response = await self._http.get(url, headers=self._headers, timeout=self._timeout)
        except httpx.TimeoutException as exc:
            raise FetchError(
                resource.value, f"Timed out after {self._timeout}s fetching {url}", cause=exc
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(
                resource.value, f"Request to {url} failed: {exc}", cause=exc
            ) from exc

        if not response.is_success:
            raise FetchError(resource.value, f"HTTP {response.status_code} from {url}")

        try:
            return response.json()
        except ValueError as exc:
            raise FetchError(
                resource.value, f"Response from {url} is not valid JSON", cause=exc
            ) from exc
