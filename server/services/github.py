import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from errors import UpstreamAPIError, UpstreamNotFoundError

logger = logging.getLogger(__name__)

USER_AGENT = "RepoMirrorAnalysisApp/1.0"
ACCEPT_HEADER = "application/vnd.github.v3+json"
PER_PAGE = 100


class GitHubRESTClient:
    """
    Thin async client for the read-only GitHub REST endpoints used by the pipeline.

    Use as an async context manager; one instance per pipeline invocation.
    404 responses raise UpstreamNotFoundError, every other non-2xx status or
    transport failure raises UpstreamAPIError.
    """

    def __init__(
        self,
        token: Optional[str],
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.headers = {
            "User-Agent": USER_AGENT,
            "Accept": ACCEPT_HEADER,
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"
        else:
            logger.warning("GITHUB_PAT not configured; calling GitHub unauthenticated")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "GitHubRESTClient":
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, path: str, params: Optional[dict] = None) -> httpx.Response:
        if self._client is None:
            raise RuntimeError("GitHubRESTClient must be used inside 'async with'")

        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise UpstreamAPIError(path, str(e) or type(e).__name__) from e

        if response.status_code == 404:
            raise UpstreamNotFoundError(path)
        if not response.is_success:
            raise UpstreamAPIError(path, response.reason_phrase, response.status_code)
        return response

    @staticmethod
    def _decode(path: str, response: httpx.Response) -> Any:
        # 202/204 carry no body (e.g. statistics still being computed)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamAPIError(path, "response body is not valid JSON", response.status_code) from e

    async def get_json(self, path: str, params: Optional[dict] = None) -> Any:
        response = await self._request(path, params)
        return self._decode(path, response)

    async def get_paginated(
        self, path: str, params: Optional[dict] = None, max_pages: int = 10
    ) -> list[Any]:
        """Collect a list endpoint by following rel="next" links, up to max_pages."""
        items: list[Any] = []
        url: Optional[str] = path
        query = {**(params or {}), "per_page": PER_PAGE}
        pages = 0

        while url and pages < max_pages:
            response = await self._request(url, query)
            page = self._decode(path, response)
            if page is None:
                page = []
            if not isinstance(page, list):
                raise UpstreamAPIError(path, "expected a JSON array", response.status_code)
            items.extend(page)
            pages += 1
            # The next link already carries the query string
            url = response.links.get("next", {}).get("url")
            query = None

        if url:
            logger.info(f"Stopped paginating {path} after {max_pages} pages")
        return items

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------

    async def get_repository(self, full_name: str) -> dict:
        return await self.get_json(f"/repos/{full_name}") or {}

    async def get_commit_activity(self, full_name: str) -> list[dict]:
        data = await self.get_json(f"/repos/{full_name}/stats/commit_activity")
        return data if isinstance(data, list) else []

    async def get_languages(self, full_name: str) -> dict[str, int]:
        data = await self.get_json(f"/repos/{full_name}/languages")
        return data if isinstance(data, dict) else {}

    async def get_pull_requests(self, full_name: str, max_pages: int = 10) -> list[dict]:
        return await self.get_paginated(
            f"/repos/{full_name}/pulls", {"state": "all"}, max_pages=max_pages
        )

    async def get_tree(self, full_name: str, branch: str) -> list[dict]:
        data = await self.get_json(
            f"/repos/{full_name}/git/trees/{quote(branch, safe='')}", {"recursive": "1"}
        )
        if not isinstance(data, dict):
            return []
        if data.get("truncated"):
            logger.warning(f"File tree for {full_name}@{branch} was truncated by GitHub")
        return data.get("tree") or []

    async def get_file_content(self, full_name: str, path: str, ref: str) -> dict:
        return await self.get_json(
            f"/repos/{full_name}/contents/{quote(path)}", {"ref": ref}
        ) or {}

    async def get_readme(self, full_name: str) -> dict:
        return await self.get_json(f"/repos/{full_name}/readme") or {}
