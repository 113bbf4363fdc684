"""HTTP client wrapper for the Canvas LMS REST API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

import httpx

from .models import ModuleItem, ModuleSummary, PageRecord

logger = logging.getLogger("nexgen.canvas.client")

PER_PAGE = 100


@dataclass
class CanvasConfig:
    base_url: str
    api_token: str


class CanvasClient:
    """Synchronous Canvas client covering modules, module items and wiki pages.

    ``httpx.Client`` is safe to share across threads, so one instance can serve
    the concurrent page fetches of a teacher-notes build.
    """

    def __init__(
        self,
        config: CanvasConfig,
        *,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._config = config
        if client is None:
            self._client = httpx.Client(
                base_url=config.base_url.rstrip("/"),
                timeout=timeout,
            )
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False

    # ------------------------------------------------------------------
    # modules

    def list_modules(self, course_id: int, search_term: str | None = None) -> List[ModuleSummary]:
        params: Dict[str, Any] = {}
        if search_term and search_term.strip():
            params["search_term"] = search_term.strip()
        rows = self._get_paginated(f"/api/v1/courses/{course_id}/modules", params)
        return [ModuleSummary.model_validate(row) for row in rows]

    def list_module_items(self, course_id: int, module_id: int) -> List[ModuleItem]:
        rows = self._get_paginated(f"/api/v1/courses/{course_id}/modules/{module_id}/items")
        return [ModuleItem.model_validate(row) for row in rows]

    def create_module_subheader(self, course_id: int, module_id: int, title: str) -> ModuleItem:
        data = self._request(
            "POST",
            f"/api/v1/courses/{course_id}/modules/{module_id}/items",
            json={"module_item": {"title": title, "type": "SubHeader"}},
        )
        return ModuleItem.model_validate(data)

    def create_module_page_item(
        self,
        course_id: int,
        module_id: int,
        *,
        page_url: str,
        position: int,
        title: str | None = None,
    ) -> ModuleItem:
        item: Dict[str, Any] = {"type": "Page", "page_url": page_url, "position": position}
        if title:
            item["title"] = title
        data = self._request(
            "POST",
            f"/api/v1/courses/{course_id}/modules/{module_id}/items",
            json={"module_item": item},
        )
        return ModuleItem.model_validate(data)

    def update_module_item_position(
        self,
        course_id: int,
        module_id: int,
        item_id: int,
        position: int,
    ) -> ModuleItem:
        data = self._request(
            "PUT",
            f"/api/v1/courses/{course_id}/modules/{module_id}/items/{item_id}",
            json={"module_item": {"position": position}},
        )
        return ModuleItem.model_validate(data)

    # ------------------------------------------------------------------
    # pages

    def get_page(self, course_id: int, page_url: str) -> PageRecord:
        data = self._request("GET", f"/api/v1/courses/{course_id}/pages/{page_url}")
        return PageRecord.model_validate(data)

    def list_pages(self, course_id: int, search_term: str | None = None) -> List[PageRecord]:
        params: Dict[str, Any] = {}
        if search_term and search_term.strip():
            params["search_term"] = search_term.strip()
        rows = self._get_paginated(f"/api/v1/courses/{course_id}/pages", params)
        return [PageRecord.model_validate(row) for row in rows]

    def create_page(self, course_id: int, *, title: str, body: str, published: bool) -> PageRecord:
        data = self._request(
            "POST",
            f"/api/v1/courses/{course_id}/pages",
            json={"wiki_page": {"title": title, "body": body, "published": published}},
        )
        return PageRecord.model_validate(data)

    def update_page(
        self,
        course_id: int,
        page_url: str,
        *,
        title: str | None = None,
        body: str | None = None,
        published: bool | None = None,
    ) -> PageRecord:
        wiki_page: Dict[str, Any] = {}
        if title is not None:
            wiki_page["title"] = title
        if body is not None:
            wiki_page["body"] = body
        if published is not None:
            wiki_page["published"] = published
        data = self._request(
            "PUT",
            f"/api/v1/courses/{course_id}/pages/{page_url}",
            json={"wiki_page": wiki_page},
        )
        return PageRecord.model_validate(data)

    # ------------------------------------------------------------------

    def close(self) -> None:
        if getattr(self, "_owns_client", False):
            self._client.close()

    def _build_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._config.api_token}"}

    def _request(self, method: str, path: str, *, json: Any = None, params: Dict[str, Any] | None = None) -> Any:
        response = self._client.request(
            method,
            path,
            json=json,
            params=params,
            headers=self._build_headers(),
        )
        if response.is_error:
            logger.debug(
                "Canvas request failed",
                extra={"method": method, "path": path, "status": response.status_code},
            )
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as exc:
            raise RuntimeError(f"Canvas API returned non-JSON payload for {method} {path}") from exc

    def _get_paginated(self, path: str, params: Dict[str, Any] | None = None) -> List[Dict[str, Any]]:
        """Follow ``Link: rel="next"`` headers until the collection is exhausted."""

        query = {"per_page": PER_PAGE, **(params or {})}
        rows: List[Dict[str, Any]] = []
        url: str | None = path
        while url:
            response = self._client.get(url, params=query, headers=self._build_headers())
            response.raise_for_status()
            try:
                data = response.json()
            except ValueError as exc:
                raise RuntimeError(f"Canvas API returned non-JSON payload for GET {path}") from exc
            if isinstance(data, list):
                rows.extend(row for row in data if isinstance(row, dict))
            url = response.links.get("next", {}).get("url")
            # the next link already carries the query string
            query = None
        return rows

    def __enter__(self) -> "CanvasClient":  # pragma: no cover - convenience
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - convenience
        self.close()


__all__ = ["CanvasClient", "CanvasConfig", "PER_PAGE"]
