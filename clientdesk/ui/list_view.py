from __future__ import annotations

import logging
from typing import Any, Callable

from clientdesk.ui.api_client import ApiClientError, ClientApi

_LOG = logging.getLogger("clientdesk.ui.list")

PAGE_SIZE_OPTIONS = (5, 10, 25, 50)
MAX_VISIBLE_PAGES = 5
DELETE_PROMPT = "Are you sure you want to delete this client?"


def sort_records(records: list[dict[str, Any]], field: str, direction: int) -> list[dict[str, Any]]:
    """Stable sort on one field; missing values always go last whatever the direction."""
    present = [r for r in records if r.get(field) is not None]
    missing = [r for r in records if r.get(field) is None]
    present.sort(key=lambda r: r[field], reverse=direction < 0)
    return present + missing


class ClientListView:
    def __init__(self, api: ClientApi, page_size: int = 10):
        self.api = api
        self.records: list[dict[str, Any]] = []
        self.sort_field = "name"
        self.sort_direction = 1
        self.current_page = 1
        self.page_size = page_size
        self.total_items = 0
        self.total_pages = 0
        self.loading = False
        self.error: str | None = None
        self.closed = False

    def load(self) -> None:
        if self.closed:
            return
        self.loading = True
        self.error = None
        try:
            response = self.api.list(self.current_page, self.page_size)
        except ApiClientError as exc:
            _LOG.error("Error loading clients: %s", exc.message)
            self.error = exc.message or "Failed to load clients"
            return
        finally:
            self.loading = False
        if self.closed:
            return
        self.records = sort_records(response.get("data") or [], self.sort_field, self.sort_direction)
        pagination = response.get("pagination")
        if pagination:
            self.total_items = int(pagination["total"])
            self.total_pages = int(pagination["pages"])
            self.current_page = int(pagination["page"])

    def order_by(self, field: str) -> None:
        if field != self.sort_field:
            self.sort_field = field
            self.sort_direction = 1
        else:
            self.sort_direction *= -1
        self.records = sort_records(self.records, self.sort_field, self.sort_direction)

    def remove(self, client_id: str, confirm: Callable[[str], bool]) -> bool:
        if not client_id:
            _LOG.error("Invalid client ID")
            return False
        if not confirm(DELETE_PROMPT):
            return False
        try:
            self.api.delete(client_id)
        except ApiClientError as exc:
            _LOG.error("Error deleting client: %s", exc.message)
            self.error = exc.message or "Failed to delete client"
            return False
        self.load()
        return True

    def export(self, exporter: Callable[[list[dict[str, Any]], str], Any], filename: str = "clients") -> bool:
        if not self.records:
            _LOG.warning("No data to export")
            return False
        try:
            exporter(list(self.records), filename)
        except Exception as exc:
            _LOG.error("Error exporting data: %s", exc, exc_info=exc)
            self.error = "Failed to export data"
            return False
        return True

    def change_page(self, page: int) -> None:
        if 1 <= page <= self.total_pages and page != self.current_page:
            self.current_page = page
            self.load()

    def change_page_size(self, size: int) -> None:
        self.page_size = size
        self.current_page = 1
        self.load()

    def pagination_range(self) -> list[int]:
        start = max(1, self.current_page - MAX_VISIBLE_PAGES // 2)
        end = min(self.total_pages, start + MAX_VISIBLE_PAGES - 1)
        if end - start < MAX_VISIBLE_PAGES - 1:
            start = max(1, end - MAX_VISIBLE_PAGES + 1)
        return list(range(start, end + 1))

    @property
    def pagination_info(self) -> str:
        start = (self.current_page - 1) * self.page_size + 1
        end = min(self.current_page * self.page_size, self.total_items)
        return f"Showing {start}-{end} of {self.total_items} results"

    def close(self) -> None:
        self.closed = True
