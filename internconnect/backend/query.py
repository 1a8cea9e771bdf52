"""Table query builder for the backend's REST table API."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from internconnect.core.exceptions import ROW_NOT_FOUND_CODE, BackendError

if TYPE_CHECKING:
    from internconnect.backend.client import BackendClient

SINGLE_OBJECT_ACCEPT = "application/vnd.pgrst.object+json"


@dataclass
class QueryResponse:
    """Rows returned by a query (or by a write, as its representation)."""

    data: Any
    count: int


def _format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class QueryBuilder:
    """Chainable select/insert/update/delete with equality filters.

    Writes always ask for the affected rows back, so ``count`` tells how many
    rows a filtered update or delete actually touched.
    """

    def __init__(self, client: BackendClient, table: str):
        self._client = client
        self._table = table
        self._method = "GET"
        self._columns = "*"
        self._body: Any = None
        self._filters: list[tuple[str, str]] = []
        self._mode = "list"

    def select(self, columns: str = "*") -> QueryBuilder:
        """Project columns; embedded relations use ``name(col, ...)`` syntax."""
        self._columns = re.sub(r"\s+", "", columns) or "*"
        return self

    def insert(self, rows: dict[str, Any] | list[dict[str, Any]]) -> QueryBuilder:
        self._method = "POST"
        self._body = rows if isinstance(rows, list) else [rows]
        return self

    def update(self, values: dict[str, Any]) -> QueryBuilder:
        self._method = "PATCH"
        self._body = values
        return self

    def delete(self) -> QueryBuilder:
        self._method = "DELETE"
        return self

    def eq(self, column: str, value: Any) -> QueryBuilder:
        operator = "is" if value is None else "eq"
        self._filters.append((column, f"{operator}.{_format_value(value)}"))
        return self

    def single(self) -> QueryBuilder:
        """Expect exactly one row; zero rows is an error with the not-found code."""
        self._mode = "single"
        return self

    def maybe_single(self) -> QueryBuilder:
        """Expect zero or one row; zero rows gives ``data=None``."""
        self._mode = "maybe_single"
        return self

    def build_params(self) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = []
        if self._method == "GET" or self._columns != "*":
            params.append(("select", self._columns))
        params.extend(self._filters)
        return params

    async def execute(self) -> QueryResponse:
        headers: dict[str, str] = {}
        if self._method != "GET":
            headers["Prefer"] = "return=representation"
        if self._mode == "single":
            headers["Accept"] = SINGLE_OBJECT_ACCEPT

        response = await self._client.request(
            self._method,
            f"/rest/v1/{self._table}",
            params=self.build_params(),
            json=self._body,
            headers=headers,
        )

        data = response.json() if response.content else None
        if self._mode == "single":
            return QueryResponse(data=data, count=0 if data is None else 1)

        rows = data if isinstance(data, list) else ([] if data is None else [data])
        if self._mode == "maybe_single":
            if len(rows) > 1:
                raise BackendError(
                    "JSON object requested, multiple (or no) rows returned",
                    code=ROW_NOT_FOUND_CODE,
                    details=f"The result contains {len(rows)} rows",
                    status_code=406,
                )
            return QueryResponse(data=rows[0] if rows else None, count=len(rows))
        return QueryResponse(data=rows, count=len(rows))
