"""
Remote backend client.

Talks to a PostgREST-style REST endpoint (`{url}/rest/v1/{table}`). Rows are
plain dicts with snake_case column names; the storage layer owns the mapping
to domain records.

Failure classification:
- connection errors, timeouts, 5xx and unreadable bodies -> RemoteUnavailableError
- 4xx on a write -> RemoteWriteError
- no matching row on a single-row read -> None (a clean "not found")
"""
import logging
from typing import Any, Dict, List, Optional, Protocol

import requests
from pydantic_core import to_jsonable_python

from app.core.config import RemoteConfig
from app.core.exceptions import RemoteUnavailableError, RemoteWriteError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class RemoteBackend(Protocol):
    def select(self, table: str, filters: Optional[Dict[str, Any]] = None) -> List[Row]: ...

    def select_one(self, table: str, column: str, value: Any) -> Optional[Row]: ...

    def select_ilike(self, table: str, column: str, value: str) -> List[Row]: ...

    def upsert(self, table: str, rows: List[Row], on_conflict: str = "id") -> None: ...

    def update(self, table: str, key_column: str, key: Any, values: Row) -> None: ...

    def delete(self, table: str, column: str, value: Any) -> None: ...


def _escape_like(value: str) -> str:
    """
    Literal ilike pattern. PostgREST reads `*` as `%`, so a `*` in the value
    becomes a one-character `_` wildcard; callers filter results exactly.
    """
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return escaped.replace("*", "_")


class RestRemoteBackend:
    """RemoteBackend over HTTP using requests."""

    def __init__(self, config: RemoteConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.http = session or requests.Session()
        self.http.headers.update({
            "apikey": config.api_key,
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Accept-Profile": config.schema_name,
            "Content-Profile": config.schema_name,
        })

    def _url(self, table: str) -> str:
        return f"{self.config.rest_url}/{table}"

    def _request(self, method: str, table: str, *, params=None, json=None, headers=None, write=False) -> requests.Response:
        try:
            response = self.http.request(
                method,
                self._url(table),
                params=params,
                json=to_jsonable_python(json) if json is not None else None,
                headers=headers,
                timeout=self.config.timeout_seconds,
            )
        except requests.exceptions.Timeout as e:
            raise RemoteUnavailableError(f"Remote request timed out ({method} {table})", {"table": table}) from e
        except requests.exceptions.RequestException as e:
            raise RemoteUnavailableError(f"Remote request failed ({method} {table}): {e}", {"table": table}) from e

        if response.status_code >= 500:
            raise RemoteUnavailableError(
                f"Remote backend error {response.status_code} ({method} {table})",
                {"table": table, "status": response.status_code, "body": response.text[:500]},
            )
        if response.status_code >= 400:
            details = {"table": table, "status": response.status_code, "body": response.text[:500]}
            if write:
                raise RemoteWriteError(f"Remote rejected {method} on {table}: {response.status_code}", details)
            # A read the backend refuses (e.g. missing table) leaves us without a trustworthy answer
            raise RemoteUnavailableError(f"Remote read failed ({method} {table}): {response.status_code}", details)
        return response

    @staticmethod
    def _rows(response: requests.Response, table: str) -> List[Row]:
        try:
            data = response.json()
        except ValueError as e:
            raise RemoteUnavailableError(f"Remote returned an unreadable body for {table}") from e
        if not isinstance(data, list):
            raise RemoteUnavailableError(f"Remote returned unexpected payload for {table}")
        return data

    def select(self, table: str, filters: Optional[Dict[str, Any]] = None) -> List[Row]:
        params = {"select": "*"}
        for column, value in (filters or {}).items():
            params[column] = f"eq.{value}"
        response = self._request("GET", table, params=params)
        return self._rows(response, table)

    def select_one(self, table: str, column: str, value: Any) -> Optional[Row]:
        rows = self.select(table, {column: value})
        return rows[0] if rows else None

    def select_ilike(self, table: str, column: str, value: str) -> List[Row]:
        # Case-insensitive exact match
        params = {"select": "*", column: f"ilike.{_escape_like(value)}"}
        response = self._request("GET", table, params=params)
        wanted = value.lower()
        return [
            row for row in self._rows(response, table)
            if isinstance(row.get(column), str) and row[column].lower() == wanted
        ]

    def upsert(self, table: str, rows: List[Row], on_conflict: str = "id") -> None:
        if not rows:
            return
        self._request(
            "POST",
            table,
            params={"on_conflict": on_conflict},
            json=rows,
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
            write=True,
        )
        logger.debug(f"Upserted {len(rows)} row(s) into remote {table}")

    def update(self, table: str, key_column: str, key: Any, values: Row) -> None:
        self._request(
            "PATCH",
            table,
            params={key_column: f"eq.{key}"},
            json=values,
            headers={"Prefer": "return=minimal"},
            write=True,
        )

    def delete(self, table: str, column: str, value: Any) -> None:
        self._request(
            "DELETE",
            table,
            params={column: f"eq.{value}"},
            headers={"Prefer": "return=minimal"},
            write=True,
        )
