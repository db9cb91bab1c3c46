# SPDX-License-Identifier: Apache-2.0
#
# Copyright (c) 2024-2025 lexcal Contributors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
REST storage backend.

Talks to a PostgREST-compatible API (for example a hosted Supabase
project) over ``httpx``. Requests are not retried; any transport or HTTP
status failure surfaces as ``RemoteError``.
"""

import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional, Sequence

import httpx

from config.constants import DEFAULT_REST_TIMEOUT_SECONDS, REST_API_PATH
from core.calendar.exceptions import RemoteError
from data.storage.base import Row, StorageClient

logger = logging.getLogger("lexcal.storage.rest")


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class RestStorage(StorageClient):
    """
    StorageClient over a PostgREST HTTP API.

    Equality filters are sent as ``column=eq.value`` query parameters and
    writes ask for the stored representation back.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: Optional[str] = None,
        timeout: float = DEFAULT_REST_TIMEOUT_SECONDS,
        **client_kwargs,
    ):
        """
        Initialize the REST backend.

        Args:
            base_url: Project URL, without the REST path
            api_key: Project API key
            access_token: User JWT; falls back to the API key
            timeout: Request timeout in seconds
            **client_kwargs: Extra arguments for httpx.Client
        """
        if not base_url:
            raise ValueError("base_url is required")
        if not api_key:
            raise ValueError("api_key is required")

        self.base_url = base_url.rstrip("/") + REST_API_PATH
        headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {access_token or api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        client_kwargs.setdefault("timeout", timeout)
        self.client = httpx.Client(base_url=self.base_url, headers=headers, **client_kwargs)

        logger.info(f"REST storage configured: {self.base_url}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self.client.close()

    def _filter_params(self, filters: Optional[Mapping[str, Any]]) -> Dict[str, str]:
        params = {}
        for key, value in (filters or {}).items():
            if value is None:
                params[key] = "is.null"
            else:
                params[key] = f"eq.{_format_value(value)}"
        return params

    def _request(
        self,
        method: str,
        table: str,
        operation: str,
        params: Optional[Dict[str, str]] = None,
        json_body: Any = None,
        prefer: Optional[str] = None,
    ) -> List[Row]:
        headers = {"Prefer": prefer} if prefer else None
        try:
            response = self.client.request(
                method, f"/{table}", params=params, json=json_body, headers=headers
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            detail = e.response.text
            logger.error(f"{operation} on {table} failed with HTTP {status}: {detail}")
            raise RemoteError(
                f"HTTP {status} during {operation} on {table}: {detail}",
                table=table,
                operation=operation,
                status_code=status,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"{operation} on {table} failed: {e}")
            raise RemoteError(
                f"Request failed during {operation} on {table}: {e}",
                table=table,
                operation=operation,
            ) from e

        if not response.content:
            return []
        try:
            data = response.json()
        except ValueError as e:
            raise RemoteError(
                f"Invalid JSON in {operation} response for {table}",
                table=table,
                operation=operation,
                status_code=response.status_code,
            ) from e
        if isinstance(data, dict):
            return [data]
        return data

    def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        self._check_table(table, "select")
        params = {"select": "*"}
        params.update(self._filter_params(filters))
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = str(int(limit))
        return self._request("GET", table, "select", params=params)

    def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> List[Row]:
        self._check_table(table, "insert")
        if not rows:
            return []
        payload = []
        for row in rows:
            values = dict(row)
            if not values.get("id"):
                values["id"] = str(uuid.uuid4())
            payload.append(values)
        stored = self._request(
            "POST", table, "insert", json_body=payload, prefer="return=representation"
        )
        logger.debug(f"Inserted {len(stored)} row(s) into {table}")
        return stored

    def update(
        self, table: str, values: Mapping[str, Any], filters: Mapping[str, Any]
    ) -> List[Row]:
        self._check_table(table, "update")
        self._check_filters(table, filters, "update")
        stored = self._request(
            "PATCH",
            table,
            "update",
            params=self._filter_params(filters),
            json_body=dict(values),
            prefer="return=representation",
        )
        logger.debug(f"Updated {len(stored)} row(s) in {table}")
        return stored

    def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        self._check_table(table, "delete")
        self._check_filters(table, filters, "delete")
        removed = self._request(
            "DELETE",
            table,
            "delete",
            params=self._filter_params(filters),
            prefer="return=representation",
        )
        logger.debug(f"Deleted {len(removed)} row(s) from {table}")
        return len(removed)
