"""HTTP client used for every outbound service call.

Responsibilities:
  1. uniform timeout / retry policy
  2. translate httpx failures into ExternalServiceError
  3. keep the httpx dependency in one place
"""

from __future__ import annotations

import time
from typing import Any, Optional

import httpx

from explox.shared.exceptions import ExternalServiceError


class HttpClient:
    """Thin httpx wrapper returning decoded JSON."""

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        max_retries: int = 1,
        service_name: str = "http",
        client: Optional[httpx.Client] = None,
    ):
        self._timeout = timeout
        self._max_retries = max_retries
        self._service_name = service_name
        self._client = client or httpx.Client(timeout=timeout)

    def get(
        self,
        url: str,
        *,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        """
        Perform a GET request and return the JSON body.
        Every failure surfaces as ExternalServiceError after retries.
        """
        last_error: Optional[Exception] = None

        for attempt in range(1, self._max_retries + 2):
            try:
                resp = self._client.get(
                    url,
                    params=params,
                    headers=headers,
                    timeout=self._timeout,
                )
                resp.raise_for_status()
                return resp.json()
            except httpx.HTTPStatusError as e:
                last_error = ExternalServiceError(
                    self._service_name, f"HTTP {e.response.status_code}: {e.request.url}"
                )
            except httpx.TimeoutException:
                last_error = ExternalServiceError(
                    self._service_name, f"timed out after {self._timeout}s (attempt {attempt})"
                )
            except httpx.HTTPError as e:
                last_error = ExternalServiceError(self._service_name, f"request failed: {e}")
            except ValueError as e:
                last_error = ExternalServiceError(self._service_name, f"invalid JSON body: {e}")

            if attempt <= self._max_retries:
                time.sleep(0.5 * attempt)

        raise last_error  # type: ignore[misc]

    def close(self) -> None:
        self._client.close()
