from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from ...core.constants import CLOCKIFY_BASE_URL, CLOCKIFY_PAGE_SIZE, CLOCKIFY_TIMEOUT_SECONDS
from ...core.exceptions import (
    ProviderError,
    ProviderRateLimitedError,
    ProviderRejectedError,
    ProviderUnavailableError,
)
from .retry import RetryConfig
from .schemas import ClockifyUser

logger = logging.getLogger(__name__)


def _format_instant(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def map_status_error(status_code: int, message: str = "") -> ProviderError:
    if status_code in (401, 403):
        return ProviderRejectedError("clockify api key is invalid", status_code=status_code)
    if status_code == 404:
        return ProviderRejectedError("clockify workspace not found", status_code=status_code)
    if status_code == 429:
        return ProviderRateLimitedError("clockify rate limit exceeded", status_code=status_code)
    logger.warning("clockify request failed status=%s body=%s", status_code, message[:200])
    return ProviderUnavailableError("clockify request failed", status_code=status_code)


class ClockifyClient:
    """Read-only Clockify REST client.

    Only GETs are issued, so every call is safe to retry. Retries cover 429,
    5xx and transport errors, with exponential backoff that honors
    ``Retry-After``.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = CLOCKIFY_BASE_URL,
        timeout: float = CLOCKIFY_TIMEOUT_SECONDS,
        retry_config: Optional[RetryConfig] = None,
        page_size: int = CLOCKIFY_PAGE_SIZE,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_key = api_key
        self.retry_config = retry_config or RetryConfig()
        self.page_size = int(page_size)
        self._sleep = sleep
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={"X-Api-Key": api_key, "Accept": "application/json"},
        )

    def __enter__(self) -> "ClockifyClient":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _get_json(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        config = self.retry_config
        for attempt in range(1, config.max_attempts + 1):
            last_attempt = attempt >= config.max_attempts
            try:
                response = self._client.get(path, params=params)
            except httpx.TransportError as exc:
                if last_attempt:
                    raise ProviderUnavailableError("clockify connection failed") from exc
                delay = config.calculate_delay(attempt)
                logger.info("clockify transport error path=%s attempt=%s retry_in=%.2fs: %s", path, attempt, delay, exc)
                self._sleep(delay)
                continue

            if response.is_success:
                if not response.content:
                    return None
                try:
                    return response.json()
                except ValueError as exc:
                    raise ProviderUnavailableError("clockify returned invalid JSON") from exc

            if config.is_retryable_status(response.status_code) and not last_attempt:
                delay = config.calculate_delay(attempt, response.headers.get("Retry-After"))
                logger.info(
                    "clockify status=%s path=%s attempt=%s retry_in=%.2fs",
                    response.status_code, path, attempt, delay,
                )
                self._sleep(delay)
                continue

            raise map_status_error(response.status_code, response.text.strip())

        raise ProviderUnavailableError("clockify request failed")

    def _paged(self, path: str, params: Optional[dict[str, Any]] = None) -> list[Any]:
        items: list[Any] = []
        page = 1
        while True:
            query = dict(params or {})
            query["page"] = page
            query["page-size"] = self.page_size
            batch = self._get_json(path, query) or []
            if not isinstance(batch, list):
                raise ProviderUnavailableError("clockify returned an unexpected payload")
            items.extend(batch)
            if len(batch) < self.page_size:
                return items
            page += 1

    def list_users(self, workspace_id: str) -> list[ClockifyUser]:
        raw = self._paged(f"/workspaces/{workspace_id}/users")
        try:
            return [ClockifyUser.model_validate(item) for item in raw]
        except PydanticValidationError as exc:
            raise ProviderUnavailableError("clockify returned an unexpected user payload") from exc

    def list_time_entries(self, workspace_id: str, user_id: str, start: datetime, end: datetime) -> list[dict]:
        """Raw entries of one user with ``start`` in ``[start, end)``; parsed per item by the caller."""
        return self._paged(
            f"/workspaces/{workspace_id}/user/{user_id}/time-entries",
            {
                "start": _format_instant(start),
                "end": _format_instant(end),
                "hydrated": "false",
            },
        )
