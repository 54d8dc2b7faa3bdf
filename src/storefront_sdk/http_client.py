from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable
from urllib.parse import unquote, urljoin

import httpx

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import TransportError
from .tracing import TRACE_HEADER, TraceContext

logger = logging.getLogger(__name__)

RequestHook = Callable[[str, str, dict[str, Any]], None]
Sleeper = Callable[[float], Awaitable[None]]

_FILENAME_RE = re.compile(r"filename\*?=(?:UTF-8'')?\"?([^\";]+)\"?", re.IGNORECASE)


@dataclass(frozen=True)
class DownloadedFile:
    content: bytes
    content_type: str | None = None
    file_name: str | None = None


@dataclass
class LastOperation:
    module: str
    operation: str
    duration_ms: int
    result: str
    trace_id: str | None


@dataclass
class HttpClient:
    config: ClientConfig
    trace: TraceContext | None = None
    client: httpx.AsyncClient | None = None
    before_request: RequestHook | None = None
    sleep: Sleeper = asyncio.sleep
    last_operation: LastOperation | None = None

    def __post_init__(self) -> None:
        if self.trace is None:
            self.trace = TraceContext()
        if self.client is None:
            self.client = httpx.AsyncClient(
                timeout=httpx.Timeout(
                    self.config.read_timeout_seconds,
                    connect=self.config.connect_timeout_seconds,
                ),
                verify=self.config.verify_ssl,
                limits=httpx.Limits(max_connections=self.config.max_connections),
            )

    def _build_url(self, path: str) -> str:
        base = self.config.api_base_url.rstrip("/") + "/"
        return urljoin(base, path.lstrip("/"))

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | list[Any] | None = None,
        params: dict[str, Any] | None = None,
        retry_mutation: bool = False,
        module: str = "unknown",
        operation: str = "unknown",
    ) -> dict[str, Any] | list[Any] | None:
        started = time.monotonic()
        response, trace_id = await self._send(
            method,
            path,
            headers=headers,
            json_body=json_body,
            params=params,
            accept="application/json",
            retry_mutation=retry_mutation,
        )
        if response.is_success:
            self._record_operation(module, operation, started, "success", trace_id)
            if not response.content:
                return None
            return response.json()
        self._record_operation(module, operation, started, "error", trace_id)
        raise self._error_from(response, trace_id)

    async def download(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        module: str = "unknown",
        operation: str = "download",
    ) -> DownloadedFile:
        started = time.monotonic()
        response, trace_id = await self._send("GET", path, headers=headers, params=params, accept="*/*")
        if not response.is_success:
            self._record_operation(module, operation, started, "error", trace_id)
            raise self._error_from(response, trace_id)
        self._record_operation(module, operation, started, "success", trace_id)
        return DownloadedFile(
            content=response.content,
            content_type=response.headers.get("Content-Type"),
            file_name=_file_name_from(response.headers.get("Content-Disposition")),
        )

    async def _send(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None,
        params: dict[str, Any] | None,
        accept: str,
        json_body: dict[str, Any] | list[Any] | None = None,
        retry_mutation: bool = False,
    ) -> tuple[httpx.Response, str]:
        if self.client is None:
            raise RuntimeError("HTTP client not initialized")
        request_headers = {"Accept": accept}
        if headers:
            request_headers.update(headers)
        trace_id = self.trace.begin()
        request_headers[TRACE_HEADER] = trace_id

        normalized_method = method.upper()
        url = self._build_url(path)
        if self.before_request:
            self.before_request(
                normalized_method,
                url,
                {"headers": request_headers, "json_body": json_body, "params": params},
            )

        can_retry = normalized_method in {"GET", "HEAD"} or retry_mutation
        attempts = self.config.retries + 1 if can_retry else 1
        response: httpx.Response | None = None
        for attempt in range(attempts):
            try:
                response = await self.client.request(
                    normalized_method,
                    url,
                    headers=request_headers,
                    json=json_body,
                    params=params,
                )
            except httpx.HTTPError as exc:
                if attempt >= attempts - 1:
                    raise TransportError(
                        code="TRANSPORT_ERROR",
                        message=str(exc) or type(exc).__name__,
                        details={"type": type(exc).__name__},
                        trace_id=trace_id,
                        status_code=0,
                        raw_payload=None,
                    ) from exc
                logger.warning(
                    "http_retry_transport",
                    extra={"method": normalized_method, "url": url, "attempt": attempt + 1, "trace_id": trace_id},
                )
            else:
                if response.status_code < 500 or attempt >= attempts - 1:
                    break
                logger.warning(
                    "http_retry_status",
                    extra={"method": normalized_method, "url": url, "status": response.status_code, "trace_id": trace_id},
                )
            await self.sleep(self.config.retry_backoff_seconds * (2**attempt))

        if response is None:
            raise RuntimeError(f"HTTP request to {url} finished without a response")
        self.trace.acknowledge_headers(response.headers)
        return response, self.trace.last_trace_id or trace_id

    def _error_from(self, response: httpx.Response, trace_id: str | None):
        try:
            payload = response.json()
        except ValueError:
            payload = {"message": response.text}
        if isinstance(payload, dict):
            self.trace.acknowledge_payload(payload)
        return map_error(response.status_code, payload if isinstance(payload, dict) else None, trace_id)

    def _record_operation(self, module: str, operation: str, started: float, result: str, trace_id: str | None) -> None:
        self.last_operation = LastOperation(
            module=module,
            operation=operation,
            duration_ms=int((time.monotonic() - started) * 1000),
            result=result,
            trace_id=trace_id,
        )
        logger.debug("http_operation", extra={"api_module": module, "operation": operation, "result": result, "trace_id": trace_id})

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def _file_name_from(disposition: str | None) -> str | None:
    if not disposition:
        return None
    match = _FILENAME_RE.search(disposition)
    if not match:
        return None
    return unquote(match.group(1).strip())
