import aiohttp
import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from github_explorer.config import DEFAULT_HEADERS, TransportConfig
from github_explorer.domain.exceptions import ExplorerError, RateLimitError, TransportError

logger = logging.getLogger(__name__)

RATE_LIMITED = 429
FORBIDDEN = 403


class HttpResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: int
    data: Any = None
    headers: Dict[str, str] = Field(default_factory=dict, description="Lower-cased header names")
    duration_ms: float = 0.0
    request_id: str = ""


class _HttpStatusFailure(Exception):
    """Non-2xx response captured inside the retry loop. Never leaves this module."""
    def __init__(self, status: int, reason: Optional[str], data: Any, headers: Dict[str, str]):
        self.status = status
        self.reason = reason
        self.data = data
        self.headers = headers
        super().__init__(f"HTTP {status}: {reason}")


def _lower_headers(headers: Any) -> Dict[str, str]:
    return {str(k).lower(): str(v) for k, v in (headers or {}).items()}


def _parse_reset(raw: Optional[str]) -> datetime:
    if raw:
        try:
            return datetime.fromtimestamp(int(raw), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError):
            pass
    return datetime.now(timezone.utc)


def _parse_limit(raw: Optional[str]) -> Optional[int]:
    try:
        return int(raw) if raw is not None else None
    except ValueError:
        return None


class HttpTransport:
    """
    Async HTTP transport for the GitHub REST API.
    Handles static and credential headers, linear-backoff retries, latency logging
    and conversion of failures into the explorer error taxonomy.
    """

    def __init__(self, config: Optional[TransportConfig] = None, session: Optional[aiohttp.ClientSession] = None):
        self.config = config or TransportConfig()
        self.base_url = self.config.base_url.rstrip("/")
        self.headers: Dict[str, str] = {**DEFAULT_HEADERS, **self.config.headers}
        self._timeout = aiohttp.ClientTimeout(total=self.config.timeout)
        self._session = session
        self._owns_session = session is None
        self._last_rate_limit: Optional[Dict[str, str]] = None

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> HttpResponse:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None, params: Optional[Dict[str, Any]] = None) -> HttpResponse:
        return await self.request("POST", path, params=params, json=json)

    async def put(self, path: str, json: Any = None, params: Optional[Dict[str, Any]] = None) -> HttpResponse:
        return await self.request("PUT", path, params=params, json=json)

    async def delete(self, path: str, params: Optional[Dict[str, Any]] = None) -> HttpResponse:
        return await self.request("DELETE", path, params=params)

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> HttpResponse:
        """
        Sends a request, retrying network failures, 5xx and 429 responses.

        Attempt N+1 only starts after attempt N failed and `retry_delay * N` seconds elapsed.

        Raises:
            RateLimitError: The quota is exhausted (429, or 403 with no remaining requests).
            TransportError: Any other failure once retries are exhausted or not allowed.
        """
        max_attempts = self.config.max_attempts
        query = {k: v for k, v in (params or {}).items() if v is not None}
        last_error: Optional[Exception] = None

        for attempt in range(1, max_attempts + 1):
            try:
                return await self._send(method, path, query, json)
            except (_HttpStatusFailure, aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_error = e
                if not self._should_retry(e, attempt):
                    break
                delay = self.config.retry_delay * attempt
                logger.warning(
                    f"{method} {path} failed (attempt {attempt}/{max_attempts}): {e}. "
                    f"Retrying in {delay:.1f}s..."
                )
                await asyncio.sleep(delay)

        raise self._transform_error(last_error)

    async def _send(self, method: str, path: str, params: Dict[str, Any], json: Any) -> HttpResponse:
        request_id = uuid.uuid4().hex[:12]
        started = time.monotonic()
        logger.debug(f"[{request_id}] {method} {path} params={params}")

        session = self._get_session()
        async with session.request(
            method,
            f"{self.base_url}{path}",
            params=params or None,
            json=json,
            headers=dict(self.headers),
            timeout=self._timeout,
        ) as response:
            data = await self._read_body(response)
            headers = _lower_headers(response.headers)

        duration_ms = (time.monotonic() - started) * 1000
        status = response.status
        logger.debug(f"[{request_id}] {method} {path} -> {status} in {duration_ms:.0f}ms")

        if "x-ratelimit-remaining" in headers:
            self._last_rate_limit = {
                "limit": headers.get("x-ratelimit-limit"),
                "remaining": headers.get("x-ratelimit-remaining"),
                "reset": headers.get("x-ratelimit-reset"),
            }

        if status >= 400:
            raise _HttpStatusFailure(status, response.reason, data, headers)

        return HttpResponse(
            status=status, data=data, headers=headers, duration_ms=duration_ms, request_id=request_id
        )

    @staticmethod
    async def _read_body(response: aiohttp.ClientResponse) -> Any:
        try:
            return await response.json(content_type=None)
        except (aiohttp.ContentTypeError, ValueError):
            return None

    def _should_retry(self, error: Exception, attempt: int) -> bool:
        if attempt >= self.config.max_attempts:
            return False
        if isinstance(error, _HttpStatusFailure):
            return error.status == RATE_LIMITED or error.status >= 500
        # Connection resets, refusals, DNS failures and timeouts
        return True

    def _transform_error(self, error: Optional[Exception]) -> ExplorerError:
        if isinstance(error, _HttpStatusFailure):
            quota_exhausted = error.status == FORBIDDEN and error.headers.get("x-ratelimit-remaining") == "0"
            if error.status == RATE_LIMITED or quota_exhausted:
                return RateLimitError(
                    limit=_parse_limit(error.headers.get("x-ratelimit-limit")),
                    reset_at=_parse_reset(error.headers.get("x-ratelimit-reset")),
                )
            message = error.reason
            if isinstance(error.data, dict) and error.data.get("message"):
                message = error.data["message"]
            return TransportError(f"HTTP {error.status}: {message}", cause=error, status=error.status)

        if error is None:
            return TransportError("Request failed with no error details")
        return TransportError(f"Network error: {str(error) or type(error).__name__}", cause=error)

    def set_credential(self, token: Optional[str]) -> None:
        if token:
            self.headers["Authorization"] = f"token {token}"
            logger.info("Authentication token configured.")
        else:
            self.headers.pop("Authorization", None)
            logger.info("Authentication token removed.")

    def set_headers(self, headers: Dict[str, str]) -> None:
        self.headers.update(headers)

    def remove_headers(self, names: Iterable[str]) -> None:
        for name in names:
            self.headers.pop(name, None)

    def reset_headers(self) -> None:
        self.headers = {**DEFAULT_HEADERS, **self.config.headers}
        logger.info("Transport headers reset to defaults.")

    def last_rate_limit(self) -> Optional[Dict[str, Optional[str]]]:
        return dict(self._last_rate_limit) if self._last_rate_limit else None

    async def health_check(self) -> Dict[str, Any]:
        try:
            response = await self.get("/")
        except ExplorerError as e:
            return {"status": "unhealthy", "base_url": self.base_url, "error": str(e)}
        return {
            "status": "healthy",
            "base_url": self.base_url,
            "response_time_ms": round(response.duration_ms),
            "rate_limit_remaining": response.headers.get("x-ratelimit-remaining"),
        }

    def stats(self) -> Dict[str, Any]:
        return {
            "base_url": self.base_url,
            "timeout": self.config.timeout,
            "max_attempts": self.config.max_attempts,
            "retry_delay": self.config.retry_delay,
            "has_credential": "Authorization" in self.headers,
        }
